"""CLI commands for adaptive-lift."""

from .init import init
from .plan import plan

__all__ = [
    "init",
    "plan",
]
