"""Database layer for adaptive-lift."""

from .engine import get_db_path, init_db
from .repositories import KeyValueRepository, StoredBlob

__all__ = [
    "get_db_path",
    "init_db",
    "KeyValueRepository",
    "StoredBlob",
]
