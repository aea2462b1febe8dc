"""CLI entry point for adaptive-lift."""

import logging
from pathlib import Path

import click

from .commands import init, plan


@click.group()
@click.version_option(version="0.1.0", prog_name="adaptive-lift")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    envvar="ADAPTIVE_LIFT_DATA_DIR",
    help="Directory holding the adaptive-lift database",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx, data_dir: Path | None, verbose: bool):
    """adaptive-lift: Adaptive strength training programs.

    Build an 8-week periodized plan from your workout history, then let
    daily readiness and session results steer the remaining weeks.

    Example usage:

        # Initialize the project
        adaptive-lift init

        # Create a plan
        adaptive-lift plan create --goal strength --days 4 --history workouts.json

        # See today's session and record it when done
        adaptive-lift plan today --health health.json
        adaptive-lift plan complete workout.json --day-id <DAY_ID>
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = data_dir


# Register commands
main.add_command(init)
main.add_command(plan)


def run():
    """Run the CLI (handles async event loop)."""
    main()


if __name__ == "__main__":
    run()
