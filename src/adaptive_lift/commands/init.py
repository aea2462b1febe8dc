"""Initialize project command."""

import click

from ..db import get_db_path, init_db
from .base import async_command, echo_info, echo_success, get_data_dir


@click.command()
@click.pass_context
@async_command
async def init(ctx: click.Context):
    """Initialize the adaptive-lift project and database.

    This creates the data directory and the SQLite database that holds
    the program store snapshot.
    """
    data_dir = get_data_dir(ctx)
    db_path = get_db_path(data_dir)

    echo_info(f"Initializing adaptive-lift in {data_dir}")

    await init_db(db_path)
    echo_success("Database initialized")

    click.echo()
    click.echo("adaptive-lift is ready to use!")
    click.echo()
    click.echo("Next steps:")
    click.echo("  1. Create a program from your workout history:")
    click.echo("     adaptive-lift plan create --goal strength --days 4 --history workouts.json")
    click.echo()
    click.echo("  2. See what to train today:")
    click.echo("     adaptive-lift plan today --health health.json")
