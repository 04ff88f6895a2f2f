"""
Database commands.
"""

import typer
from sqlalchemy.exc import SQLAlchemyError

from ferry_database.session import create_tables

from .._utils import echo, fail


def init_db(ctx: typer.Context) -> None:
    """Create the store tables that do not exist yet."""
    try:
        create_tables()
    except SQLAlchemyError as e:
        fail(e)
    echo("Database initialized", style="green")
