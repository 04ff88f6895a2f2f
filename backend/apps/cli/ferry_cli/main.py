"""
Ferry command-line entry point.

    ferry init-db
    ferry import -f FILE -t TYPE [-p PARENT] [-d]
    ferry translate-objects -f FROM -t TO [-e ENGINE] [-d] [-l LIMIT] [-o TYPE]
    ferry translate-file -i IN -o OUT -f FROM -t TO -e ENGINE
"""

import typer
from pydantic import ValidationError

from ferry_core import get_logger, init_logging
from ferry_core.config import FerrySettings
from ferry_database.session import dispose_database, init_database

from ._state import CLIState
from ._utils import fail
from .commands import import_command, init_db, translate_file_command, translate_objects_command

logger = get_logger(__name__)

app = typer.Typer(
    name="ferry",
    help="Import content from CSV/XML sources and translate it.",
    add_completion=False,
    no_args_is_help=True,
)

app.command("init-db")(init_db)
app.command("import")(import_command)
app.command("translate-objects")(translate_objects_command)
app.command("translate-file")(translate_file_command)


@app.callback()
def main(ctx: typer.Context) -> None:
    """
    Load settings, configure logging and open the store.
    """
    try:
        settings = FerrySettings()
    except ValidationError as e:
        fail(f"Invalid configuration: {e}")

    init_logging(settings.log_level)
    init_database(settings.database_url, echo=settings.database_echo)
    logger.debug("Store opened", extra={"database_url": settings.database_url})

    ctx.obj = CLIState(settings)
    ctx.call_on_close(dispose_database)


if __name__ == "__main__":
    app()
