"""
Translation commands.

    ferry translate-objects -f en -t it -e deepl -l 100 -o documents
    ferry translate-file -i in.html -o out.html -f en -t it -e deepl
"""

from pathlib import Path
from typing import Annotated

import typer

from ferry_core import init_logging
from ferry_core.exceptions import FerryError, NotFoundError
from ferry_core.services.translation_providers import resolve_translator
from ferry_database.models import ObjectStatus
from ferry_database.session import get_session_context
from ferry_worker.tasks.translate_file import translate_file
from ferry_worker.tasks.translate_objects import ObjectsTranslator

from .._state import CLIState
from .._utils import echo, fail, is_local_path


def _ask(question: str, default: str) -> str:
    answer: str = typer.prompt(question, default=default, show_default=False)
    return answer


def translate_objects_command(
    ctx: typer.Context,
    from_: Annotated[str, typer.Option("--from", "-f", help="Language to translate from")],
    to: Annotated[str, typer.Option("--to", "-t", help="Language to translate to")],
    engine: Annotated[str, typer.Option("--engine", "-e", help="Translator engine")] = "deepl",
    status: Annotated[
        ObjectStatus | None, typer.Option("--status", "-s", help="Status for new translations")
    ] = None,
    dry_run: Annotated[bool, typer.Option("--dry-run", "-d", help="Dry run")] = False,
    limit: Annotated[
        int | None, typer.Option("--limit", "-l", min=1, help="Limit number of objects to translate")
    ] = None,
    object_type: Annotated[
        str | None, typer.Option("--object-type", "-o", help="Object type to translate")
    ] = None,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Print error details")] = False,
) -> None:
    """Translate objects from one language to another."""
    state: CLIState = ctx.obj
    settings = state.settings

    if verbose:
        init_logging("DEBUG")

    try:
        with get_session_context() as session:
            translator = ObjectsTranslator(
                session,
                settings,
                dry_run=dry_run or None,
                status=status.value if status else None,
                limit=limit,
                object_type=object_type,
            )
            translator.setup(engine)
            translator.engine_lang(from_)
            translator.engine_lang(to)
            echo(translator.header(from_, to))
            if not yes:
                translator.confirm(_ask)
            translator.run(from_, to)
    except FerryError as e:
        fail(e)

    if verbose:
        for message in translator.result.errors_details:
            echo(message, style="red")
    echo(translator.results())
    echo("Done")


def translate_file_command(
    ctx: typer.Context,
    input_: Annotated[str, typer.Option("--input", "-i", help="Input file path")],
    output: Annotated[Path, typer.Option("--output", "-o", help="Output file path")],
    from_: Annotated[str, typer.Option("--from", "-f", help="Source language")],
    to: Annotated[str, typer.Option("--to", "-t", help="Dest language")],
    engine: Annotated[str, typer.Option("--translator", "-e", help="Translator engine name")],
) -> None:
    """Translate a file with a translator engine."""
    state: CLIState = ctx.obj

    if is_local_path(input_) and not Path(input_).is_file():
        fail(f'Input file "{input_}" does not exist')

    echo(f'"{input_}" [{from_}] -> "{output}" [{to}] using "{engine}" engine.')
    try:
        provider = resolve_translator(state.settings, engine)
    except NotFoundError:
        fail(f'No translator engine "{engine}" is set in configuration')
    except FerryError as e:
        fail(e)

    try:
        translate_file(input_, output, from_, to, provider)
    except Exception as e:
        fail(e)
    echo("Done. Bye!")
