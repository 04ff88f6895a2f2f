"""
Import command.

Imports objects or translations from a CSV or XML source:

    ferry import -f articles.csv -t documents -p my-folder
    ferry import -f translations.csv -t translations --dryrun
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from ferry_core import init_logging
from ferry_core.exceptions import FerryError, InvalidArgumentError
from ferry_core.schemas import ImportOptions
from ferry_core.services import ImportService
from ferry_database.session import get_session_context
from ferry_sources import SourceFormat

from .._state import CLIState
from .._utils import echo, fail, is_local_path

RULE = "---------------------------------------"


def _parse_mapping(raw: str | None) -> dict[str, str]:
    if not raw:
        return {}
    try:
        mapping = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidArgumentError(f"Invalid mapping: {e}") from e
    if not isinstance(mapping, dict):
        raise InvalidArgumentError("Invalid mapping: expected a JSON object")
    return {str(k): str(v) for k, v in mapping.items()}


def import_command(
    ctx: typer.Context,
    file: Annotated[str, typer.Option("--file", "-f", help="Source file, '-' for stdin, or URL")],
    type_: Annotated[
        str, typer.Option("--type", "-t", help="Object type to import, or 'translations'")
    ],
    parent: Annotated[
        str | None, typer.Option("--parent", "-p", help="Destination folder uname or id")
    ] = None,
    dry_run: Annotated[bool, typer.Option("--dryrun", "-d", help="Dry run mode")] = False,
    source_format: Annotated[
        SourceFormat, typer.Option("--format", help="Source format")
    ] = SourceFormat.CSV,
    element: Annotated[str, typer.Option("--element", help="XML record element name")] = "post",
    no_assoc: Annotated[
        bool, typer.Option("--no-assoc", help="CSV rows indexed by column position")
    ] = False,
    mapping: Annotated[
        str | None, typer.Option("--mapping", help='JSON field mapping, e.g. {"name": "title"}')
    ] = None,
    clean_html: Annotated[
        list[str] | None,
        typer.Option("--clean-html", help="Field whose HTML attributes are stripped (repeatable)"),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Print error details")] = False,
) -> None:
    """Import objects or translations."""
    state: CLIState = ctx.obj
    settings = state.settings

    if verbose:
        init_logging("DEBUG")

    if is_local_path(file) and not Path(file).is_file():
        fail(f'Bad source file name "{file}"')

    try:
        options = ImportOptions(
            filename=file,
            type=type_,
            parent=parent,
            dry_run=dry_run,
            source_format=source_format,
            element=element,
            assoc=not no_assoc,
            dialect=settings.import_defaults.csv,
            mapping=_parse_mapping(mapping),
            clean_html=clean_html or [],
            status=settings.import_defaults.status,
            actor=settings.actor,
        )
    except FerryError as e:
        fail(e)

    echo(RULE)
    echo("Start")
    echo(f"File: {file}")
    echo(f"Type: {type_}")
    echo(f"Parent: {parent or 'none'}")
    echo(f"Dry run mode: {'yes' if dry_run else 'no'}")

    try:
        with get_session_context() as session:
            result = ImportService(session, options).run()
    except FerryError as e:
        fail(e)

    if verbose:
        for message in result.errors_details:
            echo(f"Error: {message}", style="red")
    echo(result.summary())
    echo("Done, bye!")
    echo(RULE)
