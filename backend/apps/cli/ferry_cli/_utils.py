"""
Console helpers shared by the commands.
"""

from typing import NoReturn

import typer
from rich.console import Console

from ferry_core.exceptions import UserAbortError

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_ABORT = 3

console = Console()
err_console = Console(stderr=True)


def echo(message: str, style: str | None = None) -> None:
    """Print a plain line; brackets in ``message`` are not markup."""
    console.print(message, style=style, markup=False, highlight=False, soft_wrap=True)


def fail(error: Exception | str) -> NoReturn:
    """Report ``error`` on stderr and exit with the matching code."""
    if isinstance(error, UserAbortError):
        err_console.print(str(error), markup=False, highlight=False, soft_wrap=True)
        raise typer.Exit(code=EXIT_ABORT)
    err_console.print(str(error), style="bold red", markup=False, highlight=False, soft_wrap=True)
    raise typer.Exit(code=EXIT_ERROR)


def is_local_path(path: str) -> bool:
    return path != "-" and "://" not in path
