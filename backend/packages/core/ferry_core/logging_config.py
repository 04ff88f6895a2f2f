"""
Logging configuration.

Sets up the ``ferry`` logger hierarchy. Structured context is passed with
``extra={...}`` and rendered after the message as ``key=value`` pairs.
"""

import logging
import sys

ROOT_LOGGER = "ferry"

# Attributes every LogRecord carries; anything else came in through ``extra``.
_RESERVED = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime"}


class ExtraFormatter(logging.Formatter):
    """Formatter appending ``extra`` fields to the message."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        extras = {k: v for k, v in vars(record).items() if k not in _RESERVED}
        if not extras:
            return message
        rendered = " ".join(f"{key}={value!r}" for key, value in sorted(extras.items()))
        return f"{message} | {rendered}"


def init_logging(level: str | int = "INFO") -> logging.Logger:
    """
    Initialize the ``ferry`` logger.

    Safe to call more than once; the handler is installed only the first time.
    Later calls update the level and point the handler at the current
    ``sys.stderr``, which test runners swap between invocations.

    Args:
        level: Log level name or number.

    Returns:
        The root ``ferry`` logger.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
    logger.setLevel(level)

    handler = next((h for h in logger.handlers if getattr(h, "_ferry_handler", False)), None)
    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            ExtraFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
        handler._ferry_handler = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
        logger.propagate = False
    else:
        # Not setStream(): it flushes the previous stream, which may be closed
        handler.stream = sys.stderr  # type: ignore[attr-defined]
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger inside the ``ferry`` hierarchy.

    Args:
        name: Module name, usually ``__name__``.

    Returns:
        Logger instance.
    """
    # ferry_core.services.x -> ferry.core.services.x
    if name.startswith(f"{ROOT_LOGGER}_"):
        name = f"{ROOT_LOGGER}.{name[len(ROOT_LOGGER) + 1:]}"
    elif name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
