"""File translation task.

Translates the whole content of a text file in a single engine call.
"""

from pathlib import Path

from ferry_core import get_logger
from ferry_core.services.translation_providers import TranslationProvider
from ferry_sources import open_source

logger = get_logger(__name__)


def translate_file(
    input_path: str,
    output_path: str | Path,
    source: str,
    target: str,
    provider: TranslationProvider,
) -> str:
    """
    Translate a file and write the result.

    Args:
        input_path: Source descriptor of the input (see ``open_source``).
        output_path: File written with the translation.
        source: Source language code.
        target: Target language code.
        provider: Translator engine.

    Returns:
        The translated content.

    Raises:
        SourceUnavailableError: If the input cannot be read.
    """
    with open_source(input_path) as source_stream:
        content = source_stream.stream.read().decode("utf-8")

    translated = provider.translate_batch([content], source, target)[0]
    Path(output_path).write_text(translated, encoding="utf-8")
    logger.info(
        "File translated",
        extra={"input": input_path, "output": str(output_path), "chars": len(translated)},
    )
    return translated
