"""Tests for the file translation task."""

from unittest.mock import MagicMock

import pytest

from ferry_core.exceptions import SourceUnavailableError
from ferry_worker.tasks.translate_file import translate_file


def test_translate_file_writes_output(tmp_path):
    """Test that the whole content is sent in one call and written out."""
    source = tmp_path / "in.html"
    source.write_text("<p>Hello</p>\n<p>World</p>\n", encoding="utf-8")
    output = tmp_path / "out.html"
    provider = MagicMock()
    provider.translate_batch.return_value = ["<p>Ciao</p>\n<p>Mondo</p>\n"]

    result = translate_file(str(source), output, "en", "it", provider)

    provider.translate_batch.assert_called_once_with(
        ["<p>Hello</p>\n<p>World</p>\n"], "en", "it"
    )
    assert result == "<p>Ciao</p>\n<p>Mondo</p>\n"
    assert output.read_text(encoding="utf-8") == result


def test_translate_file_missing_input(tmp_path):
    """Test that an unreadable input fails before calling the engine."""
    provider = MagicMock()

    with pytest.raises(SourceUnavailableError, match="Cannot open file"):
        translate_file(str(tmp_path / "missing.txt"), tmp_path / "out.txt", "en", "it", provider)

    provider.translate_batch.assert_not_called()
    assert not (tmp_path / "out.txt").exists()
