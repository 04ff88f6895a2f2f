"""
Source stream resolution.

Opens read-only byte streams from standard input, local paths, URLs whose
scheme has a registered stream handler, or registered filesystem mounts.
"""

import io
import sys
from collections.abc import Callable, Iterator
from typing import BinaryIO
from urllib.parse import unquote, urlsplit

import httpx

from ferry_core.exceptions import SourceUnavailableError

_HTTP_TIMEOUT = 30.0


class SourceStream:
    """
    Read-only byte stream plus its release hook.

    The hook runs at most once, either through ``release()`` or when leaving
    the ``with`` block. Standard input is never closed.
    """

    def __init__(
        self,
        stream: BinaryIO,
        release: Callable[[], None] | None = None,
        path: str = "",
        local: bool = False,
    ) -> None:
        self.stream = stream
        self.path = path
        self.local = local
        self._release = release
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        if self._release is not None:
            self._release()

    def __enter__(self) -> "SourceStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:  # type: ignore[no-untyped-def]
        self.release()
        return False


StreamHandler = Callable[[str], SourceStream]
MountOpener = Callable[[str], BinaryIO]


class _ChunkReader(io.RawIOBase):
    """Raw reader over an iterator of byte chunks."""

    def __init__(self, chunks: Iterator[bytes]) -> None:
        self._chunks = chunks
        self._pending = b""

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:  # type: ignore[no-untyped-def]
        while not self._pending:
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return 0
        size = min(len(buffer), len(self._pending))
        buffer[:size] = self._pending[:size]
        self._pending = self._pending[size:]
        return size


def _open_local(path: str, display_path: str | None = None) -> SourceStream:
    try:
        fh = open(path, "rb")  # noqa: SIM115
    except OSError as e:
        raise SourceUnavailableError(f"Cannot open file: {display_path or path}") from e
    return SourceStream(fh, fh.close, display_path or path, local=True)


def _open_file_url(url: str) -> SourceStream:
    return _open_local(unquote(urlsplit(url).path), url)


def _open_http(url: str) -> SourceStream:
    client = httpx.Client(follow_redirects=True, timeout=_HTTP_TIMEOUT)
    try:
        response = client.send(client.build_request("GET", url), stream=True)
    except httpx.HTTPError as e:
        client.close()
        raise SourceUnavailableError(f"Cannot open file: {url}") from e
    if response.is_error:
        response.close()
        client.close()
        raise SourceUnavailableError(
            f"Cannot open file: {url} (HTTP {response.status_code})"
        )

    def release() -> None:
        response.close()
        client.close()

    stream = io.BufferedReader(_ChunkReader(response.iter_bytes()))
    return SourceStream(stream, release, url)  # type: ignore[arg-type]


_stream_handlers: dict[str, StreamHandler] = {
    "file": _open_file_url,
    "http": _open_http,
    "https": _open_http,
}
_mounts: dict[str, MountOpener] = {}


def register_stream_handler(scheme: str, handler: StreamHandler) -> None:
    """Register a stream handler for URLs with ``scheme``."""
    _stream_handlers[scheme] = handler


def register_mount(scheme: str, opener: MountOpener) -> None:
    """
    Register a filesystem mount.

    ``opener`` receives the location after ``scheme://`` and returns a
    binary stream; it should raise ``OSError`` when the file cannot be read.
    """
    _mounts[scheme] = opener


def unregister_mount(scheme: str) -> None:
    """Remove a filesystem mount, if registered."""
    _mounts.pop(scheme, None)


def open_source(path: str) -> SourceStream:
    """
    Open a read-only byte stream.

    Possible sources are:
        - ``-`` for standard input
        - local paths
        - URLs with a registered stream handler (``file``, ``http``, ``https``)
        - locations on a registered filesystem mount (``<mount>://<location>``)

    Args:
        path: Source descriptor.

    Returns:
        Source stream; callers must release it.

    Raises:
        SourceUnavailableError: If the source cannot be opened.
    """
    if path == "-":
        return SourceStream(sys.stdin.buffer, None, path)

    if "://" not in path:
        return _open_local(path)

    scheme, location = path.split("://", 1)
    handler = _stream_handlers.get(scheme)
    if handler is not None:
        return handler(path)

    opener = _mounts.get(scheme)
    if opener is None:
        raise SourceUnavailableError(
            "Unable to resolve the filesystem mount because the mount "
            f"({scheme}) was not registered."
        )
    try:
        stream = opener(location)
    except OSError as e:
        raise SourceUnavailableError(f"Unable to read file from location: {path}.") from e
    return SourceStream(stream, stream.close, path)
