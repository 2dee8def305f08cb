"""Container format detection and decoder dispatch."""

# Module responsibilities:
# - Normalize paths, byte strings and binary streams into a ResolvedSource.
# - Sniff the leading signature once, before any sheet is touched, to pick the decoder.
# - Route ResolvedSources to the matching open_sheet_rows() implementation.

from __future__ import annotations

import io
import os
from pathlib import Path
from typing import BinaryIO, Callable, ContextManager, Iterator, Mapping, Optional, Union

from . import xls_reader, xlsx_reader
from .errors import OpenError
from .schema import ContainerFormat, RawRow, ResolvedSource
from .utils.log import get_logger

logger = get_logger("dispatch")

ZIP_SIGNATURE = b"PK\x03\x04"
OLE2_SIGNATURE = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"
SNIFF_LENGTH = len(OLE2_SIGNATURE)
LEGACY_SUFFIX = ".xls"

Source = Union[str, os.PathLike, bytes, bytearray, memoryview, BinaryIO]
Decoder = Callable[[ResolvedSource, int], ContextManager[Iterator[RawRow]]]

DECODERS: Mapping[ContainerFormat, Decoder] = {
    ContainerFormat.XLSX: xlsx_reader.open_sheet_rows,
    ContainerFormat.XLS: xls_reader.open_sheet_rows,
}


def sniff_container(header: bytes) -> Optional[ContainerFormat]:
    """Return the container family announced by a file's leading bytes."""

    if header.startswith(ZIP_SIGNATURE):
        return ContainerFormat.XLSX
    if header.startswith(OLE2_SIGNATURE):
        return ContainerFormat.XLS
    return None


def _require_container(header: bytes, label: str) -> ContainerFormat:
    container = sniff_container(header)
    if container is None:
        raise OpenError(f"Unrecognized spreadsheet container: {label}")
    return container


def _seekable_stream(stream: BinaryIO) -> BinaryIO:
    seekable = getattr(stream, "seekable", None)
    if seekable is not None and seekable():
        return stream
    return io.BytesIO(stream.read())


def _peek(stream: BinaryIO) -> bytes:
    position = stream.tell()
    try:
        return stream.read(SNIFF_LENGTH)
    finally:
        stream.seek(position)


def resolve_source(source: Source, container: Optional[ContainerFormat] = None) -> ResolvedSource:
    """Resolve a caller-supplied source and decide which decoder reads it.

    Args:
        source: Filesystem path, raw bytes, or a binary file-like object.
        container: Explicit container family; skips detection when given.

    Returns:
        ResolvedSource tagged with the chosen container family.

    Raises:
        OpenError: When the source is missing, unreadable or not a spreadsheet.
    """

    if isinstance(source, (str, os.PathLike)):
        path = Path(source)
        if not path.is_file():
            raise OpenError(f"Source workbook not found: {path}")
        if container is None and path.suffix.lower() == LEGACY_SUFFIX:
            container = ContainerFormat.XLS
        if container is None:
            try:
                with path.open("rb") as fh:
                    header = fh.read(SNIFF_LENGTH)
            except OSError as exc:
                raise OpenError(f"Cannot read workbook {path}: {exc}") from exc
            container = _require_container(header, str(path))
        logger.debug("Container resolved", extra={"source": str(path), "container": container.value})
        return ResolvedSource(container=container, label=str(path), path=path)

    if isinstance(source, (bytes, bytearray, memoryview)):
        stream: BinaryIO = io.BytesIO(bytes(source))
        label = "<bytes>"
    elif hasattr(source, "read"):
        stream = source
        label = str(getattr(source, "name", "<stream>"))
    else:
        raise OpenError(f"Unsupported workbook source type: {type(source).__name__}")

    try:
        stream = _seekable_stream(stream)
        if container is None:
            container = _require_container(_peek(stream), label)
    except (OSError, ValueError) as exc:
        raise OpenError(f"Cannot read workbook stream {label}: {exc}") from exc
    logger.debug("Container resolved", extra={"source": label, "container": container.value})
    return ResolvedSource(container=container, label=label, stream=stream)


def open_sheet_rows(source: ResolvedSource, sheet_index: int) -> ContextManager[Iterator[RawRow]]:
    """Open the decoder matching ``source.container`` for sheet ``sheet_index``."""

    return DECODERS[source.container](source, sheet_index)
