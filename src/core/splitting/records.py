"""Streaming record scanner over binary file handles."""
from __future__ import annotations

import re
from typing import BinaryIO, Iterator, Optional

from common.models import DEFAULT_READ_CHUNK_SIZE, DEFAULT_RECORD_DELIMITER

LINE_END = re.compile(rb"\r\n|\r|\n")


def iter_record_lengths(
    handle: BinaryIO,
    *,
    delimiter: Optional[bytes] = DEFAULT_RECORD_DELIMITER,
    chunk_size: int = DEFAULT_READ_CHUNK_SIZE,
) -> Iterator[int]:
    """Yield the byte length of every record, delimiter included.

    Without a delimiter, lines end at ``\\r``, ``\\n`` or ``\\r\\n``. A trailing
    record without a delimiter is yielded as well.
    """

    if delimiter is None:
        return iter_line_lengths(handle, chunk_size=chunk_size)
    if not delimiter:
        raise ValueError("record delimiter must not be empty")
    return _iter_delimited_lengths(handle, delimiter, max(1, chunk_size))


def iter_line_lengths(handle: BinaryIO, *, chunk_size: int = DEFAULT_READ_CHUNK_SIZE) -> Iterator[int]:
    chunk_size = max(1, chunk_size)
    record_start = 0
    base = 0
    pending_cr = False
    while True:
        chunk = handle.read(chunk_size)
        if not chunk:
            break
        pos = 0
        if pending_cr:
            # \r closed the previous read; a leading \n belongs to it
            pos = 1 if chunk[:1] == b"\n" else 0
            record_end = base + pos
            yield record_end - record_start
            record_start = record_end
            pending_cr = False
        for match in LINE_END.finditer(chunk, pos):
            if match.end() == len(chunk) and match.group() == b"\r":
                pending_cr = True
                break
            record_end = base + match.end()
            yield record_end - record_start
            record_start = record_end
        base += len(chunk)
    if base > record_start:
        yield base - record_start


def _iter_delimited_lengths(handle: BinaryIO, delimiter: bytes, chunk_size: int) -> Iterator[int]:
    # delimiters straddling two reads are found by carrying the unscanned tail
    dlen = len(delimiter)
    record_start = 0
    base = 0
    tail = b""
    while True:
        chunk = handle.read(chunk_size)
        if not chunk:
            break
        buffer = tail + chunk if tail else chunk
        pos = 0
        idx = buffer.find(delimiter)
        while idx != -1:
            record_end = base + idx + dlen
            yield record_end - record_start
            record_start = record_end
            pos = idx + dlen
            idx = buffer.find(delimiter, pos)
        keep = max(pos, len(buffer) - (dlen - 1))
        tail = buffer[keep:]
        base += keep
    total = base + len(tail)
    if total > record_start:
        yield total - record_start
