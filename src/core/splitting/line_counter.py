"""Chunked line counting with bounded memory usage."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from common.config import resolve_line_count_hint
from common.errors import LineCountError
from common.models import DEFAULT_READ_CHUNK_SIZE, DEFAULT_RECORD_DELIMITER, SplitSettings
from storage.filesystem import LOCAL_FILESYSTEM, FileSystem

from .records import iter_record_lengths

logger = logging.getLogger(__name__)


class LineCounter:
    """Counts delimiter-terminated lines without materializing the entire file.

    When a line count hint is supplied it is trusted as-is and the file is
    never opened.
    """

    def __init__(
        self,
        *,
        hint: Optional[int] = None,
        delimiter: Optional[bytes] = DEFAULT_RECORD_DELIMITER,
        chunk_size: int = DEFAULT_READ_CHUNK_SIZE,
        filesystem: Optional[FileSystem] = None,
    ) -> None:
        self.hint = hint if hint is not None and hint >= 0 else None
        self.delimiter = delimiter
        self.chunk_size = max(1, chunk_size)
        self.filesystem = filesystem or LOCAL_FILESYSTEM

    @classmethod
    def from_settings(cls, settings: SplitSettings, *, filesystem: Optional[FileSystem] = None) -> "LineCounter":
        return cls(
            hint=resolve_line_count_hint(settings),
            delimiter=settings.record_delimiter,
            chunk_size=settings.read_chunk_size,
            filesystem=filesystem,
        )

    def count(self, path: Path) -> int:
        if self.hint is not None:
            logger.debug("Using line count hint %d for %s", self.hint, path)
            return self.hint
        try:
            with self.filesystem.open(path) as handle:
                if self.delimiter is None:
                    return self._count_line_ends(handle)
                if len(self.delimiter) == 1:
                    return self._count_single_byte(handle)
                return sum(
                    1
                    for _ in iter_record_lengths(
                        handle, delimiter=self.delimiter, chunk_size=self.chunk_size
                    )
                )
        except OSError as exc:
            raise LineCountError(path, f"Failed to count lines in {path}: {exc}") from exc

    def _count_single_byte(self, handle) -> int:
        line_count = 0
        last_char = b""
        while True:
            chunk = handle.read(self.chunk_size)
            if not chunk:
                break
            line_count += chunk.count(self.delimiter)
            last_char = chunk[-1:]
        if last_char and last_char != self.delimiter:
            line_count += 1
        return line_count

    def _count_line_ends(self, handle) -> int:
        line_count = 0
        last_char = b""
        while True:
            chunk = handle.read(self.chunk_size)
            if not chunk:
                break
            line_count += chunk.count(b"\n") + chunk.count(b"\r") - chunk.count(b"\r\n")
            if last_char == b"\r" and chunk[:1] == b"\n":
                # \r\n split across two reads
                line_count -= 1
            last_char = chunk[-1:]
        if last_char and last_char not in (b"\r", b"\n"):
            line_count += 1
        return line_count
