"""Line-balanced split planning for a single file."""
from __future__ import annotations

import logging
from array import array
from dataclasses import replace
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple

from common.config import resolve_line_count_hint, resolve_split_count
from common.errors import NotAFileError, SplitIOError
from common.models import ByteRange, FileSplitPlan, FileStatus, SplitDescriptor, SplitSettings
from storage.filesystem import LOCAL_FILESYSTEM, FileSystem

from .boundary import get_convention
from .line_counter import LineCounter
from .records import iter_record_lengths

logger = logging.getLogger(__name__)


def compute_lines_per_split(total_lines: int, split_count: int) -> int:
    """Ceiling of ``total_lines / split_count`` in exact integer arithmetic."""

    split_count = max(1, split_count)
    total_lines = max(0, total_lines)
    return (total_lines + split_count - 1) // split_count


def compute_boundaries(record_lengths: Iterable[int], lines_per_split: int) -> Iterator[ByteRange]:
    """Group consecutive records into ranges of ``lines_per_split`` lines.

    The last range holds whatever is left. With ``lines_per_split`` of zero no
    range closes early, so all records end up in the remainder.
    """

    split_start = 0
    cumulative = 0
    lines_in_split = 0
    for length in record_lengths:
        cumulative += length
        lines_in_split += 1
        if lines_in_split == lines_per_split:
            yield ByteRange(start=split_start, end=cumulative)
            split_start = cumulative
            lines_in_split = 0
    if lines_in_split:
        yield ByteRange(start=split_start, end=cumulative)


class SplitPlanner:
    """Computes byte-range splits holding roughly equal numbers of lines."""

    def __init__(
        self,
        settings: Optional[SplitSettings] = None,
        *,
        filesystem: Optional[FileSystem] = None,
    ) -> None:
        self.settings = settings or SplitSettings()
        self.filesystem = filesystem or LOCAL_FILESYSTEM
        self.convention = get_convention(self.settings.boundary_convention)
        self.line_counter = LineCounter.from_settings(self.settings, filesystem=self.filesystem)

    def plan(self, path: Path, split_count: Optional[int] = None) -> List[SplitDescriptor]:
        return self.plan_file(path, split_count).splits

    def plan_file(self, path: Path, split_count: Optional[int] = None) -> FileSplitPlan:
        path = Path(path)
        status = self._status(path)
        settings = self.settings if split_count is None else replace(self.settings, number_of_chunks=split_count)
        requested = resolve_split_count(settings)
        hint = resolve_line_count_hint(settings)

        if settings.single_pass and hint is None:
            total_lines, lines_per_split, ranges = self._plan_single_pass(path, requested)
        else:
            total_lines = self.line_counter.count(path)
            lines_per_split = compute_lines_per_split(total_lines, requested)
            ranges = self._scan_boundaries(path, lines_per_split)

        splits = [
            self.convention.adjust(path, byte_range, index == 0)
            for index, byte_range in enumerate(ranges)
        ]
        logger.debug(
            "Planned %d split(s) for %s (lines=%d, lines_per_split=%d, hint=%s)",
            len(splits),
            path,
            total_lines,
            lines_per_split,
            hint,
        )
        return FileSplitPlan(
            file_path=path,
            total_lines=total_lines,
            lines_per_split=lines_per_split,
            file_length=status.length,
            splits=splits,
            hint_used=hint is not None,
        )

    def _status(self, path: Path) -> FileStatus:
        try:
            status = self.filesystem.status(path)
        except OSError as exc:
            raise SplitIOError(path, f"Cannot access {path}: {exc}") from exc
        if status.is_dir:
            raise NotAFileError(path)
        return status

    def _scan_boundaries(self, path: Path, lines_per_split: int) -> List[ByteRange]:
        try:
            with self.filesystem.open(path) as handle:
                lengths = iter_record_lengths(
                    handle,
                    delimiter=self.settings.record_delimiter,
                    chunk_size=self.settings.read_chunk_size,
                )
                return list(compute_boundaries(lengths, lines_per_split))
        except OSError as exc:
            raise SplitIOError(path, f"Failed to read {path} while placing split boundaries: {exc}") from exc

    def _plan_single_pass(self, path: Path, split_count: int) -> Tuple[int, int, List[ByteRange]]:
        try:
            with self.filesystem.open(path) as handle:
                lengths = array(
                    "q",
                    iter_record_lengths(
                        handle,
                        delimiter=self.settings.record_delimiter,
                        chunk_size=self.settings.read_chunk_size,
                    ),
                )
        except OSError as exc:
            raise SplitIOError(path, f"Failed to read {path} while placing split boundaries: {exc}") from exc
        total_lines = len(lengths)
        lines_per_split = compute_lines_per_split(total_lines, split_count)
        return total_lines, lines_per_split, list(compute_boundaries(lengths, lines_per_split))


def plan_splits(
    path: Path,
    settings: Optional[SplitSettings] = None,
    *,
    filesystem: Optional[FileSystem] = None,
) -> List[SplitDescriptor]:
    """Plan splits for ``path`` using ``settings`` (defaults: one split, full scan)."""

    return SplitPlanner(settings, filesystem=filesystem).plan(path)
