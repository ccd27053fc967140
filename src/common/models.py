"""Data models shared across the CLI, core planner, and storage layers."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

# None ends lines at \r, \n or \r\n
DEFAULT_RECORD_DELIMITER: Optional[bytes] = None
DEFAULT_BOUNDARY_CONVENTION = "reader-skip"
DEFAULT_READ_CHUNK_SIZE = 1_048_576


@dataclass(frozen=True, slots=True)
class SplitDescriptor:
    """Byte range of a single file assigned to one record reader."""

    file_path: Path
    start: int
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length

    def to_dict(self) -> Dict[str, object]:
        return {"file_path": str(self.file_path), "start": self.start, "length": self.length}

    @classmethod
    def from_dict(cls, payload: Dict[str, object]) -> "SplitDescriptor":
        return cls(
            file_path=Path(str(payload["file_path"])),
            start=int(payload["start"]),
            length=int(payload["length"]),
        )


@dataclass(frozen=True, slots=True)
class ByteRange:
    """Half-open range ``[start, end)`` covering whole records."""

    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start


@dataclass(frozen=True, slots=True)
class FileStatus:
    """What the filesystem reports about a split target."""

    path: Path
    is_dir: bool
    length: int


@dataclass(slots=True)
class FileSplitPlan:
    """Outcome of planning a single file."""

    file_path: Path
    total_lines: int
    lines_per_split: int
    file_length: int
    splits: List[SplitDescriptor] = field(default_factory=list)
    hint_used: bool = False

    def to_dict(self) -> Dict[str, object]:
        """Serialize to a JSON-friendly dict."""

        return {
            "file_path": str(self.file_path),
            "total_lines": self.total_lines,
            "lines_per_split": self.lines_per_split,
            "file_length": self.file_length,
            "hint_used": self.hint_used,
            "splits": [split.to_dict() for split in self.splits],
        }

    @classmethod
    def from_dict(cls, payload: Dict[str, object]) -> "FileSplitPlan":
        return cls(
            file_path=Path(str(payload["file_path"])),
            total_lines=int(payload.get("total_lines", 0)),
            lines_per_split=int(payload.get("lines_per_split", 0)),
            file_length=int(payload.get("file_length", 0)),
            splits=[SplitDescriptor.from_dict(item) for item in payload.get("splits", [])],
            hint_used=bool(payload.get("hint_used", False)),
        )


@dataclass(slots=True)
class FileProgress:
    """Progress payload reported back to the CLI while planning many files."""

    file_path: Path
    processed_lines: int
    total_lines: int
    current_phase: str
    split_count: int = 0
    lines_per_split: int = 0
    file_length: int = 0
    hint_used: bool = False
    elapsed_seconds: Optional[float] = None


@dataclass(frozen=True, slots=True)
class SplitSettings:
    """Resolved knobs for one planning run.

    ``number_of_lines`` is the line count hint; ``None`` or a negative value
    means the file is scanned instead.
    """

    number_of_chunks: int = 1
    number_of_lines: Optional[int] = None
    record_delimiter: Optional[bytes] = DEFAULT_RECORD_DELIMITER
    boundary_convention: str = DEFAULT_BOUNDARY_CONVENTION
    read_chunk_size: int = DEFAULT_READ_CHUNK_SIZE
    single_pass: bool = False


@dataclass(slots=True)
class GlobalSettings:
    """Global knobs that apply across profiles."""

    encoding: str = "utf-8"
    record_delimiter: Optional[str] = None
    boundary_convention: str = DEFAULT_BOUNDARY_CONVENTION
    read_chunk_size: int = DEFAULT_READ_CHUNK_SIZE


@dataclass(slots=True)
class ProfileSettings:
    """Profile-specific split targets and parallelism."""

    description: str
    number_of_chunks: int = 1
    number_of_lines: Optional[int] = None
    max_parallel_files: int = 1
    single_pass: bool = False


@dataclass(slots=True)
class RuntimeConfig:
    """Resolved configuration for a single run."""

    global_settings: GlobalSettings
    profile: ProfileSettings

    def split_settings(self) -> SplitSettings:
        return SplitSettings(
            number_of_chunks=self.profile.number_of_chunks,
            number_of_lines=self.profile.number_of_lines,
            record_delimiter=self._encoded_delimiter(),
            boundary_convention=self.global_settings.boundary_convention,
            read_chunk_size=self.global_settings.read_chunk_size,
            single_pass=self.profile.single_pass,
        )

    def _encoded_delimiter(self) -> Optional[bytes]:
        delimiter = self.global_settings.record_delimiter
        if delimiter is None:
            return None
        return delimiter.encode(self.global_settings.encoding)
