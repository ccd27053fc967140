"""Boundary conventions turning raw byte ranges into split descriptors.

Record readers that always discard the first (possibly partial) line of a
split, except for the split starting at byte 0, need every non-first split to
begin one byte early so that the discarded "line" is just the previous
delimiter. The ``reader-skip`` convention produces exactly that layout; the
``exact`` convention hands out the raw ranges untouched.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict

from common.errors import BackendError, ErrorCode
from common.models import ByteRange, SplitDescriptor

Adjust = Callable[[Path, ByteRange, bool], SplitDescriptor]
Restore = Callable[[SplitDescriptor, bool], ByteRange]


def adjust_for_reader_skip(file_path: Path, byte_range: ByteRange, is_first: bool) -> SplitDescriptor:
    if is_first:
        return SplitDescriptor(file_path=file_path, start=byte_range.start, length=byte_range.length - 1)
    return SplitDescriptor(file_path=file_path, start=byte_range.start - 1, length=byte_range.length)


def restore_reader_skip(descriptor: SplitDescriptor, is_first: bool) -> ByteRange:
    if is_first:
        return ByteRange(start=descriptor.start, end=descriptor.start + descriptor.length + 1)
    return ByteRange(start=descriptor.start + 1, end=descriptor.start + 1 + descriptor.length)


def adjust_exact(file_path: Path, byte_range: ByteRange, is_first: bool) -> SplitDescriptor:
    return SplitDescriptor(file_path=file_path, start=byte_range.start, length=byte_range.length)


def restore_exact(descriptor: SplitDescriptor, is_first: bool) -> ByteRange:
    return ByteRange(start=descriptor.start, end=descriptor.end)


@dataclass(frozen=True, slots=True)
class BoundaryConvention:
    name: str
    adjust: Adjust
    restore: Restore


CONVENTIONS: Dict[str, BoundaryConvention] = {
    "reader-skip": BoundaryConvention("reader-skip", adjust_for_reader_skip, restore_reader_skip),
    "exact": BoundaryConvention("exact", adjust_exact, restore_exact),
}


def get_convention(name: str) -> BoundaryConvention:
    try:
        return CONVENTIONS[name.lower()]
    except KeyError as exc:
        allowed = ", ".join(sorted(CONVENTIONS))
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"Unknown boundary convention '{name}'. Allowed: {allowed}",
        ) from exc
