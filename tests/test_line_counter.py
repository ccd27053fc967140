from __future__ import annotations

import io
from pathlib import Path

import pytest

from common.errors import ErrorCode, LineCountError
from common.models import FileStatus, SplitSettings
from core.splitting.line_counter import LineCounter
from core.splitting.records import iter_record_lengths


def test_line_counter_counts_lines(tmp_path):
    payload = "alpha\nbravo\ncharlie"
    path = tmp_path / "sample.txt"
    path.write_text(payload, encoding="utf-8")
    counter = LineCounter()
    assert counter.count(path) == 3


def test_line_counter_trailing_delimiter_not_counted_twice(tmp_path):
    path = tmp_path / "sample.txt"
    path.write_bytes(b"a\nb\n")
    assert LineCounter(chunk_size=1).count(path) == 2


def test_line_counter_empty_file(tmp_path):
    path = tmp_path / "empty.txt"
    path.write_bytes(b"")
    assert LineCounter().count(path) == 0


def test_line_counter_uses_hint_without_opening_file(tmp_path):
    counter = LineCounter(hint=42)
    assert counter.count(tmp_path / "does-not-exist.txt") == 42


def test_negative_hint_falls_back_to_scan(tmp_path):
    path = tmp_path / "sample.txt"
    path.write_bytes(b"x\ny\n")
    counter = LineCounter.from_settings(SplitSettings(number_of_lines=-1))
    assert counter.hint is None
    assert counter.count(path) == 2


def test_line_counter_multi_byte_delimiter(tmp_path):
    path = tmp_path / "records.dat"
    path.write_bytes(b"aa||bbb||c")
    counter = LineCounter(delimiter=b"||", chunk_size=3)
    assert counter.count(path) == 3


def test_line_counter_missing_file_raises(tmp_path):
    with pytest.raises(LineCountError) as exc:
        LineCounter().count(tmp_path / "missing.txt")
    assert exc.value.code == ErrorCode.IO_ERROR


class _FailingStream(io.BytesIO):
    def __init__(self, payload: bytes) -> None:
        super().__init__(payload)
        self.reads = 0

    def read(self, size: int = -1) -> bytes:  # type: ignore[override]
        self.reads += 1
        if self.reads > 1:
            raise OSError("device went away")
        return super().read(size)


class _FailingFileSystem:
    def __init__(self) -> None:
        self.streams: list[_FailingStream] = []

    def status(self, path: Path) -> FileStatus:
        return FileStatus(path=path, is_dir=False, length=12)

    def open(self, path: Path) -> _FailingStream:
        stream = _FailingStream(b"one\ntwo\nthree\n")
        self.streams.append(stream)
        return stream


def test_read_failure_propagates_and_closes_handle():
    filesystem = _FailingFileSystem()
    counter = LineCounter(chunk_size=4, filesystem=filesystem)
    with pytest.raises(LineCountError):
        counter.count(Path("remote.txt"))
    assert filesystem.streams and filesystem.streams[0].closed


def test_record_lengths_handle_delimiter_across_reads():
    handle = io.BytesIO(b"aa||bbb||c")
    assert list(iter_record_lengths(handle, delimiter=b"||", chunk_size=3)) == [4, 5, 1]


def test_record_lengths_keep_carriage_returns():
    handle = io.BytesIO(b"a\r\nbb\r\n")
    assert list(iter_record_lengths(handle, chunk_size=2)) == [3, 4]


def test_record_lengths_reject_empty_delimiter():
    with pytest.raises(ValueError):
        list(iter_record_lengths(io.BytesIO(b"abc"), delimiter=b""))


def test_line_counter_treats_lone_carriage_return_as_line_end(tmp_path):
    path = tmp_path / "classic-mac.txt"
    path.write_bytes(b"a\rb\rc\r")
    assert LineCounter(chunk_size=2).count(path) == 3


def test_line_counter_crlf_across_reads_counts_once(tmp_path):
    path = tmp_path / "windows.txt"
    # chunk_size=2 puts the first \r and \n in different reads
    path.write_bytes(b"a\r\nb\r\nc")
    assert LineCounter(chunk_size=2).count(path) == 3
    assert LineCounter(chunk_size=1).count(path) == 3


def test_line_counter_mixed_line_endings(tmp_path):
    path = tmp_path / "mixed.txt"
    path.write_bytes(b"one\ntwo\r\nthree\rfour")
    assert LineCounter(chunk_size=3).count(path) == 4


def test_explicit_newline_delimiter_ignores_lone_carriage_return(tmp_path):
    path = tmp_path / "classic-mac.txt"
    path.write_bytes(b"a\rb\rc\r")
    assert LineCounter(delimiter=b"\n", chunk_size=2).count(path) == 1


def test_record_lengths_split_on_lone_carriage_return():
    handle = io.BytesIO(b"a\rb\rc\r")
    assert list(iter_record_lengths(handle, chunk_size=2)) == [2, 2, 2]


def test_record_lengths_join_crlf_across_reads():
    handle = io.BytesIO(b"a\r\nb\r\nc")
    assert list(iter_record_lengths(handle, chunk_size=2)) == [3, 3, 1]
