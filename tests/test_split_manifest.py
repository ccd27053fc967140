from __future__ import annotations

import json
import sqlite3
from pathlib import Path

import pytest

from common.errors import BackendError
from common.models import FileSplitPlan, SplitDescriptor, SplitSettings
from common.versioning import SPLIT_MANIFEST_VERSION
from storage import fetch_split_descriptors, load_split_manifest, persist_split_plans, save_split_manifest
from storage.sqlite_store import MIGRATIONS, initialize, record_audit_event


def _plan(path: Path, starts: list[tuple[int, int]]) -> FileSplitPlan:
    return FileSplitPlan(
        file_path=path,
        total_lines=10,
        lines_per_split=4,
        file_length=60,
        splits=[SplitDescriptor(path, start, length) for start, length in starts],
    )


def test_manifest_round_trip(tmp_path: Path) -> None:
    plan = _plan(Path("data/ten.txt"), [(0, 23), (23, 24), (47, 12)])
    manifest = tmp_path / "out" / "splits.json"
    save_split_manifest([plan], manifest, settings=SplitSettings(number_of_chunks=3))

    payload = json.loads(manifest.read_text(encoding="utf-8"))
    assert payload["version"] == SPLIT_MANIFEST_VERSION
    assert payload["split_count"] == 3
    assert payload["settings"]["record_delimiter"] is None
    assert load_split_manifest(manifest) == [plan]


def test_manifest_with_unknown_major_version_rejected(tmp_path: Path) -> None:
    manifest = tmp_path / "splits.json"
    manifest.write_text(json.dumps({"version": "9.0.0", "files": []}), encoding="utf-8")
    with pytest.raises(BackendError):
        load_split_manifest(manifest)


def test_persist_and_fetch_split_plans(tmp_path: Path) -> None:
    db_path = tmp_path / "splits.db"
    first = _plan(Path("a.txt"), [(0, 23), (23, 24)])
    second = _plan(Path("b.txt"), [(0, 59)])
    persist_split_plans(db_path, [first, second])

    assert fetch_split_descriptors(db_path) == first.splits + second.splits
    assert fetch_split_descriptors(db_path, Path("b.txt")) == second.splits


def test_persist_replaces_previous_splits(tmp_path: Path) -> None:
    db_path = tmp_path / "splits.db"
    persist_split_plans(db_path, [_plan(Path("a.txt"), [(0, 10), (10, 10), (20, 5)])])
    persist_split_plans(db_path, [_plan(Path("a.txt"), [(0, 24)])])
    assert fetch_split_descriptors(db_path) == [SplitDescriptor(Path("a.txt"), 0, 24)]


def test_migrations_and_audit_log(tmp_path: Path) -> None:
    db_path = tmp_path / "splits.db"
    initialize(db_path)
    initialize(db_path)
    record_audit_event(db_path, entity="split_plan", action="plan", detail="files=1")

    with sqlite3.connect(db_path) as conn:
        versions = [row[0] for row in conn.execute("SELECT version FROM schema_migrations")]
        audit = conn.execute("SELECT entity, action, detail FROM audit_log").fetchall()
    assert versions == [version for version, _ in MIGRATIONS]
    assert audit == [("split_plan", "plan", "files=1")]
