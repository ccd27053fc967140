"""SQLite persistence for split plans and audit trails."""
from __future__ import annotations

import sqlite3
import time
from pathlib import Path
from typing import List, Optional, Sequence

from common.models import FileSplitPlan, SplitDescriptor


SCHEMA_MIGRATIONS_TABLE = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version INTEGER PRIMARY KEY,
    applied_at REAL NOT NULL
)
"""

MIGRATIONS: List[tuple[int, List[str]]] = [
    (
        1,
        [
            """
            CREATE TABLE IF NOT EXISTS split_plans (
                file_path TEXT PRIMARY KEY,
                total_lines INTEGER NOT NULL,
                lines_per_split INTEGER NOT NULL,
                file_length INTEGER NOT NULL,
                hint_used INTEGER NOT NULL,
                updated_at REAL NOT NULL
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS splits (
                file_path TEXT NOT NULL,
                split_index INTEGER NOT NULL,
                start_offset INTEGER NOT NULL,
                length INTEGER NOT NULL,
                PRIMARY KEY (file_path, split_index),
                FOREIGN KEY(file_path) REFERENCES split_plans(file_path)
            )
            """,
            """
            CREATE TABLE IF NOT EXISTS audit_log (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                entity TEXT NOT NULL,
                action TEXT NOT NULL,
                detail TEXT,
                created_at REAL NOT NULL
            )
            """,
        ],
    ),
]


def initialize(db_path: Path) -> None:
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path) as conn:
        _apply_migrations(conn)


def persist_split_plans(db_path: Path, plans: Sequence[FileSplitPlan]) -> None:
    """Replace stored splits for every planned file."""

    initialize(db_path)
    now = time.time()
    with sqlite3.connect(db_path) as conn:
        for plan in plans:
            file_key = str(plan.file_path)
            conn.execute("DELETE FROM splits WHERE file_path = ?", (file_key,))
            conn.execute(
                """
                INSERT OR REPLACE INTO split_plans(
                    file_path, total_lines, lines_per_split, file_length, hint_used, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    file_key,
                    plan.total_lines,
                    plan.lines_per_split,
                    plan.file_length,
                    int(plan.hint_used),
                    now,
                ),
            )
            conn.executemany(
                "INSERT INTO splits(file_path, split_index, start_offset, length) VALUES (?, ?, ?, ?)",
                [
                    (file_key, index, split.start, split.length)
                    for index, split in enumerate(plan.splits)
                ],
            )
        conn.commit()


def fetch_split_descriptors(db_path: Path, file_path: Optional[Path] = None) -> List[SplitDescriptor]:
    initialize(db_path)
    query = "SELECT file_path, start_offset, length FROM splits"
    params: tuple = ()
    if file_path is not None:
        query += " WHERE file_path = ?"
        params = (str(file_path),)
    query += " ORDER BY file_path, split_index"
    with sqlite3.connect(db_path) as conn:
        rows = conn.execute(query, params).fetchall()
    return [
        SplitDescriptor(file_path=Path(row[0]), start=int(row[1]), length=int(row[2]))
        for row in rows
    ]


def record_audit_event(db_path: Path, entity: str, action: str, detail: str | None = None) -> None:
    initialize(db_path)
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            "INSERT INTO audit_log(entity, action, detail, created_at) VALUES (?, ?, ?, ?)",
            (entity, action, detail, time.time()),
        )
        conn.commit()


def _apply_migrations(conn: sqlite3.Connection) -> None:
    conn.execute(SCHEMA_MIGRATIONS_TABLE)
    applied_versions = {
        row[0]
        for row in conn.execute("SELECT version FROM schema_migrations")
    }
    for version, statements in sorted(MIGRATIONS, key=lambda item: item[0]):
        if version in applied_versions:
            continue
        for statement in statements:
            conn.execute(statement)
        conn.execute(
            "INSERT INTO schema_migrations(version, applied_at) VALUES (?, ?)",
            (version, time.time()),
        )
        conn.commit()
