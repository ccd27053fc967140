"""Structured progress logging utilities."""
from __future__ import annotations

import json
import time
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional

from .models import FileProgress


def progress_payload(progress: FileProgress) -> Dict[str, Any]:
    """Flatten a progress event into the JSONL record written per file.

    ``lines_per_second`` is only present when the planner reported a
    positive elapsed time. Hinted plans never read the file, so their rate
    is meaningless and left out.
    """

    payload = asdict(progress)
    payload["file_path"] = str(progress.file_path)
    elapsed = progress.elapsed_seconds
    if elapsed and elapsed > 0 and not progress.hint_used:
        payload["lines_per_second"] = progress.total_lines / elapsed
    return payload


class ProgressLogger:
    """Appends one JSON line per planned file for later inspection."""

    def __init__(self, path: Optional[Path]) -> None:
        self.path = path
        if path:
            path.parent.mkdir(parents=True, exist_ok=True)

    def emit(self, progress: FileProgress) -> None:
        if not self.path:
            return
        payload = progress_payload(progress)
        payload["timestamp"] = time.time()
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload))
            handle.write("\n")
