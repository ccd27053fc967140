"""Job-level split planning across many input files."""
from __future__ import annotations

import logging
import time
from concurrent.futures import ProcessPoolExecutor
from dataclasses import asdict
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from common.models import FileProgress, FileSplitPlan, SplitSettings
from common.progress import ProgressLogger
from storage.filesystem import FileSystem

from .split_planner import SplitPlanner

ProgressCallback = Optional[Callable[[FileProgress], None]]

logger = logging.getLogger(__name__)


def is_hidden(name: str) -> bool:
    return name.startswith((".", "_"))


def collect_input_files(targets: Iterable[Path]) -> List[Path]:
    """Expand directories into their (sorted) files and drop duplicates.

    Entries below a directory whose name starts with "." or "_" are skipped,
    as are files inside such subdirectories.
    """

    files: List[Path] = []
    for target in targets:
        if target.is_dir():
            files.extend(
                sorted(
                    p
                    for p in target.rglob("*")
                    if p.is_file()
                    and not any(is_hidden(part) for part in p.relative_to(target).parts)
                )
            )
        else:
            # missing paths are kept so the planner reports them
            files.append(target)
    deduped = []
    seen = set()
    for path in files:
        if path in seen:
            continue
        seen.add(path)
        deduped.append(path)
    return deduped


def _worker_entry(args: tuple[str, Dict[str, object]]) -> tuple[Dict[str, object], float]:
    path_str, settings_data = args
    planner = SplitPlanner(SplitSettings(**settings_data))
    start = time.perf_counter()
    plan = planner.plan_file(Path(path_str))
    return plan.to_dict(), time.perf_counter() - start


class SplitEngine:
    """Plans every input file independently with shared settings."""

    def __init__(
        self,
        settings: SplitSettings,
        *,
        max_parallel_files: int = 1,
        progress_log: Optional[Path] = None,
        filesystem: Optional[FileSystem] = None,
    ) -> None:
        self.settings = settings
        self.max_parallel_files = max(1, max_parallel_files)
        self.progress_logger = ProgressLogger(progress_log) if progress_log else None
        self.filesystem = filesystem

    def plan_files(
        self,
        files: Sequence[Path],
        *,
        progress_callback: ProgressCallback = None,
    ) -> List[FileSplitPlan]:
        if not files:
            return []

        # custom filesystems are not shipped to worker processes
        if self.max_parallel_files == 1 or len(files) == 1 or self.filesystem is not None:
            planner = SplitPlanner(self.settings, filesystem=self.filesystem)
            results = []
            for path in files:
                start = time.perf_counter()
                result = planner.plan_file(path)
                results.append(result)
                self._emit_progress(result, time.perf_counter() - start, progress_callback)
            return results

        settings_data = asdict(self.settings)
        tasks = [(str(path), settings_data) for path in files]
        workers = min(self.max_parallel_files, len(files))
        logger.info("Planning %d file(s) with %d worker process(es)", len(files), workers)
        results = []
        with ProcessPoolExecutor(max_workers=workers) as pool:
            # elapsed is measured per file inside the worker
            for payload, elapsed in pool.map(_worker_entry, tasks):
                result = FileSplitPlan.from_dict(payload)
                results.append(result)
                self._emit_progress(result, elapsed, progress_callback)
        return results

    def _emit_progress(
        self,
        result: FileSplitPlan,
        elapsed: float,
        progress_callback: ProgressCallback,
    ) -> None:
        progress = FileProgress(
            file_path=result.file_path,
            processed_lines=result.total_lines,
            total_lines=result.total_lines,
            current_phase="planning-complete",
            split_count=len(result.splits),
            lines_per_split=result.lines_per_split,
            file_length=result.file_length,
            hint_used=result.hint_used,
            elapsed_seconds=elapsed,
        )
        if progress_callback:
            progress_callback(progress)
        if self.progress_logger:
            self.progress_logger.emit(progress)
