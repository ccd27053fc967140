"""CLI shell for counting lines and planning line-balanced splits."""
from __future__ import annotations

import argparse
import logging
import time
from pathlib import Path
from typing import Any, Dict, List

from common.config import NUMBER_OF_CHUNKS, NUMBER_OF_LINES_KEY, load_runtime_config
from common.errors import BackendError
from common.models import FileProgress, FileSplitPlan
from core.splitting import LineCounter, SplitEngine, collect_input_files
from storage import (
    init_sqlite,
    persist_split_plans,
    record_audit_event,
    save_split_manifest,
)

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.INFO) -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def render_progress(progress: FileProgress) -> None:
    elapsed = f" {progress.elapsed_seconds:.2f}s" if progress.elapsed_seconds is not None else ""
    print(
        f"[plan] {progress.file_path} lines={progress.total_lines} splits={progress.split_count}{elapsed}"
    )


def build_overrides(args: argparse.Namespace) -> Dict[str, Dict[str, Any]]:
    profile: Dict[str, Any] = {}
    global_settings: Dict[str, Any] = {}
    if getattr(args, "chunks", None) is not None:
        profile[NUMBER_OF_CHUNKS] = args.chunks
    if getattr(args, "lines_hint", None) is not None:
        profile[NUMBER_OF_LINES_KEY] = args.lines_hint
    if getattr(args, "single_pass", False):
        profile["single_pass"] = True
    if getattr(args, "parallel", None) is not None:
        profile["max_parallel_files"] = args.parallel
    if getattr(args, "convention", None):
        global_settings["boundary_convention"] = args.convention
    return {"profile": profile, "global": global_settings}


def command_plan(args: argparse.Namespace) -> None:
    files = collect_input_files(Path(p) for p in args.inputs)
    if not files:
        raise SystemExit("No input files found. Provide files or directories containing line data.")

    config_path = Path(args.config) if args.config else None
    runtime = load_runtime_config(args.profile, config_path=config_path, overrides=build_overrides(args))
    settings = runtime.split_settings()
    progress_log = Path(args.progress_log) if args.progress_log else None
    engine = SplitEngine(
        settings,
        max_parallel_files=runtime.profile.max_parallel_files,
        progress_log=progress_log,
    )
    print(
        f"Planning {len(files)} file(s) using profile '{args.profile}' "
        f"(chunks={settings.number_of_chunks}, convention={settings.boundary_convention}, "
        f"parallel={runtime.profile.max_parallel_files})"
    )

    start = time.perf_counter()
    plans: List[FileSplitPlan] = engine.plan_files(files, progress_callback=render_progress)
    duration = time.perf_counter() - start

    for plan in plans:
        for index, split in enumerate(plan.splits):
            print(f"  {split.file_path} #{index} start={split.start} length={split.length}")

    total_splits = sum(len(plan.splits) for plan in plans)
    if args.output:
        output_path = Path(args.output)
        save_split_manifest(plans, output_path, settings=settings)
        print(f"Wrote manifest with {total_splits} split(s) to {output_path}")
    if args.sqlite_db:
        db_path = Path(args.sqlite_db)
        persist_split_plans(db_path, plans)
        record_audit_event(
            db_path,
            entity="split_plan",
            action="plan",
            detail=f"files={len(plans)} splits={total_splits}",
        )
    print(f"Planned {total_splits} split(s) across {len(plans)} file(s) in {duration:.2f}s")


def command_count(args: argparse.Namespace) -> None:
    files = collect_input_files(Path(p) for p in args.inputs)
    if not files:
        raise SystemExit("No input files found.")

    config_path = Path(args.config) if args.config else None
    runtime = load_runtime_config(args.profile, config_path=config_path, overrides=build_overrides(args))
    counter = LineCounter.from_settings(runtime.split_settings())
    for path in files:
        print(f"{path}\t{counter.count(path)}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linesplit", description="Split large line-oriented files into line-balanced byte ranges"
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    plan = subparsers.add_parser("plan", help="Plan splits and optionally write a manifest")
    plan.add_argument("inputs", nargs="+", help="Files or directories to split")
    _add_config_arguments(plan)
    plan.add_argument("--chunks", type=int, help="Number of splits per file (overrides profile)")
    plan.add_argument(
        "--convention",
        choices=["reader-skip", "exact"],
        help="Boundary convention applied to split offsets",
    )
    plan.add_argument(
        "--single-pass",
        action="store_true",
        help="Count lines and place boundaries in one scan when no hint is given",
    )
    plan.add_argument("--parallel", type=int, help="Files planned concurrently (overrides profile)")
    plan.add_argument("--output", help="Path to write the split manifest JSON")
    plan.add_argument("--sqlite-db", help="Optional SQLite file receiving planned splits")
    plan.add_argument("--progress-log", help="Optional JSONL file capturing per-file progress")
    plan.set_defaults(func=command_plan)

    count = subparsers.add_parser("count", help="Print line counts per file")
    count.add_argument("inputs", nargs="+", help="Files or directories to count")
    _add_config_arguments(count)
    count.set_defaults(func=command_count)

    return parser


def _add_config_arguments(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument(
        "--profile",
        default="default",
        help="Profile from config/defaults.json (e.g., default, parallel)",
    )
    subparser.add_argument("--config", help="Alternative configuration JSON")
    subparser.add_argument(
        "--lines-hint",
        type=int,
        help="Known total line count; skips the counting scan",
    )


def maybe_initialize_sqlite(sqlite_arg: str | None) -> None:
    if not sqlite_arg:
        return
    init_sqlite(Path(sqlite_arg))


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return 0
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)
    maybe_initialize_sqlite(getattr(args, "sqlite_db", None))
    try:
        args.func(args)
    except BackendError as exc:
        logger.debug("Command failed", exc_info=True)
        print(f"error: {exc}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
