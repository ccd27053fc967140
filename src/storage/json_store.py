"""JSON persistence helpers for split manifests."""
from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from common.errors import BackendError, ErrorCode
from common.models import FileSplitPlan, SplitSettings
from common.versioning import SPLIT_MANIFEST_VERSION


def save_split_manifest(
    plans: Sequence[FileSplitPlan],
    path: Path,
    *,
    settings: Optional[SplitSettings] = None,
) -> None:
    """Write planned splits to JSON for the scheduler."""

    data = manifest_to_dict(plans, settings=settings)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")


def load_split_manifest(path: Path) -> List[FileSplitPlan]:
    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    return manifest_from_dict(data)


def manifest_to_dict(
    plans: Sequence[FileSplitPlan],
    *,
    settings: Optional[SplitSettings] = None,
) -> Dict[str, object]:
    return {
        "version": SPLIT_MANIFEST_VERSION,
        "generated_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
        "settings": serialize_settings(settings) if settings else None,
        "split_count": sum(len(plan.splits) for plan in plans),
        "files": [plan.to_dict() for plan in plans],
    }


def manifest_from_dict(data: Dict[str, object]) -> List[FileSplitPlan]:
    version = str(data.get("version", ""))
    if version.split(".")[0] != SPLIT_MANIFEST_VERSION.split(".")[0]:
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"Unsupported split manifest version '{version}'",
        )
    return [FileSplitPlan.from_dict(item) for item in data.get("files", [])]


def serialize_settings(settings: SplitSettings) -> Dict[str, object]:
    payload = asdict(settings)
    if settings.record_delimiter is not None:
        payload["record_delimiter"] = settings.record_delimiter.decode("latin-1")
    return payload
