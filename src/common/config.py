"""Helpers for loading runtime configuration profiles."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .errors import BackendError, ErrorCode
from .models import GlobalSettings, ProfileSettings, RuntimeConfig, SplitSettings

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parents[2] / "config" / "defaults.json"
DEFAULT_PROFILE = "default"
ALLOWED_BOUNDARY_CONVENTIONS = {"reader-skip", "exact"}

# Keys shared with job configurations produced by other tools.
NUMBER_OF_CHUNKS = "number_of_chunks"
NUMBER_OF_LINES_KEY = "number_of_lines"
LINE_COUNT_UNSET = -1

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ConfigDocument:
    source: Path
    version: int
    global_settings: GlobalSettings
    profiles: Dict[str, ProfileSettings]


def load_runtime_config(
    profile: str = DEFAULT_PROFILE,
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Dict[str, Any]]] = None,
) -> RuntimeConfig:
    """Load configuration JSON, validate it, and resolve a specific profile."""

    document = load_config_document(
        profile_name=profile,
        config_path=config_path,
        overrides=overrides,
    )
    return RuntimeConfig(global_settings=document.global_settings, profile=document.profiles[profile])


def load_config_document(
    *,
    profile_name: Optional[str] = None,
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Dict[str, Any]]] = None,
) -> ConfigDocument:
    cfg_path = config_path or DEFAULT_CONFIG_PATH
    raw = _read_config_json(cfg_path)

    version = _require_positive_int(raw.get("version"), "version", cfg_path)
    global_section = raw.get("global")
    if not isinstance(global_section, Mapping):
        raise BackendError(ErrorCode.CONFIG_ERROR, f"'global' section missing in {cfg_path}")

    overrides = overrides or {}
    global_data = {**global_section, **(overrides.get("global") or {})}
    global_settings = _build_global_settings(global_data, cfg_path)

    profiles_section = raw.get("profiles")
    if not isinstance(profiles_section, Mapping) or not profiles_section:
        raise BackendError(ErrorCode.CONFIG_ERROR, f"'profiles' section missing in {cfg_path}")

    profile_overrides = overrides.get("profile") or {}
    profiles: Dict[str, ProfileSettings] = {}
    for name, profile_data in profiles_section.items():
        if not isinstance(profile_data, Mapping):
            raise BackendError(
                ErrorCode.CONFIG_ERROR,
                f"Profile '{name}' must be an object in {cfg_path}",
            )
        merged = dict(profile_data)
        if profile_name and name == profile_name and profile_overrides:
            merged = {**merged, **profile_overrides}
        profiles[name] = _build_profile_settings(name, merged, cfg_path)

    if profile_name and profile_name not in profiles:
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"Profile '{profile_name}' not found in {cfg_path}",
        )

    return ConfigDocument(
        source=cfg_path,
        version=version,
        global_settings=global_settings,
        profiles=profiles,
    )


def resolve_split_count(settings: SplitSettings) -> int:
    """Number of splits to target; unset or non-positive values fall back to 1."""

    requested = settings.number_of_chunks
    if requested is None:
        return 1
    if requested <= 0:
        logger.warning("%s=%s is not positive; planning a single split", NUMBER_OF_CHUNKS, requested)
        return 1
    return requested


def resolve_line_count_hint(settings: SplitSettings) -> Optional[int]:
    """Return the configured line count hint, or None when the file must be scanned."""

    hint = settings.number_of_lines
    if hint is None or hint < 0:
        return None
    return hint


# ---------------------------------------------------------------------------
# Internal helpers


def _read_config_json(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)
    except FileNotFoundError as exc:
        raise BackendError(ErrorCode.CONFIG_ERROR, f"Config file '{path}' not found") from exc
    except json.JSONDecodeError as exc:
        raise BackendError(ErrorCode.CONFIG_ERROR, f"Config file '{path}' is not valid JSON: {exc}") from exc


def _build_global_settings(data: Mapping[str, Any], source: Path) -> GlobalSettings:
    defaults = GlobalSettings()
    encoding = _require_string(data.get("encoding", defaults.encoding), "global.encoding", source)
    delimiter = _optional_delimiter(data.get("record_delimiter", defaults.record_delimiter), encoding, source)
    convention = _normalize_convention(
        data.get("boundary_convention", defaults.boundary_convention),
        source,
    )
    read_chunk_size = _require_positive_int(
        data.get("read_chunk_size", defaults.read_chunk_size),
        "global.read_chunk_size",
        source,
    )
    return GlobalSettings(
        encoding=encoding,
        record_delimiter=delimiter,
        boundary_convention=convention,
        read_chunk_size=read_chunk_size,
    )


def _build_profile_settings(name: str, data: Mapping[str, Any], source: Path) -> ProfileSettings:
    prefix = f"profiles.{name}"
    if "description" not in data:
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"Profile '{name}' missing fields ['description'] in {source}",
        )

    description = _require_string(data.get("description"), f"{prefix}.description", source)
    number_of_chunks = _require_int(
        data.get(NUMBER_OF_CHUNKS, 1), f"{prefix}.{NUMBER_OF_CHUNKS}", source
    )
    number_of_lines = _optional_int(
        data.get(NUMBER_OF_LINES_KEY), f"{prefix}.{NUMBER_OF_LINES_KEY}", source
    )
    if number_of_lines is not None and number_of_lines < 0:
        number_of_lines = None
    max_parallel_files = _require_positive_int(
        data.get("max_parallel_files", 1), f"{prefix}.max_parallel_files", source
    )
    single_pass = data.get("single_pass", False)
    if not isinstance(single_pass, bool):
        raise BackendError(ErrorCode.CONFIG_ERROR, f"{prefix}.single_pass must be a boolean in {source}")

    return ProfileSettings(
        description=description,
        number_of_chunks=number_of_chunks,
        number_of_lines=number_of_lines,
        max_parallel_files=max_parallel_files,
        single_pass=single_pass,
    )


def _optional_delimiter(value: Any, encoding: str, source: Path) -> Optional[str]:
    # null keeps the default \r, \n, \r\n line endings
    if value is None:
        return None
    if not isinstance(value, str) or not value:
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"global.record_delimiter must be a non-empty string in {source}",
        )
    try:
        value.encode(encoding)
    except (LookupError, UnicodeEncodeError) as exc:
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"global.record_delimiter cannot be encoded with '{encoding}' in {source}",
        ) from exc
    return value


def _normalize_convention(value: Any, source: Path) -> str:
    convention = _require_string(value, "global.boundary_convention", source).lower()
    if convention not in ALLOWED_BOUNDARY_CONVENTIONS:
        allowed = ", ".join(sorted(ALLOWED_BOUNDARY_CONVENTIONS))
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"Unsupported boundary_convention '{value}' in {source}. Allowed: {allowed}",
        )
    return convention


def _require_string(value: Any, field: str, source: Path) -> str:
    if not isinstance(value, str):
        raise BackendError(ErrorCode.CONFIG_ERROR, f"{field} must be a string in {source}")
    text = value.strip()
    if not text:
        raise BackendError(ErrorCode.CONFIG_ERROR, f"{field} must be non-empty in {source}")
    return text


def _require_int(value: Any, field: str, source: Path) -> int:
    if isinstance(value, bool):
        raise BackendError(ErrorCode.CONFIG_ERROR, f"{field} must be an integer in {source}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"{field} must be an integer in {source}",
        ) from exc


def _require_positive_int(value: Any, field: str, source: Path) -> int:
    num = _require_int(value, field, source)
    if num <= 0:
        raise BackendError(
            ErrorCode.CONFIG_ERROR,
            f"{field} must be greater than zero in {source}",
        )
    return num


def _optional_int(value: Any, field: str, source: Path) -> Optional[int]:
    if value is None:
        return None
    return _require_int(value, field, source)
