"""Tests for runtime configuration loader."""
from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from common.config import load_runtime_config, resolve_line_count_hint, resolve_split_count
from common.errors import BackendError, ErrorCode
from common.models import SplitSettings


def test_load_default_profile() -> None:
    config = load_runtime_config("default")
    assert config.profile.number_of_chunks == 1
    assert config.profile.number_of_lines is None
    assert config.global_settings.boundary_convention == "reader-skip"
    settings = config.split_settings()
    assert settings.record_delimiter is None


def test_overrides_apply_to_selected_profile() -> None:
    config = load_runtime_config(
        "default",
        overrides={
            "profile": {"number_of_chunks": 6, "number_of_lines": 120},
            "global": {"boundary_convention": "exact"},
        },
    )
    settings = config.split_settings()
    assert settings.number_of_chunks == 6
    assert settings.number_of_lines == 120
    assert settings.boundary_convention == "exact"


def test_negative_line_hint_means_unset(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, {"number_of_lines": -1})
    config = load_runtime_config("only", config_path=config_path)
    assert config.profile.number_of_lines is None


def test_non_positive_chunks_are_loaded_then_clamped(tmp_path: Path, caplog) -> None:
    config_path = _write_config(tmp_path, {"number_of_chunks": 0})
    settings = load_runtime_config("only", config_path=config_path).split_settings()
    with caplog.at_level(logging.WARNING):
        assert resolve_split_count(settings) == 1
    assert "number_of_chunks" in caplog.text


def test_resolve_helpers_defaults() -> None:
    assert resolve_split_count(SplitSettings()) == 1
    assert resolve_split_count(SplitSettings(number_of_chunks=9)) == 9
    assert resolve_line_count_hint(SplitSettings()) is None
    assert resolve_line_count_hint(SplitSettings(number_of_lines=0)) == 0


def test_missing_profile_raises_backend_error(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, {})
    with pytest.raises(BackendError) as exc:
        load_runtime_config("missing", config_path=config_path)
    assert exc.value.code == ErrorCode.CONFIG_ERROR


def test_invalid_convention_rejected(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, {}, global_overrides={"boundary_convention": "overlap"})
    with pytest.raises(BackendError) as exc:
        load_runtime_config("only", config_path=config_path)
    assert "boundary_convention" in str(exc.value)


def test_empty_delimiter_rejected(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, {}, global_overrides={"record_delimiter": ""})
    with pytest.raises(BackendError) as exc:
        load_runtime_config("only", config_path=config_path)
    assert exc.value.code == ErrorCode.CONFIG_ERROR


def test_null_delimiter_selects_line_endings(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, {}, global_overrides={"record_delimiter": None})
    assert load_runtime_config("only", config_path=config_path).split_settings().record_delimiter is None

    config_path = _write_config(tmp_path, {}, global_overrides={"record_delimiter": "\r\n"})
    assert load_runtime_config("only", config_path=config_path).split_settings().record_delimiter == b"\r\n"


def test_non_integer_chunks_rejected(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, {"number_of_chunks": "many"})
    with pytest.raises(BackendError) as exc:
        load_runtime_config("only", config_path=config_path)
    assert "number_of_chunks" in str(exc.value)


def test_invalid_json_rejected(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(BackendError) as exc:
        load_runtime_config("only", config_path=path)
    assert exc.value.code == ErrorCode.CONFIG_ERROR


def _write_config(tmp_path: Path, profile_fields: dict, *, global_overrides: dict | None = None) -> Path:
    payload = {
        "version": 1,
        "global": {
            "encoding": "utf-8",
            "record_delimiter": "\n",
            "boundary_convention": "reader-skip",
            "read_chunk_size": 4096,
            **(global_overrides or {}),
        },
        "profiles": {"only": {"description": "tmp", **profile_fields}},
    }
    path = tmp_path / "config.json"
    path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    return path
