"""Centralized version constants for persisted split artifacts."""
from __future__ import annotations

SPLIT_MANIFEST_VERSION = "1.0.0"
