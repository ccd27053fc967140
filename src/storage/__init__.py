"""Storage providers: filesystem access and split persistence (JSON / SQLite)."""

from .filesystem import LOCAL_FILESYSTEM, FileSystem, LocalFileSystem
from .json_store import load_split_manifest, save_split_manifest
from .sqlite_store import initialize as init_sqlite
from .sqlite_store import (
	fetch_split_descriptors,
	persist_split_plans,
	record_audit_event,
)

__all__ = [
	"FileSystem",
	"LOCAL_FILESYSTEM",
	"LocalFileSystem",
	"load_split_manifest",
	"save_split_manifest",
	"init_sqlite",
	"persist_split_plans",
	"fetch_split_descriptors",
	"record_audit_event",
]
