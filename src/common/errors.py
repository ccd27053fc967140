"""Shared error codes and exceptions for split planning."""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    CONFIG_ERROR = "CONFIG_ERROR"
    IO_ERROR = "IO_ERROR"
    NOT_A_FILE = "NOT_A_FILE"


class BackendError(RuntimeError):
    """Exception carrying a structured error code for CLI callers."""

    def __init__(self, code: ErrorCode, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.code = code
        self.context = context or {}

    def __str__(self) -> str:  # pragma: no cover - formatting sugar
        base = super().__str__()
        return f"[{self.code.value}] {base}" if base else self.code.value

    def __reduce__(self):
        # subclasses take different constructor arguments
        message = self.args[0] if self.args else ""
        return (_rebuild_error, (type(self), self.code, message, self.context))


class NotAFileError(BackendError):
    """Raised when the split target exists but is not a regular file."""

    def __init__(self, path: Path) -> None:
        super().__init__(
            ErrorCode.NOT_A_FILE,
            f"Not a file: {path}",
            context={"path": str(path)},
        )


class SplitIOError(BackendError):
    """Raised when a file cannot be opened or read while planning splits."""

    def __init__(self, path: Path, message: str) -> None:
        super().__init__(ErrorCode.IO_ERROR, message, context={"path": str(path)})


class LineCountError(SplitIOError):
    """Raised when the line counting scan fails."""


def _rebuild_error(cls: type, code: ErrorCode, message: str, context: Dict[str, Any]) -> BackendError:
    error = cls.__new__(cls)
    BackendError.__init__(error, code, message, context=context)
    return error
