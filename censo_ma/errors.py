from __future__ import annotations

from typing import Any

from censo_ma.models.load_failure import LoadFailure

"""Load failure exceptions.

Every loader failure is raised as a LoadError subclass carrying a stable
``kind`` (UPPER_SNAKE), the source path or file name, a human readable message
and kind-specific context (HTTP status, available sheets, feature count).
``to_failure()`` turns the exception into the serializable LoadFailure value
handed to the host application.
"""

__all__ = [
    "LoadError",
    "NotFoundError",
    "SheetMissingError",
    "UnsupportedFormatError",
    "InvalidStructureError",
    "ParseError",
]


class LoadError(Exception):
    """Base class for loader failures."""

    kind = "LOAD_ERROR"

    def __init__(self, path: str | None, message: str, **extras: Any) -> None:
        super().__init__(message)
        self.path = path
        self.message = message
        self.extras = extras

    def __str__(self) -> str:
        if self.path:
            return f"{self.message} ({self.path})"
        return self.message

    def to_failure(self) -> LoadFailure:
        return LoadFailure.create(
            kind=self.kind,
            path=self.path,
            message=self.message,
            extras=dict(self.extras),
        )


class NotFoundError(LoadError):
    """Resource fetch failed (non-success status or missing file)."""

    kind = "NOT_FOUND"

    def __init__(self, path: str | None, status: int | None = None, message: str | None = None) -> None:
        if message is None:
            message = f"file not found (status {status})" if status is not None else "file not found"
        super().__init__(path, message, status=status)
        self.status = status


class SheetMissingError(LoadError):
    """Workbook decoded fine but the requested sheet is absent."""

    kind = "SHEET_MISSING"

    def __init__(self, path: str | None, sheet_name: str, available_sheets: list[str]) -> None:
        message = (
            f'sheet "{sheet_name}" not found. '
            f"available sheets: {', '.join(available_sheets)}"
        )
        super().__init__(path, message, sheet_name=sheet_name, available_sheets=list(available_sheets))
        self.sheet_name = sheet_name
        self.available_sheets = list(available_sheets)


class UnsupportedFormatError(LoadError):
    """Recognized but unhandled file type (e.g. binary GeoPackage)."""

    kind = "UNSUPPORTED_FORMAT"


class InvalidStructureError(LoadError):
    """Payload parsed but does not have the expected shape."""

    kind = "INVALID_STRUCTURE"

    def __init__(self, path: str | None, message: str, feature_count: int | None = None) -> None:
        super().__init__(path, message, feature_count=feature_count)
        self.feature_count = feature_count


class ParseError(LoadError):
    """Malformed bytes or text."""

    kind = "PARSE_ERROR"
