from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from censo_ma.models.diagnostic import Diagnostic

"""Diagnostic buffering and JSON Lines export.

Loaders and the matcher return diagnostics as values. A DiagnosticLog gathers
them for one session so the host can show them together or write them to
``<directory>/diagnostics-YYYYMMDD-HHMMSS.log`` (UTC). Nothing is written
unless flush() is called.
"""

__all__ = [
    "Diagnostic",
    "DiagnosticLog",
]

TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class DiagnosticLog:
    """In-memory buffer of Diagnostic records. flush() writes JSON Lines.

    The file path is fixed on first flush; later flushes append to it.
    """

    def __init__(self, directory: Path = Path("./logs")) -> None:
        self.directory = directory
        self._records: list[Diagnostic] = []
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self.directory / f"diagnostics-{stamp}.log"
        return self._file_path

    @property
    def records(self) -> list[Diagnostic]:
        return list(self._records)

    def append(self, record: Diagnostic) -> None:
        self._records.append(record)

    def extend(self, records: Iterable[Diagnostic]) -> None:
        self._records.extend(records)

    def codes(self) -> list[str]:
        return [r.code for r in self._records]

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered records to the log file; None when the buffer is empty."""
        if not self._records:
            return None
        fp = self.file_path
        fp.parent.mkdir(parents=True, exist_ok=True)
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
