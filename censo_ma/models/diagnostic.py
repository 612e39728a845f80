from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any

"""Diagnostic model: non-fatal findings returned alongside successful loads.

Examples are a boundary file whose features carry no CD_MUN property, or two
features sharing the same municipality code. Diagnostics never abort a load;
callers inspect them (tests assert on them) and DiagnosticLog can persist them
as JSON Lines.
"""

__all__ = [
    "Diagnostic",
    "MISSING_CD_MUN",
    "DUPLICATE_CODE",
    "DUPLICATE_NAME",
]

MISSING_CD_MUN = "MISSING_CD_MUN"
DUPLICATE_CODE = "DUPLICATE_CODE"
DUPLICATE_NAME = "DUPLICATE_NAME"


@dataclass(frozen=True)
class Diagnostic:
    """Structured warning.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        code: Warning classification in UPPER_SNAKE_CASE format
        source: Path or label of the dataset the warning refers to
        message: Human readable description
        details: Extra context (duplicated key, feature index, ...)
    """
    timestamp: str
    code: str
    source: str | None
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def create(code: str, message: str, source: str | None = None, **details: Any) -> Diagnostic:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return Diagnostic(timestamp=ts, code=code, source=source, message=message, details=details)

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False, default=str)
