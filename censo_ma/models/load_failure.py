from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any

"""LoadFailure model for structured loader failures.

A LoadFailure is the value form of a LoadError: it is what the host
application receives when a load fails and what gets serialized when the
failure is recorded. ``path`` is None for uploads without a name.
"""

__all__ = [
    "LoadFailure",
]


@dataclass(frozen=True)
class LoadFailure:
    """Structured load failure.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        kind: Failure classification in UPPER_SNAKE_CASE format
        path: Source path, URL or uploaded file name
        message: Human readable description
        extras: Kind-specific context (status, available_sheets, feature_count)
    """
    timestamp: str  # ISO8601 UTC
    kind: str  # UPPER_SNAKE
    path: str | None
    message: str
    extras: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def create(kind: str, path: str | None, message: str, extras: dict[str, Any] | None = None) -> LoadFailure:
        """Create a new LoadFailure with current UTC timestamp."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return LoadFailure(
            timestamp=ts,
            kind=kind,
            path=path,
            message=message,
            extras=extras or {},
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
