from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .orchestrator import DashboardDataset

"""JSON export of the loaded workbook data."""

__all__ = [
    "export_dataset",
    "export_filename",
    "export_json",
]


def export_dataset(dataset: DashboardDataset, now: datetime | None = None) -> dict[str, Any]:
    now = now or datetime.now(UTC)
    return {
        "metadata": {
            "exportDate": now.isoformat().replace("+00:00", "Z"),
            "totalMunicipios": len(dataset.aggregates.rows),
            "totalEscolas": len(dataset.schools.rows),
        },
        "dadosGerais": dataset.aggregates.rows,
        "dadosEscolas": dataset.schools.rows,
    }


def export_json(dataset: DashboardDataset, now: datetime | None = None) -> str:
    return json.dumps(export_dataset(dataset, now), ensure_ascii=False, indent=2, default=str)


def export_filename(now: datetime | None = None) -> str:
    now = now or datetime.now(UTC)
    return f"censo_escolar_maranhao_{now.date().isoformat()}.json"
