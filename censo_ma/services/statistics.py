from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

import pandas as pd

"""State-wide statistics over the aggregate sheet.

Counter cells are summed after numeric conversion; empty or non-numeric
cells count as zero.
"""

__all__ = [
    "GeneralStatistics",
    "TOTAL_COLUMN",
    "TYPE_COLUMNS",
    "SIZE_COLUMNS",
    "general_statistics",
]

TOTAL_COLUMN = "Total de Escolas por município"

TYPE_COLUMNS = {
    "estadual": "Estadual",
    "municipal": "Municipal",
    "federal": "Federal",
    "privada": "Privada",
}

SIZE_COLUMNS = {
    "ate50": "Até 50 matrículas de escolarização",
    "de51a200": "Entre 51 e 200 matrículas de escolarização",
    "de201a500": "Entre 201 e 500 matrículas de escolarização",
    "de501a1000": "Entre 501 e 1000 matrículas de escolarização",
    "mais1000": "Mais de 1000 matrículas de escolarização",
    "sem_matricula": "Escola sem matrícula de escolarização",
}


@dataclass(frozen=True)
class GeneralStatistics:
    total_municipios: int
    total_escolas: int
    escolas_por_tipo: dict[str, int]
    escolas_por_porte: dict[str, int]


def _column_sum(df: pd.DataFrame, column: str) -> int:
    if column not in df.columns:
        return 0
    values = pd.to_numeric(df[column], errors="coerce").fillna(0)
    # Counters are whole numbers; fractional cells are truncated.
    return int(values.astype("int64").sum())


def general_statistics(aggregates: Sequence[Mapping[str, Any]]) -> GeneralStatistics | None:
    """Totals by administrative category and enrollment band. None without records."""
    if len(aggregates) == 0:
        return None
    df = pd.DataFrame.from_records(list(aggregates))
    return GeneralStatistics(
        total_municipios=len(df),
        total_escolas=_column_sum(df, TOTAL_COLUMN),
        escolas_por_tipo={k: _column_sum(df, col) for k, col in TYPE_COLUMNS.items()},
        escolas_por_porte={k: _column_sum(df, col) for k, col in SIZE_COLUMNS.items()},
    )
