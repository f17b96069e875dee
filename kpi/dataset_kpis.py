"""
kpi/dataset_kpis.py

Headline KPI formula for arbitrary uploaded datasets.

Formulas
--------
Total Records  = row count (always emitted)
Primary metric = the NUMBER column, excluding names containing "id",
                 with the largest sum (later columns win ties)
Total {Metric} = round(sum, 2), currency, with a placeholder trend
Avg {Metric}   = round(avg, 2), currency

The trend on the total is NOT a period-over-period comparison. It is a
random stand-in in ``[-5, 14]`` kept until a real historical baseline is
available; callers that need reproducible output pass a seeded
``random.Random``.
"""

from __future__ import annotations

import math
import random
from collections.abc import Sequence

from app.domain.dataset import KPI, ColumnMetadata, ColumnType
from kpi.base import BaseKPIFormula

TREND_PLACEHOLDER_RANGE: tuple[int, int] = (-5, 14)


def is_metric_column(column: ColumnMetadata) -> bool:
    """
    NUMBER columns whose name does not look like an identifier.
    """

    return column.type is ColumnType.NUMBER and "id" not in column.name.lower()


def round2(value: float) -> float:
    """
    Round half up (towards positive infinity) to two decimals.

    Infinite and NaN values pass through unchanged.
    """

    if not math.isfinite(value):
        return value
    return math.floor(value * 100 + 0.5) / 100


def display_name(name: str) -> str:
    return name[:1].upper() + name[1:]


def select_primary_metric(columns: Sequence[ColumnMetadata]) -> ColumnMetadata | None:
    """
    Pick the metric column with the largest sum, or None if there is none.
    """

    primary: ColumnMetadata | None = None
    for column in columns:
        if not is_metric_column(column):
            continue
        if primary is None or not (primary.sum or 0) > (column.sum or 0):
            primary = column
    return primary


class DatasetKPIFormula(BaseKPIFormula):
    """
    Derives Total Records plus total/average KPIs for the primary metric.
    """

    def __init__(self, rng: random.Random | None = None) -> None:
        self._rng = rng or random.Random()

    def _placeholder_trend(self) -> int:
        low, high = TREND_PLACEHOLDER_RANGE
        return self._rng.randint(low, high)

    def calculate(self, row_count: int, columns: Sequence[ColumnMetadata]) -> list[KPI]:
        kpis: list[KPI] = [
            KPI(id="total_records", label="Total Records", value=row_count, type="number"),
        ]

        primary = select_primary_metric(columns)
        # A zero or missing sum/avg is treated as absent.
        if primary is None or not primary.sum:
            return kpis

        label = display_name(primary.name)
        kpis.append(
            KPI(
                id=f"sum_{primary.name}",
                label=f"Total {label}",
                value=round2(primary.sum),
                type="currency",
                trend=self._placeholder_trend(),
            )
        )
        if primary.avg:
            kpis.append(
                KPI(
                    id=f"avg_{primary.name}",
                    label=f"Avg {label}",
                    value=round2(primary.avg),
                    type="currency",
                )
            )
        return kpis
