"""
app/domain/dataset.py

Domain models for one analyzed dataset and the charts derived from it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, Union

CellValue = Union[str, int, float, bool, None]
DataRow = dict[str, CellValue]

KPIDisplayType = Literal["currency", "number", "percentage"]


def json_number(value: CellValue) -> CellValue:
    """
    Wire form of a cell: infinite and NaN floats become null, as in JSON.
    """

    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


class ColumnType(str, Enum):
    """
    Inferred type of one dataset column.
    """

    STRING = "STRING"
    NUMBER = "NUMBER"
    DATE = "DATE"
    BOOLEAN = "BOOLEAN"


@dataclass(frozen=True)
class ColumnMetadata:
    """
    Per-column inferred type and summary statistics.

    ``min``/``max``/``sum``/``avg`` are populated for NUMBER columns only,
    and only when at least one cell in the column is numeric.
    """

    name: str
    type: ColumnType
    unique_values: int
    min: float | None = None
    max: float | None = None
    sum: float | None = None
    avg: float | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": self.name,
            "type": self.type.value,
            "uniqueValues": self.unique_values,
        }
        for key in ("min", "max", "sum", "avg"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = json_number(value)
        return payload


@dataclass(frozen=True)
class KPI:
    """
    One headline metric shown at the top of the dashboard.
    """

    id: str
    label: str
    value: float
    type: KPIDisplayType
    trend: float | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "label": self.label,
            "value": json_number(self.value),
            "type": self.type,
        }
        if self.trend is not None:
            payload["trend"] = self.trend
        return payload


@dataclass(frozen=True)
class ChartConfig:
    """
    Declarative description of one chart: how to plot, not what to plot.
    """

    id: str
    title: str
    type: str
    x_axis_key: str
    data_keys: tuple[str, ...]
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "type": self.type,
            "xAxisKey": self.x_axis_key,
            "dataKeys": list(self.data_keys),
        }
        if self.description is not None:
            payload["description"] = self.description
        return payload


@dataclass(frozen=True)
class Dataset:
    """
    Parsed and analyzed representation of one uploaded or demo file.

    Built once per load by ``inference.analyzer.analyze_dataset`` and
    never mutated afterwards.
    """

    name: str
    rows: tuple[DataRow, ...]
    columns: tuple[ColumnMetadata, ...]
    kpis: tuple[KPI, ...] = field(default_factory=tuple)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def column(self, name: str) -> ColumnMetadata | None:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def to_dict(self, include_rows: bool = True) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": self.name,
            "rowCount": self.row_count,
            "columns": [column.to_dict() for column in self.columns],
            "kpis": [kpi.to_dict() for kpi in self.kpis],
        }
        if include_rows:
            payload["rows"] = [
                {key: json_number(value) for key, value in row.items()} for row in self.rows
            ]
        return payload
