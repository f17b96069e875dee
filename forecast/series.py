"""
forecast/series.py

Extraction of the forecastable time series from an analyzed dataset.
"""

from __future__ import annotations

from datetime import datetime

from app.domain.dataset import CellValue, ColumnMetadata, ColumnType, Dataset
from inference.detector import parse_date
from kpi.dataset_kpis import is_metric_column

DEFAULT_HISTORY_POINTS = 15


class NoTimeSeriesError(ValueError):
    """
    Raised when a dataset has no DATE column or no eligible metric column.
    """

    def __init__(self, message: str = "No time-series data found") -> None:
        super().__init__(message)


def find_time_series_pair(dataset: Dataset) -> tuple[ColumnMetadata, ColumnMetadata]:
    """
    Return the first DATE column and the first metric column.

    Raises
    ------
    NoTimeSeriesError
        If either column is missing.
    """

    date_col = next((c for c in dataset.columns if c.type is ColumnType.DATE), None)
    metric_col = next((c for c in dataset.columns if is_metric_column(c)), None)
    if date_col is None or metric_col is None:
        raise NoTimeSeriesError()
    return date_col, metric_col


def build_history(
    dataset: Dataset,
    date_col: ColumnMetadata,
    metric_col: ColumnMetadata,
    limit: int = DEFAULT_HISTORY_POINTS,
) -> list[dict[str, CellValue]]:
    """
    The last *limit* observations of the series, oldest first.

    Rows with an empty date, a null value, or a date that does not parse
    are skipped. Equal dates keep their row order.
    """

    points: list[tuple[datetime, CellValue, CellValue]] = []
    for row in dataset.rows:
        raw_date = row.get(date_col.name)
        value = row.get(metric_col.name)
        if not raw_date or value is None:
            continue
        parsed = parse_date(raw_date)
        if parsed is None:
            continue
        points.append((parsed, raw_date, value))

    points.sort(key=lambda point: point[0])
    return [{"date": raw_date, "value": value} for _, raw_date, value in points[-limit:]]
