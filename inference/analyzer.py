"""
inference/analyzer.py

Turns parsed rows into a Dataset: column metadata plus headline KPIs.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from app.domain.dataset import CellValue, ColumnMetadata, ColumnType, DataRow, Dataset
from app.logging_utils import log_event
from inference.detector import detect_column_type, is_number
from inference.errors import EmptyDatasetError
from kpi.base import BaseKPIFormula
from kpi.dataset_kpis import DatasetKPIFormula

logger = logging.getLogger(__name__)


def _distinct_key(value: CellValue) -> tuple[str, CellValue]:
    """
    Identity of a raw cell for distinct counting.

    Keeps ``True``, ``1`` and ``"1"`` apart, while ``1`` and ``1.0``
    count as the same number. Every NaN is the same value.
    """

    if value is None:
        return ("null", None)
    if isinstance(value, bool):
        return ("bool", value)
    if is_number(value):
        if isinstance(value, float) and math.isnan(value):
            return ("number", "nan")
        return ("number", value)
    return ("str", value)


def find_shape_mismatches(rows: Sequence[DataRow]) -> list[int]:
    """
    Return the indexes of rows whose key set differs from the first row.
    """

    if not rows:
        return []
    expected = set(rows[0].keys())
    return [index for index, row in enumerate(rows) if set(row.keys()) != expected]


def build_column_metadata(name: str, values: Sequence[CellValue]) -> ColumnMetadata:
    """
    Infer the type of one column and, for NUMBER columns, its statistics.

    Statistics cover numeric cells only; nulls and stray text in an
    otherwise numeric column are left out rather than rejected.
    """

    column_type = detect_column_type(values)
    unique_values = len({_distinct_key(value) for value in values})

    if column_type is not ColumnType.NUMBER:
        return ColumnMetadata(name=name, type=column_type, unique_values=unique_values)

    numbers = [value for value in values if is_number(value)]
    if not numbers:
        return ColumnMetadata(name=name, type=column_type, unique_values=unique_values)

    total = sum(numbers)
    return ColumnMetadata(
        name=name,
        type=column_type,
        unique_values=unique_values,
        min=min(numbers),
        max=max(numbers),
        sum=total,
        avg=total / len(numbers),
    )


def analyze_dataset(
    name: str,
    rows: Sequence[DataRow],
    kpi_formula: BaseKPIFormula | None = None,
) -> Dataset:
    """
    Build a Dataset from parsed rows.

    The column set is the key set of the first row, in key order. Rows
    with a different key set are read sparsely: a missing key is null and
    an extra key is ignored.

    Raises
    ------
    EmptyDatasetError
        If *rows* is empty.
    """

    if len(rows) == 0:
        raise EmptyDatasetError()

    mismatched = find_shape_mismatches(rows)
    if mismatched:
        log_event(
            logger,
            logging.WARNING,
            "dataset_row_shape_mismatch",
            dataset=name,
            mismatched_rows=len(mismatched),
            first_row_index=mismatched[0],
        )

    column_names = list(rows[0].keys())
    columns = tuple(
        build_column_metadata(column_name, [row.get(column_name) for row in rows])
        for column_name in column_names
    )

    formula = kpi_formula or DatasetKPIFormula()
    kpis = tuple(formula.calculate(len(rows), columns))

    logger.info(
        "Analyzed dataset '%s': %d rows, %d columns, %d KPIs",
        name,
        len(rows),
        len(columns),
        len(kpis),
    )
    return Dataset(name=name, rows=tuple(rows), columns=columns, kpis=kpis)
