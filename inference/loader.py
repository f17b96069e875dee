"""
inference/loader.py

File-load boundary: raw upload text in, analyzed Dataset out.

Every failure below this boundary (bad JSON, wrong JSON shape, no rows)
is re-raised as ``DatasetFormatError`` with one generic message; callers
show that message and do not retry.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from app.domain.dataset import DataRow, Dataset
from app.logging_utils import log_event
from inference.analyzer import analyze_dataset
from inference.errors import DatasetError, DatasetFormatError
from inference.parser import parse_csv
from kpi.base import BaseKPIFormula

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".csv", ".json")


def dataset_name_from_filename(filename: str) -> str:
    """
    Dataset name is the file name up to its first dot.

    ``"sales.q3.csv"`` becomes ``"sales"``.
    """

    return filename.split(".")[0]


def _flatten_value(prefix: str, value: Any, into: DataRow) -> None:
    if isinstance(value, dict):
        for key, nested in value.items():
            _flatten_value(f"{prefix}.{key}", nested, into)
        return
    if isinstance(value, list):
        into[prefix] = json.dumps(value, default=str)
        return
    into[prefix] = value


def flatten_record(record: dict[str, Any]) -> DataRow:
    """
    Flatten nested objects into dotted keys; lists become JSON text.
    """

    row: DataRow = {}
    for key, value in record.items():
        _flatten_value(str(key), value, row)
    return row


def parse_json_rows(text: str) -> list[DataRow]:
    """
    Parse a JSON array of objects into rows.

    Raises
    ------
    ValueError
        If the document is not an array of objects.
    """

    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError("JSON dataset must be an array of objects")
    rows: list[DataRow] = []
    for index, record in enumerate(data):
        if not isinstance(record, dict):
            raise ValueError(f"JSON dataset item {index} is not an object")
        rows.append(flatten_record(record))
    return rows


def load_rows(filename: str, text: str) -> list[DataRow]:
    """
    Dispatch on extension: ``.json`` is parsed as JSON, anything else as CSV.
    """

    if filename.lower().endswith(".json"):
        return parse_json_rows(text)
    return parse_csv(text)


def load_dataset(
    filename: str,
    text: str,
    kpi_formula: BaseKPIFormula | None = None,
) -> Dataset:
    """
    Parse and analyze one uploaded file.

    Raises
    ------
    DatasetFormatError
        If the file cannot be parsed or holds no rows.
    """

    try:
        rows = load_rows(filename, text)
        return analyze_dataset(dataset_name_from_filename(filename), rows, kpi_formula=kpi_formula)
    except (ValueError, DatasetError) as exc:
        log_event(
            logger,
            logging.WARNING,
            "dataset_load_failed",
            filename=filename,
            error_type=type(exc).__name__,
            error=str(exc),
        )
        raise DatasetFormatError(filename) from exc

