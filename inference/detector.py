"""
inference/detector.py

Column type inference from a bounded sample of cell values.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from app.domain.dataset import CellValue, ColumnType

SAMPLE_SIZE = 100

DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%m-%d-%Y",
    "%m/%d/%y",
    "%Y-%m",
    "%Y/%m",
    "%Y-%m-%d %H:%M:%S",
    "%Y/%m/%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %H:%M",
    "%d %b %Y",
    "%d %B %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d-%b-%Y",
)


def is_number(value: CellValue) -> bool:
    """
    True for int/float cells. Booleans are not numbers here.
    """

    return isinstance(value, (int, float)) and not isinstance(value, bool)


def parse_date(value: object) -> datetime | None:
    """
    Parse the string form of *value* as a calendar date, or return None.
    """

    text = str(value).strip()
    if not text:
        return None
    try:
        parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        parsed = None
    if parsed is not None:
        return parsed.replace(tzinfo=None)
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def _sample(values: Iterable[CellValue], limit: int) -> list[CellValue]:
    sample: list[CellValue] = []
    for value in values:
        if value is None or value == "":
            continue
        sample.append(value)
        if len(sample) >= limit:
            break
    return sample


def detect_column_type(values: Iterable[CellValue], sample_size: int = SAMPLE_SIZE) -> ColumnType:
    """
    Classify a column from the first ``sample_size`` non-empty values.

    Only the first valid values in row order are inspected, so a column
    whose first hundred cells are numeric is NUMBER even if later cells
    are text. Precedence: NUMBER, DATE, BOOLEAN, then STRING.
    """

    sample = _sample(values, sample_size)
    if not sample:
        return ColumnType.STRING

    if all(is_number(value) for value in sample):
        return ColumnType.NUMBER

    # Separator check keeps bare tokens like "2023" from reading as dates.
    if all(parse_date(value) is not None for value in sample) and any(
        "-" in str(value) or "/" in str(value) for value in sample
    ):
        return ColumnType.DATE

    if all(isinstance(value, bool) for value in sample):
        return ColumnType.BOOLEAN

    return ColumnType.STRING
