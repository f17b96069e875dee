"""
inference/parser.py

Naive delimited-text parser for uploaded CSV files.

Lines are split on ``\\n`` and cells on ``,``. Quoted fields containing
commas, embedded newlines and escaped quotes are NOT supported: a quoted
comma splits the cell in two. Only one leading and one trailing double
quote are stripped from each header and cell.
"""

from __future__ import annotations

import re

from app.domain.dataset import CellValue, DataRow

_SURROUNDING_QUOTES = re.compile(r'^"|"$')

# Literal forms accepted by a JavaScript-style ``Number(text)`` conversion.
_DECIMAL_LITERAL = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?$")
_INTEGER_LITERAL = re.compile(r"^[+-]?\d+$")
_PREFIXED_LITERAL = re.compile(r"^0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)$")
_INFINITY_LITERAL = re.compile(r"^[+-]?Infinity$")


def _strip_quotes(value: str) -> str:
    return _SURROUNDING_QUOTES.sub("", value)


def to_number(text: str) -> int | float | None:
    """
    Convert *text* to a number, or return None when it is not numeric.

    Integer literals stay ``int`` so that sums over whole-number columns
    remain exact; everything else becomes ``float``.
    """

    candidate = text.strip()
    if not candidate:
        return None
    if _INTEGER_LITERAL.match(candidate):
        return int(candidate)
    if _DECIMAL_LITERAL.match(candidate):
        return float(candidate)
    if _PREFIXED_LITERAL.match(candidate):
        return int(candidate, 0)
    if _INFINITY_LITERAL.match(candidate):
        return float(candidate.replace("Infinity", "inf"))
    return None


def coerce_cell(raw: str | None) -> CellValue:
    """
    Coerce one raw cell string into a typed cell value.

    Order: empty -> None, numeric -> number, ``true``/``false``
    (case-insensitive) -> bool, otherwise the trimmed string.
    """

    if raw is None:
        return None
    value = _strip_quotes(raw.strip())
    if value == "":
        return None

    number = to_number(value)
    if number is not None:
        return number

    lowered = value.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    return value


def parse_header(line: str) -> list[str]:
    return [_strip_quotes(token.strip()) for token in line.split(",")]


def parse_csv(csv_text: str) -> list[DataRow]:
    """
    Parse raw CSV text into row dictionaries keyed by the header tokens.

    Blank lines are ignored. Fewer than two non-blank lines (no header or
    no data) yields an empty list rather than an error. Rows shorter than
    the header are padded with None; extra cells are dropped.
    """

    lines = [line for line in csv_text.split("\n") if line.strip() != ""]
    if len(lines) < 2:
        return []

    headers = parse_header(lines[0])
    rows: list[DataRow] = []
    for line in lines[1:]:
        cells = line.split(",")
        row: DataRow = {}
        for index, header in enumerate(headers):
            raw = cells[index] if index < len(cells) else None
            row[header] = coerce_cell(raw)
        rows.append(row)
    return rows
