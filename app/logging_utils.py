"""
Structured logging helpers for dataset and AI enrichment workflows.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from app.domain.dataset import Dataset


def dataset_fields(dataset: Dataset) -> dict[str, Any]:
    """
    Common identifying fields for events about one dataset.
    """

    return {
        "dataset": dataset.name,
        "rows": dataset.row_count,
        "columns": len(dataset.columns),
    }


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """
    Emit one structured log line as compact JSON.

    Skips serialization entirely when *level* is disabled for *logger*.
    """

    if not logger.isEnabledFor(level):
        return
    payload = {"event": event, **fields}
    logger.log(level, json.dumps(payload, default=str, sort_keys=True))
