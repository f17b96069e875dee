"""Result cache for AI enrichment calls.

Keys are a coarse dataset fingerprint, NOT a content hash:
``{operation}_{dataset name}_{row count}_{column count}_{extra}``. Two
different datasets that share a name, row count and column count share
cache entries.
"""

from typing import Any, Dict, Optional

from app.domain.dataset import Dataset


def cache_key(operation: str, dataset: Dataset, extra: str = "") -> str:
    """Build the cache key for one operation on one dataset."""
    return f"{operation}_{dataset.name}_{dataset.row_count}_{len(dataset.columns)}_{extra}"


class AICache:
    """In-memory result store owned by one ``InsightClient``.

    Created once per process or session and cleared on reset. Only
    successful results are stored; degraded fallbacks never are.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Any] = {}

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[Any]:
        """Stored value; list results come back as a fresh list."""
        value = self._entries.get(key)
        return list(value) if isinstance(value, list) else value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = list(value) if isinstance(value, list) else value

    def clear(self) -> None:
        self._entries.clear()
