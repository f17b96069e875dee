"""
kpi/base.py

Abstract base class for dataset KPI formula implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from app.domain.dataset import KPI, ColumnMetadata


class BaseKPIFormula(ABC):
    """
    Contract for KPI formula implementations.

    Subclasses receive the row count and the column metadata of one
    analyzed dataset and must return the KPIs they derive, in display
    order.

    No I/O and no logging are permitted inside :meth:`calculate`.
    """

    @abstractmethod
    def calculate(self, row_count: int, columns: Sequence[ColumnMetadata]) -> list[KPI]:
        """
        Derive KPIs from dataset-level facts.

        Parameters
        ----------
        row_count:
            Number of rows in the dataset.
        columns:
            Column metadata in first-row key order.

        Returns
        -------
        list[KPI]
            Derived KPIs, possibly empty.
        """
