"""
app/domain package marker.
"""

from app.domain.dataset import (
    KPI,
    CellValue,
    ChartConfig,
    ColumnMetadata,
    ColumnType,
    DataRow,
    Dataset,
)

__all__ = [
    "CellValue",
    "ChartConfig",
    "ColumnMetadata",
    "ColumnType",
    "DataRow",
    "Dataset",
    "KPI",
]
