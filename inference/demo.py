"""
inference/demo.py

Bundled "SaaS Sales Q3-Q4" demo dataset.
"""

from __future__ import annotations

from dataclasses import replace

from app.domain.dataset import KPI, DataRow, Dataset
from inference.analyzer import analyze_dataset
from kpi.dataset_kpis import round2

DEMO_NAME = "SaaS Sales Q3-Q4"

_DEMO_RECORDS: tuple[tuple[str, str, str, int, int], ...] = (
    ("2023-09-01", "North America", "Enterprise Plan", 12000, 4),
    ("2023-09-02", "Europe", "Pro Plan", 4500, 15),
    ("2023-09-03", "Asia", "Basic Plan", 800, 20),
    ("2023-09-04", "North America", "Enterprise Plan", 15000, 5),
    ("2023-09-05", "Europe", "Pro Plan", 5200, 18),
    ("2023-09-06", "Asia", "Pro Plan", 3000, 10),
    ("2023-09-07", "North America", "Basic Plan", 1200, 30),
    ("2023-09-08", "Europe", "Enterprise Plan", 11000, 3),
    ("2023-09-09", "Asia", "Basic Plan", 900, 22),
    ("2023-09-10", "North America", "Pro Plan", 6000, 20),
    ("2023-09-11", "Europe", "Enterprise Plan", 13500, 4),
    ("2023-09-12", "Asia", "Enterprise Plan", 9500, 3),
    ("2023-09-13", "North America", "Pro Plan", 7200, 24),
    ("2023-09-14", "Europe", "Basic Plan", 1500, 35),
    ("2023-09-15", "Asia", "Basic Plan", 1100, 24),
)


def demo_rows() -> list[DataRow]:
    """
    Fresh copies of the demo rows; callers may not share row dicts.
    """

    return [
        {"date": date, "region": region, "product": product, "sales": sales, "units": units}
        for date, region, product, sales, units in _DEMO_RECORDS
    ]


def showcase_kpis(dataset: Dataset) -> tuple[KPI, ...]:
    """
    Curated headline KPIs for the demo, computed from its analyzed columns.

    Trends are fixed illustrative values; the demo has no prior period.
    """

    sales = dataset.column("sales")
    units = dataset.column("units")
    return (
        KPI(id="total_sales", label="Total Revenue", value=sales.sum, type="currency", trend=12.5),
        KPI(id="total_units", label="Units Sold", value=units.sum, type="number", trend=5.2),
        KPI(id="avg_order", label="Avg Order Value", value=round2(sales.avg), type="currency", trend=-2.1),
    )


def load_demo_dataset() -> Dataset:
    """
    Analyze the demo rows and swap in the curated showcase KPIs.
    """

    dataset = analyze_dataset(DEMO_NAME, demo_rows())
    return replace(dataset, kpis=showcase_kpis(dataset))
