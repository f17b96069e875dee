"""
charts/selector.py

Heuristic chart selection for an analyzed dataset.

Pipeline, in priority order (``charts[0]`` is the headline chart):

1. Trend        - area chart of the first metric over the first DATE column.
2. Breakdown    - donut of the first metric by the first low-cardinality
                  STRING column.
3. Correlation  - scatter of the first two metrics.
4. Distribution - bar of the first metric, only when 1-3 added nothing.
5. Filler       - while fewer than three charts exist, one more chart for
                  the second metric (line over time, else bar by category).
6. Fallback     - placeholder bar over synthetic keys when nothing fits.

The result is never empty and depends only on the dataset's columns.
"""

from __future__ import annotations

from app.domain.dataset import ChartConfig, ColumnMetadata, ColumnType, Dataset
from kpi.dataset_kpis import is_metric_column

CATEGORY_MAX_UNIQUE = 50
TARGET_CHART_COUNT = 3
SPORTS_KEYWORDS: tuple[str, ...] = ("over", "inning", "match")

INDEX_AXIS_KEY = "index"
FALLBACK_X_AXIS_KEY = "category"
FALLBACK_DATA_KEY = "value"


def _is_category_column(column: ColumnMetadata) -> bool:
    return column.type is ColumnType.STRING and column.unique_values < CATEGORY_MAX_UNIQUE


def _looks_like_sports(columns: tuple[ColumnMetadata, ...]) -> bool:
    return any(
        keyword in column.name.lower()
        for column in columns
        for keyword in SPORTS_KEYWORDS
    )


def _trend_chart(date_col: ColumnMetadata, metric: ColumnMetadata, sports: bool) -> ChartConfig:
    if sports:
        title = f"{metric.name} Progression"
        description = "Cumulative score progression"
    else:
        title = f"{metric.name} Over Time"
        description = f"Historical trend analysis of {metric.name}"
    return ChartConfig(
        id="trend_main",
        title=title,
        type="area",
        x_axis_key=date_col.name,
        data_keys=(metric.name,),
        description=description,
    )


def _secondary_chart(
    secondary: ColumnMetadata,
    date_col: ColumnMetadata | None,
    category_col: ColumnMetadata | None,
) -> ChartConfig | None:
    if date_col is not None:
        return ChartConfig(
            id="trend_secondary",
            title=f"{secondary.name} Trend",
            type="line",
            x_axis_key=date_col.name,
            data_keys=(secondary.name,),
            description=f"Trend analysis for {secondary.name}",
        )
    if category_col is not None:
        return ChartConfig(
            id="cat_breakdown_secondary",
            title=f"{secondary.name} by {category_col.name}",
            type="bar",
            x_axis_key=category_col.name,
            data_keys=(secondary.name,),
            description="Comparative analysis",
        )
    return None


def generate_smart_charts(dataset: Dataset) -> list[ChartConfig]:
    """
    Select the charts that best represent *dataset*'s shape.

    Every ``x_axis_key``/``data_keys`` entry names a dataset column, except
    the ``"index"`` axis of the distribution chart and the synthetic keys
    of the placeholder fallback.
    """

    columns = dataset.columns
    date_col = next((c for c in columns if c.type is ColumnType.DATE), None)
    category_cols = [c for c in columns if _is_category_column(c)]
    metric_cols = [c for c in columns if is_metric_column(c)]
    category_col = category_cols[0] if category_cols else None

    charts: list[ChartConfig] = []

    if date_col is not None and metric_cols:
        charts.append(_trend_chart(date_col, metric_cols[0], _looks_like_sports(columns)))

    if category_col is not None and metric_cols:
        charts.append(
            ChartConfig(
                id="cat_breakdown",
                title=f"{metric_cols[0].name} by {category_col.name}",
                type="donut",
                x_axis_key=category_col.name,
                data_keys=(metric_cols[0].name,),
                description="Distribution across top categories",
            )
        )

    if len(metric_cols) >= 2:
        charts.append(
            ChartConfig(
                id="correlation_scatter",
                title=f"{metric_cols[0].name} vs {metric_cols[1].name}",
                type="scatter",
                x_axis_key=metric_cols[0].name,
                data_keys=(metric_cols[1].name,),
                description="Correlation analysis between metrics",
            )
        )

    if not charts and metric_cols:
        charts.append(
            ChartConfig(
                id="distribution_bar",
                title=f"{metric_cols[0].name} Distribution",
                type="bar",
                x_axis_key=category_col.name if category_col is not None else INDEX_AXIS_KEY,
                data_keys=(metric_cols[0].name,),
                description=f"Value distribution of {metric_cols[0].name}",
            )
        )

    if len(charts) < TARGET_CHART_COUNT and len(metric_cols) >= 2:
        filler = _secondary_chart(metric_cols[1], date_col, category_col)
        if filler is not None:
            charts.append(filler)

    if not charts:
        charts.append(
            ChartConfig(
                id="demo_fallback",
                title="Sample Data Overview",
                type="bar",
                x_axis_key=FALLBACK_X_AXIS_KEY,
                data_keys=(FALLBACK_DATA_KEY,),
                description="No mapable columns found. Showing sample data pattern.",
            )
        )

    return charts
