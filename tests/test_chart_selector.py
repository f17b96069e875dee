"""
tests/test_chart_selector.py

Pytest unit tests for heuristic chart selection.

Every assertion is deterministic: chart selection has no randomness.
"""

from __future__ import annotations

from app.domain.dataset import Dataset
from charts.selector import generate_smart_charts
from inference.analyzer import analyze_dataset


def _ids(dataset: Dataset) -> list[str]:
    return [chart.id for chart in generate_smart_charts(dataset)]


def _column_names(dataset: Dataset) -> set[str]:
    return {column.name for column in dataset.columns}


class TestDemoCharts:
    def test_headline_is_trend_on_date_and_sales(self, demo_dataset: Dataset) -> None:
        charts = generate_smart_charts(demo_dataset)
        headline = charts[0]
        assert headline.type == "area"
        assert headline.x_axis_key == "date"
        assert headline.data_keys == ("sales",)
        assert headline.title == "sales Over Time"
        assert headline.description == "Historical trend analysis of sales"

    def test_full_pipeline_for_demo(self, demo_dataset: Dataset) -> None:
        charts = generate_smart_charts(demo_dataset)
        assert [c.id for c in charts] == ["trend_main", "cat_breakdown", "correlation_scatter"]
        breakdown = charts[1]
        assert breakdown.type == "donut"
        assert breakdown.x_axis_key in {"region", "product"}
        assert breakdown.data_keys == ("sales",)
        scatter = charts[2]
        assert (scatter.x_axis_key, scatter.data_keys) == ("sales", ("units",))

    def test_keys_reference_dataset_columns(self, demo_dataset: Dataset) -> None:
        names = _column_names(demo_dataset)
        for chart in generate_smart_charts(demo_dataset):
            assert chart.x_axis_key in names
            assert set(chart.data_keys) <= names

    def test_is_deterministic(self, demo_dataset: Dataset) -> None:
        assert generate_smart_charts(demo_dataset) == generate_smart_charts(demo_dataset)


class TestTrendBranches:
    def test_sports_columns_change_title_and_description(self) -> None:
        dataset = analyze_dataset(
            "match",
            [
                {"date": "2023-01-01", "over": 1, "runs": 4},
                {"date": "2023-01-02", "over": 2, "runs": 9},
            ],
        )
        headline = generate_smart_charts(dataset)[0]
        assert headline.type == "area"
        assert headline.title == "over Progression"
        assert headline.description == "Cumulative score progression"

    def test_id_columns_never_chosen_as_metric(self) -> None:
        dataset = analyze_dataset(
            "t",
            [
                {"order_id": 1, "date": "2023-01-01", "amount": 10},
                {"order_id": 2, "date": "2023-01-02", "amount": 12},
            ],
        )
        headline = generate_smart_charts(dataset)[0]
        assert headline.data_keys == ("amount",)


class TestFallbacks:
    def test_single_metric_without_date_or_category_uses_index_axis(self) -> None:
        dataset = analyze_dataset("t", [{"value": 1}, {"value": 2}])
        charts = generate_smart_charts(dataset)
        assert len(charts) == 1
        assert charts[0].id == "distribution_bar"
        assert charts[0].type == "bar"
        assert charts[0].x_axis_key == "index"
        assert charts[0].data_keys == ("value",)

    def test_high_cardinality_strings_are_not_categories(self) -> None:
        rows = [{"name": f"user-{i}", "score": i} for i in range(60)]
        dataset = analyze_dataset("t", rows)
        assert _ids(dataset) == ["distribution_bar"]

    def test_no_usable_columns_yields_placeholder(self) -> None:
        dataset = analyze_dataset("t", [{"flag": True}, {"flag": False}])
        charts = generate_smart_charts(dataset)
        assert len(charts) == 1
        placeholder = charts[0]
        assert placeholder.id == "demo_fallback"
        assert placeholder.type == "bar"
        assert placeholder.x_axis_key == "category"
        assert placeholder.data_keys == ("value",)
        assert "sample data" in placeholder.description

    def test_empty_string_only_dataset_yields_placeholder(self) -> None:
        dataset = analyze_dataset("t", [{"a": None}, {"a": None}])
        assert _ids(dataset) == ["demo_fallback"]


class TestFiller:
    def test_two_metrics_with_date_add_secondary_line(self) -> None:
        dataset = analyze_dataset(
            "t",
            [
                {"date": "2023-01-01", "sales": 10, "units": 1},
                {"date": "2023-01-02", "sales": 20, "units": 2},
            ],
        )
        charts = generate_smart_charts(dataset)
        assert [c.id for c in charts] == ["trend_main", "correlation_scatter", "trend_secondary"]
        secondary = charts[2]
        assert secondary.type == "line"
        assert secondary.x_axis_key == "date"
        assert secondary.data_keys == ("units",)

    def test_two_metrics_with_category_add_secondary_bar(self) -> None:
        dataset = analyze_dataset(
            "t",
            [
                {"region": "N", "sales": 10, "units": 1},
                {"region": "S", "sales": 20, "units": 2},
            ],
        )
        charts = generate_smart_charts(dataset)
        assert [c.id for c in charts] == ["cat_breakdown", "correlation_scatter", "cat_breakdown_secondary"]
        assert charts[2].x_axis_key == "region"
        assert charts[2].data_keys == ("units",)

    def test_two_metrics_alone_get_scatter_only(self) -> None:
        dataset = analyze_dataset("t", [{"a": 1, "b": 2}, {"a": 3, "b": 4}])
        assert _ids(dataset) == ["correlation_scatter"]

    def test_no_filler_when_grid_is_full(self, demo_dataset: Dataset) -> None:
        assert "trend_secondary" not in _ids(demo_dataset)
