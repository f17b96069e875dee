"""Prompt builders for AI dataset enrichment."""

import json
from typing import Any, Dict, List, Sequence

from app.domain.dataset import ColumnType, Dataset
from llm_synthesis.adapter import StructuredOutput
from llm_synthesis.schema import DataStoryAdapter, ForecastPointList, InsightList, InsightModel

MAX_SUMMARY_COLUMNS = 10
MAX_SUMMARY_KPIS = 5
MAX_STORY_INSIGHTS = 3
MAX_STORY_STATS = 3

INSIGHTS_OUTPUT = StructuredOutput(
    name="insights",
    schema=InsightList.json_schema(by_alias=True),
)
STORY_OUTPUT = StructuredOutput(
    name="story",
    schema=DataStoryAdapter.json_schema(by_alias=True),
)
FORECAST_OUTPUT = StructuredOutput(
    name="forecast",
    schema=ForecastPointList.json_schema(by_alias=True),
)


def _kpi_lines(dataset: Dataset, limit: int) -> List[str]:
    return [f"{kpi.label}: {kpi.value}" for kpi in dataset.kpis[:limit]]


class EnrichmentPromptBuilder:
    """Builds compact prompts from dataset metadata.

    Prompts carry column metadata and KPIs only, never raw rows, except the
    forecast prompt which carries the bounded history it predicts from.
    """

    def summarize(self, dataset: Dataset) -> Dict[str, Any]:
        """Size-limited dataset summary used by the insights prompt.

        Args:
            dataset: The analyzed dataset.

        Returns:
            Row count, up to ten columns with type-specific stats, and up
            to five KPI lines.
        """
        columns = []
        for column in dataset.columns[:MAX_SUMMARY_COLUMNS]:
            if column.type is ColumnType.NUMBER:
                stats = {"min": column.min, "max": column.max, "avg": column.avg}
            else:
                stats = {"unique": column.unique_values}
            columns.append({"name": column.name, "type": column.type.value, "stats": stats})
        return {
            "totalRows": dataset.row_count,
            "columns": columns,
            "kpis": _kpi_lines(dataset, MAX_SUMMARY_KPIS),
        }

    def build_insights_prompt(self, dataset: Dataset) -> str:
        summary = json.dumps(self.summarize(dataset), default=str)
        return (
            "Analyze this dataset summary and generate 3 business observations.\n"
            f"Dataset Summary: {summary}\n"
            "Return JSON array: [{type, title, description, confidence}]."
        )

    def build_story_prompt(self, dataset: Dataset, insights: Sequence[InsightModel]) -> str:
        """Build the data-story prompt.

        Uses up to three insight descriptions when available; otherwise
        falls back to averages of the first numeric columns.
        """
        context = (
            f"Dataset: {dataset.name}\n"
            f"KPIs: {', '.join(_kpi_lines(dataset, MAX_SUMMARY_KPIS))}"
        )
        if insights:
            descriptions = "; ".join(i.description for i in insights[:MAX_STORY_INSIGHTS])
            context += f"\nInsights: {descriptions}"
        else:
            numeric = [
                c
                for c in dataset.columns
                if c.type is ColumnType.NUMBER and c.name.lower() != "id"
            ][:MAX_STORY_STATS]
            stats = "; ".join(
                f"{c.name} (Avg: {c.avg:.1f})" if c.avg is not None else c.name
                for c in numeric
            )
            context += f"\nStats: {stats}"
        return (
            'Create a "Data Story" (3 segments) based on this context.\n'
            f"Context: {context}\n"
            "Return JSON: {title, summary, segments: [{id, title, text, audioScript, chartId}]}.\n"
            "Keep audioScript concise."
        )

    def build_chat_prompt(self, query: str, dataset: Dataset) -> str:
        columns = ", ".join(c.name for c in dataset.columns)
        kpis = ", ".join(_kpi_lines(dataset, len(dataset.kpis)))
        context = f"Columns: {columns}. KPIs: {kpis}."
        return f'Context: {context} User Question: "{query}". Answer briefly in plain text.'

    def build_forecast_prompt(self, history: List[Dict[str, Any]]) -> str:
        return (
            f"History: {json.dumps(history, default=str)}\n"
            "Predict next 3 periods. Return JSON array: [{date, value, lowerBound, upperBound}]."
        )
