"""Structured output schemas for AI enrichment results."""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

InsightCategory = Literal["growth", "anomaly", "correlation", "general"]

_INSIGHT_CATEGORIES = frozenset({"growth", "anomaly", "correlation", "general"})


class _WireModel(BaseModel):
    """Accepts both camelCase wire keys and snake_case field names."""

    model_config = ConfigDict(
        populate_by_name=True,
        str_strip_whitespace=True,
        frozen=True,
    )


class InsightModel(_WireModel):
    """One AI-generated business observation.

    The wire key for ``category`` is ``type``. Unknown categories are
    folded into ``general`` rather than rejected.
    """

    category: InsightCategory = Field(alias="type")
    title: str
    description: str
    confidence: float

    @field_validator("category", mode="before")
    @classmethod
    def _fold_unknown_category(cls, value: object) -> object:
        if isinstance(value, str):
            lowered = value.strip().lower()
            return lowered if lowered in _INSIGHT_CATEGORIES else "general"
        return value


class ForecastPointModel(_WireModel):
    """One predicted future period with its confidence band."""

    date: str
    value: float
    lower_bound: float = Field(alias="lowerBound")
    upper_bound: float = Field(alias="upperBound")


class StorySegmentModel(_WireModel):
    """One narrative step, optionally tied to a chart for highlighting."""

    id: str = ""
    title: str = ""
    text: str = ""
    audio_script: str = Field(default="", alias="audioScript")
    chart_id: Optional[str] = Field(default=None, alias="chartId")


class DataStoryModel(_WireModel):
    """A short narrative broken into ordered segments."""

    title: str
    summary: str
    segments: List[StorySegmentModel] = Field(default_factory=list)


InsightList = TypeAdapter(List[InsightModel])
ForecastPointList = TypeAdapter(List[ForecastPointModel])
DataStoryAdapter = TypeAdapter(DataStoryModel)
