"""
app/schemas/dashboard.py

Request and response schemas for dashboard endpoints.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ForecastStateResponse(BaseModel):
    """
    Forecast request lifecycle as seen by the client.
    """

    status: str
    loading: bool
    error: str | None = None
    forecast: list[dict[str, Any]] | None = None


class DashboardResponse(BaseModel):
    """
    One dashboard view: dataset summary, charts and enrichment state.
    """

    session_id: str
    dataset: dict[str, Any]
    charts: list[dict[str, Any]] = Field(default_factory=list)
    insights: list[dict[str, Any]] = Field(default_factory=list)
    story: dict[str, Any] | None = None
    enriched: bool = False
    forecast: ForecastStateResponse


class ChatRequest(BaseModel):
    query: str = Field(..., min_length=1)


class ChatResponse(BaseModel):
    session_id: str
    query: str
    answer: str
