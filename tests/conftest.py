"""
Shared fixtures: a scripted AI adapter and a no-wait sleep.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import pytest

from app.domain.dataset import Dataset
from inference.analyzer import analyze_dataset
from inference.demo import demo_rows
from llm_synthesis.adapter import BaseLLMAdapter, StructuredOutput


class ScriptedAdapter(BaseLLMAdapter):
    """
    Replays queued responses; exceptions in the queue are raised.

    The last queued item repeats once the queue is drained.
    """

    def __init__(self, *responses: Any) -> None:
        self._responses = list(responses)
        self.calls: list[tuple[str, Optional[StructuredOutput]]] = []

    async def generate(self, prompt: str, output: Optional[StructuredOutput] = None) -> str:
        self.calls.append((prompt, output))
        item = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, (list, dict)):
            return json.dumps(item)
        return item


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture()
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture()
def demo_dataset() -> Dataset:
    """Demo rows run through the plain analyzer (derived KPIs)."""
    return analyze_dataset("SaaS Sales Q3-Q4", demo_rows())


FORECAST_PAYLOAD = [
    {"date": "2023-09-16", "value": 7000, "lowerBound": 6000, "upperBound": 8000},
    {"date": "2023-09-17", "value": 7100, "lowerBound": 6050, "upperBound": 8150},
    {"date": "2023-09-18", "value": 7200, "lowerBound": 6100, "upperBound": 8300},
]

INSIGHTS_PAYLOAD = [
    {"type": "growth", "title": "Enterprise leads", "description": "Enterprise drives revenue.", "confidence": 90},
    {"type": "anomaly", "title": "Asia dip", "description": "Asia lags other regions.", "confidence": 70},
    {"type": "correlation", "title": "Units vs sales", "description": "More units, lower value.", "confidence": 60},
]

STORY_PAYLOAD = {
    "title": "Q3 in review",
    "summary": "Enterprise deals carried the quarter.",
    "segments": [
        {"id": "s1", "title": "Trend", "text": "Sales rose.", "audioScript": "Sales rose.", "chartId": "trend_main"},
        {"id": "s2", "title": "Regions", "text": "Europe led.", "audioScript": "Europe led."},
    ],
}


@pytest.fixture()
def scripted_adapter() -> type[ScriptedAdapter]:
    """Factory: ``scripted_adapter(resp1, resp2, ...)``."""
    return ScriptedAdapter


@pytest.fixture()
def forecast_payload() -> list[dict]:
    return [dict(point) for point in FORECAST_PAYLOAD]


@pytest.fixture()
def insights_payload() -> list[dict]:
    return [dict(item) for item in INSIGHTS_PAYLOAD]


@pytest.fixture()
def story_payload() -> dict:
    return json.loads(json.dumps(STORY_PAYLOAD))
