"""
app/services/dashboard_service.py

Dashboard session orchestrator.

Wires the file-load boundary, the chart selector and the AI enrichment
client into two phases per dataset load:

    Phase 1 (synchronous)  - parse, analyze, select charts; the dashboard
                             is complete without any AI involvement
    Phase 2 (asynchronous) - insights and data story requested concurrently;
                             each outcome is applied on its own, so one
                             failing never hides the other

Relevance
---------
Every load bumps the session's dataset. Enrichment results that arrive
for a dataset that is no longer on screen (replaced upload, closed
session, service reset) are discarded instead of applied.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any

from app.config import get_dashboard_settings, get_llm_settings
from app.domain.dataset import ChartConfig, Dataset
from app.logging_utils import dataset_fields, log_event
from charts.selector import generate_smart_charts
from forecast.session import DEFAULT_ERROR_DISMISS_SECONDS, ForecastSession
from inference.demo import load_demo_dataset
from inference.errors import DatasetFormatError, UploadTooLargeError
from inference.loader import load_dataset
from llm_synthesis.adapter import build_llm_adapter
from llm_synthesis.client import InsightClient
from llm_synthesis.schema import DataStoryModel, InsightModel

logger = logging.getLogger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 20 * 1024 * 1024
DEFAULT_MAX_SESSIONS = 100


class DashboardSessionNotFoundError(KeyError):
    """Raised when a session id does not name an open session."""


@dataclass
class DashboardSession:
    """
    Everything one dashboard view shows for its current dataset.
    """

    id: str
    dataset: Dataset
    charts: list[ChartConfig]
    forecast: ForecastSession
    insights: list[InsightModel] = field(default_factory=list)
    story: DataStoryModel | None = None
    enriched: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self, include_rows: bool = False) -> dict[str, Any]:
        return {
            "session_id": self.id,
            "dataset": self.dataset.to_dict(include_rows=include_rows),
            "charts": [chart.to_dict() for chart in self.charts],
            "insights": [insight.model_dump(by_alias=True) for insight in self.insights],
            "story": self.story.model_dump(by_alias=True) if self.story is not None else None,
            "enriched": self.enriched,
            "forecast": self.forecast.snapshot(),
        }


class DashboardService:
    """
    Owns open dashboard sessions and the AI client they share.

    Parameters
    ----------
    client:
        Enrichment client; its cache lives as long as this service.
    error_dismiss_seconds:
        Auto-dismiss delay for forecast errors.
    max_upload_bytes:
        Largest accepted upload.
    max_sessions:
        Open sessions kept at once; opening one more evicts the oldest.
    """

    def __init__(
        self,
        client: InsightClient,
        error_dismiss_seconds: float = DEFAULT_ERROR_DISMISS_SECONDS,
        max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
    ) -> None:
        self._client = client
        self._error_dismiss_seconds = error_dismiss_seconds
        self._max_upload_bytes = max_upload_bytes
        self._max_sessions = max(1, max_sessions)
        self._sessions: dict[str, DashboardSession] = {}

    @property
    def client(self) -> InsightClient:
        return self._client

    # ------------------------------------------------------------------
    # Phase 1: synchronous load
    # ------------------------------------------------------------------

    def _decode(self, filename: str, content: bytes | str) -> str:
        if isinstance(content, str):
            return content
        if len(content) > self._max_upload_bytes:
            raise UploadTooLargeError(len(content), self._max_upload_bytes)
        try:
            return content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise DatasetFormatError(filename) from exc

    def _open(self, dataset: Dataset, session_id: str | None) -> DashboardSession:
        charts = generate_smart_charts(dataset)

        existing = self._sessions.get(session_id) if session_id else None
        if existing is not None:
            existing.dataset = dataset
            existing.charts = charts
            existing.insights = []
            existing.story = None
            existing.enriched = False
            existing.forecast.set_dataset(dataset)
            session = existing
        else:
            session = DashboardSession(
                id=session_id or uuid.uuid4().hex,
                dataset=dataset,
                charts=charts,
                forecast=ForecastSession(
                    self._client,
                    dataset,
                    error_dismiss_seconds=self._error_dismiss_seconds,
                ),
            )
            self._sessions[session.id] = session
            self._evict_oldest()

        log_event(
            logger,
            logging.INFO,
            "dashboard_loaded",
            session_id=session.id,
            charts=[chart.id for chart in charts],
            **dataset_fields(dataset),
        )
        return session

    def _evict_oldest(self) -> None:
        while len(self._sessions) > self._max_sessions:
            oldest = min(self._sessions.values(), key=lambda s: s.created_at)
            del self._sessions[oldest.id]
            log_event(
                logger,
                logging.INFO,
                "dashboard_session_evicted",
                session_id=oldest.id,
                open_sessions=len(self._sessions),
            )

    def load_upload(
        self,
        filename: str,
        content: bytes | str,
        session_id: str | None = None,
    ) -> DashboardSession:
        """
        Build a dashboard from one uploaded file.

        Passing an existing *session_id* replaces that session's dataset and
        resets its insights, story and forecast state.

        Raises
        ------
        DatasetFormatError
            If the file cannot be parsed into a non-empty dataset.
        UploadTooLargeError
            If *content* exceeds the upload size limit.
        """

        text = self._decode(filename, content)
        dataset = load_dataset(filename, text)
        return self._open(dataset, session_id)

    def load_demo(self, session_id: str | None = None) -> DashboardSession:
        return self._open(load_demo_dataset(), session_id)

    def get_session(self, session_id: str) -> DashboardSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise DashboardSessionNotFoundError(session_id)
        return session

    def close_session(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def reset(self) -> None:
        """
        Drop every session and clear the AI result cache.
        """

        self._sessions.clear()
        self._client.cache.clear()
        logger.info("Dashboard service reset: sessions and AI cache cleared")

    # ------------------------------------------------------------------
    # Phase 2: asynchronous enrichment
    # ------------------------------------------------------------------

    def _is_relevant(self, session: DashboardSession, dataset: Dataset) -> bool:
        return self._sessions.get(session.id) is session and session.dataset is dataset

    async def enrich(self, session_id: str) -> DashboardSession:
        """
        Fetch AI insights and the data story concurrently.

        Each outcome is applied independently. Results for a dataset that
        has since been replaced are dropped.
        """

        session = self.get_session(session_id)
        dataset = session.dataset

        insights_outcome, story_outcome = await asyncio.gather(
            self._client.generate_ai_insights(dataset),
            self._client.generate_data_story(dataset, []),
            return_exceptions=True,
        )

        if not self._is_relevant(session, dataset):
            log_event(
                logger,
                logging.INFO,
                "enrichment_discarded",
                session_id=session.id,
                **dataset_fields(dataset),
            )
            return session

        if isinstance(insights_outcome, BaseException):
            logger.error(
                "Insight enrichment failed for session %s",
                session.id,
                exc_info=insights_outcome,
            )
        else:
            session.insights = list(insights_outcome)

        if isinstance(story_outcome, BaseException):
            logger.error(
                "Story enrichment failed for session %s",
                session.id,
                exc_info=story_outcome,
            )
        elif story_outcome is not None:
            session.story = story_outcome

        session.enriched = True
        return session

    async def ask(self, session_id: str, query: str) -> str:
        session = self.get_session(session_id)
        return await self._client.generate_chat_response(query, session.dataset)

    async def run_forecast(self, session_id: str) -> DashboardSession:
        session = self.get_session(session_id)
        await session.forecast.run_forecast()
        return session


@lru_cache(maxsize=1)
def get_dashboard_service() -> DashboardService:
    """
    Build and cache the dashboard service with env-driven settings.
    """
    llm_settings = get_llm_settings()
    dashboard_settings = get_dashboard_settings()
    client = InsightClient.from_settings(
        build_llm_adapter(llm_settings),
        llm_settings,
        history_points=dashboard_settings.forecast_history_points,
    )
    return DashboardService(
        client,
        error_dismiss_seconds=dashboard_settings.forecast_error_dismiss_seconds,
        max_upload_bytes=dashboard_settings.max_upload_bytes,
        max_sessions=dashboard_settings.max_sessions,
    )
