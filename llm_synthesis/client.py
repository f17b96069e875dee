"""AI enrichment client: insights, data story, chat and forecast.

Error contracts differ per operation and are part of the interface:

* ``generate_ai_insights`` never raises. Missing credentials yield a fixed
  two-item mock list; any service or parse failure yields ``[]``.
* ``generate_data_story`` never raises. Missing credentials or any failure
  yield ``None``.
* ``generate_chat_response`` never raises. Missing credentials yield a
  fixed apology; any failure yields a fixed error string.
* ``generate_forecast`` yields ``[]`` when credentials are missing, checked
  first. Otherwise it raises ``NoTimeSeriesError`` when the dataset has no
  DATE/metric column pair, and yields ``[]`` on any service or parse failure.

Every operation is memoized in the injected ``AICache`` (successes only)
and every service call goes through ``with_retry``.
"""

import logging
from typing import Any, Callable, List, Optional, Sequence, TypeVar

from pydantic import TypeAdapter

from app.config import LLMSettings
from app.domain.dataset import Dataset
from app.logging_utils import dataset_fields, log_event
from forecast.series import DEFAULT_HISTORY_POINTS, build_history, find_time_series_pair
from llm_synthesis.adapter import BaseLLMAdapter, StructuredOutput
from llm_synthesis.cache import AICache, cache_key
from llm_synthesis.prompt_builder import (
    FORECAST_OUTPUT,
    INSIGHTS_OUTPUT,
    STORY_OUTPUT,
    EnrichmentPromptBuilder,
)
from llm_synthesis.retry import with_retry
from llm_synthesis.schema import (
    DataStoryAdapter,
    DataStoryModel,
    ForecastPointList,
    ForecastPointModel,
    InsightList,
    InsightModel,
)
from llm_synthesis.validator import LLMOutputValidationError, validate_llm_output

logger = logging.getLogger(__name__)

T = TypeVar("T")

MISSING_KEY_CHAT_RESPONSE = "I can't answer that without an API Key."
CHAT_ERROR_RESPONSE = "Error analyzing question. Please try again."
EMPTY_CHAT_RESPONSE = "No response generated."

MOCK_INSIGHTS: List[InsightModel] = [
    InsightModel(
        category="general",
        title="Data Overview",
        description="API Key missing. Showing mock insights.",
        confidence=100,
    ),
    InsightModel(
        category="growth",
        title="Revenue Trend",
        description="Positive growth trajectory observed.",
        confidence=85,
    ),
]


class InsightClient:
    """Talks to the AI collaborator on behalf of one dashboard process.

    Args:
        adapter: The AI adapter, or None when no credentials are configured.
        cache: Result cache owned by this client.
        retries: Additional attempts after a transient failure.
        initial_delay: Seconds before the first retry.
        multiplier: Factor applied to the delay after each retry.
        history_points: Maximum history length sent for forecasting.
        sleep: Optional awaitable sleep used between retries.
    """

    def __init__(
        self,
        adapter: Optional[BaseLLMAdapter],
        cache: Optional[AICache] = None,
        retries: int = 3,
        initial_delay: float = 1.0,
        multiplier: float = 2.0,
        history_points: int = DEFAULT_HISTORY_POINTS,
        sleep: Optional[Callable[[float], Any]] = None,
    ) -> None:
        self._adapter = adapter
        self._cache = cache if cache is not None else AICache()
        self._retries = retries
        self._initial_delay = initial_delay
        self._multiplier = multiplier
        self._history_points = history_points
        self._sleep = sleep
        self._prompts = EnrichmentPromptBuilder()

    @classmethod
    def from_settings(
        cls,
        adapter: Optional[BaseLLMAdapter],
        settings: LLMSettings,
        history_points: int = DEFAULT_HISTORY_POINTS,
    ) -> "InsightClient":
        return cls(
            adapter,
            cache=AICache(),
            retries=settings.max_retries,
            initial_delay=settings.backoff_initial_seconds,
            multiplier=settings.backoff_multiplier,
            history_points=history_points,
        )

    @property
    def cache(self) -> AICache:
        return self._cache

    @property
    def has_credentials(self) -> bool:
        return self._adapter is not None

    # ------------------------------------------------------------------
    # Service call plumbing
    # ------------------------------------------------------------------

    async def _call(self, prompt: str, output: Optional[StructuredOutput] = None) -> str:
        adapter = self._adapter
        retry_kwargs: dict = {
            "retries": self._retries,
            "initial_delay": self._initial_delay,
            "multiplier": self._multiplier,
        }
        if self._sleep is not None:
            retry_kwargs["sleep"] = self._sleep
        return await with_retry(lambda: adapter.generate(prompt, output), **retry_kwargs)

    async def _call_structured(
        self,
        prompt: str,
        output: StructuredOutput,
        schema: TypeAdapter[T],
    ) -> T:
        raw = await self._call(prompt, output)
        try:
            return validate_llm_output(raw, schema)
        except LLMOutputValidationError as exc:
            log_event(
                logger,
                logging.DEBUG,
                "ai_output_rejected",
                output=output.name,
                stage=exc.stage,
                errors=exc.errors,
                response=exc.snippet,
            )
            raise

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate_ai_insights(self, dataset: Dataset) -> List[InsightModel]:
        """Generate about three business observations for *dataset*.

        Never raises; see the module docstring for the fallbacks.
        """
        key = cache_key("insights", dataset)
        if key in self._cache:
            return self._cache.get(key)

        if self._adapter is None:
            log_event(logger, logging.WARNING, "ai_credentials_missing", operation="insights")
            return list(MOCK_INSIGHTS)

        try:
            insights = await self._call_structured(
                self._prompts.build_insights_prompt(dataset),
                INSIGHTS_OUTPUT,
                InsightList,
            )
        except Exception as exc:
            log_event(
                logger,
                logging.WARNING,
                "ai_insights_skipped",
                error_type=type(exc).__name__,
                error=str(exc),
                **dataset_fields(dataset),
            )
            return []

        self._cache.set(key, insights)
        return insights

    async def generate_data_story(
        self,
        dataset: Dataset,
        insights: Sequence[InsightModel] = (),
    ) -> Optional[DataStoryModel]:
        """Generate a three-segment narrative, or None.

        The cache key includes the number of insights supplied.
        """
        key = cache_key("story", dataset, str(len(insights)))
        if key in self._cache:
            return self._cache.get(key)

        if self._adapter is None:
            log_event(logger, logging.INFO, "ai_credentials_missing", operation="story")
            return None

        try:
            story = await self._call_structured(
                self._prompts.build_story_prompt(dataset, insights),
                STORY_OUTPUT,
                DataStoryAdapter,
            )
        except Exception as exc:
            log_event(
                logger,
                logging.WARNING,
                "ai_story_skipped",
                error_type=type(exc).__name__,
                error=str(exc),
                **dataset_fields(dataset),
            )
            return None

        self._cache.set(key, story)
        return story

    async def generate_chat_response(self, query: str, dataset: Dataset) -> str:
        """Answer a free-text question about *dataset* in plain text."""
        key = cache_key("chat", dataset, query)
        if key in self._cache:
            return self._cache.get(key)

        if self._adapter is None:
            return MISSING_KEY_CHAT_RESPONSE

        try:
            text = await self._call(self._prompts.build_chat_prompt(query, dataset))
        except Exception as exc:
            log_event(
                logger,
                logging.WARNING,
                "ai_chat_failed",
                error_type=type(exc).__name__,
                error=str(exc),
                **dataset_fields(dataset),
            )
            return CHAT_ERROR_RESPONSE

        answer = text or EMPTY_CHAT_RESPONSE
        self._cache.set(key, answer)
        return answer

    async def generate_forecast(self, dataset: Dataset) -> List[ForecastPointModel]:
        """Predict the next three periods of the dataset's first time series.

        Missing credentials return ``[]`` before the dataset shape is
        looked at.

        Raises:
            NoTimeSeriesError: If the dataset has no DATE column or no
                metric column.
        """
        key = cache_key("forecast", dataset)
        if key in self._cache:
            return self._cache.get(key)

        if self._adapter is None:
            log_event(logger, logging.WARNING, "ai_credentials_missing", operation="forecast")
            return []

        date_col, metric_col = find_time_series_pair(dataset)

        history = build_history(dataset, date_col, metric_col, limit=self._history_points)
        try:
            points = await self._call_structured(
                self._prompts.build_forecast_prompt(history),
                FORECAST_OUTPUT,
                ForecastPointList,
            )
        except Exception as exc:
            log_event(
                logger,
                logging.WARNING,
                "ai_forecast_failed",
                error_type=type(exc).__name__,
                error=str(exc),
                date_column=date_col.name,
                metric_column=metric_col.name,
                **dataset_fields(dataset),
            )
            return []

        self._cache.set(key, points)
        return points
