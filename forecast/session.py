"""
forecast/session.py

Request lifecycle for forecasts requested from the dashboard.

States: idle -> loading -> success (forecast stored) | error (message
stored). Errors clear themselves after ``error_dismiss_seconds``; setting
a new error restarts that timer. Switching datasets resets to idle.

Overlapping ``run_forecast`` calls are allowed; only the most recently
issued one may update state, so an older response that arrives late is
discarded. Responses for a dataset that is no longer current are
discarded the same way.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import TYPE_CHECKING

from app.domain.dataset import Dataset
from app.logging_utils import dataset_fields, log_event

if TYPE_CHECKING:
    from llm_synthesis.client import InsightClient
    from llm_synthesis.schema import ForecastPointModel

logger = logging.getLogger(__name__)

EMPTY_FORECAST_MESSAGE = "Forecast generation failed. Please check your API key and try again."
DEFAULT_FAILURE_MESSAGE = (
    "Unable to generate forecast. Ensure your data has a valid Date and Number column."
)
DEFAULT_ERROR_DISMISS_SECONDS = 6.0


class ForecastStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class ForecastSession:
    """
    Forecast state for one dataset view.

    Parameters
    ----------
    client:
        The enrichment client that produces forecasts.
    dataset:
        The dataset currently on screen.
    error_dismiss_seconds:
        Delay before an error clears itself.
    """

    def __init__(
        self,
        client: InsightClient,
        dataset: Dataset,
        error_dismiss_seconds: float = DEFAULT_ERROR_DISMISS_SECONDS,
    ) -> None:
        self._client = client
        self._dataset = dataset
        self._error_dismiss_seconds = error_dismiss_seconds
        self._forecast: list[ForecastPointModel] | None = None
        self._error: str | None = None
        self._in_flight = 0
        self._request_seq = 0
        self._dismiss_handle: asyncio.TimerHandle | None = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def dataset(self) -> Dataset:
        return self._dataset

    @property
    def forecast(self) -> list[ForecastPointModel] | None:
        return self._forecast

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    @property
    def status(self) -> ForecastStatus:
        if self.loading:
            return ForecastStatus.LOADING
        if self._error is not None:
            return ForecastStatus.ERROR
        if self._forecast is not None:
            return ForecastStatus.SUCCESS
        return ForecastStatus.IDLE

    def snapshot(self) -> dict:
        return {
            "status": self.status.value,
            "loading": self.loading,
            "error": self._error,
            "forecast": (
                [point.model_dump(by_alias=True) for point in self._forecast]
                if self._forecast is not None
                else None
            ),
        }

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def set_dataset(self, dataset: Dataset) -> None:
        """
        Switch to *dataset*: clear forecast and error, drop in-flight results.
        """

        if dataset is self._dataset:
            return
        self._dataset = dataset
        self._forecast = None
        self._clear_error()
        self._request_seq += 1

    def clear_forecast(self) -> None:
        self._forecast = None

    def dismiss_error(self) -> None:
        self._clear_error()

    async def run_forecast(self) -> bool:
        """
        Request a forecast for the current dataset.

        Returns True when a non-empty forecast was stored. A stale
        response (superseded request or changed dataset) returns False
        and leaves state untouched.
        """

        self._request_seq += 1
        request_id = self._request_seq
        dataset = self._dataset

        self._clear_error()
        self._in_flight += 1
        try:
            result = await self._client.generate_forecast(dataset)
        except Exception as exc:
            if not self._is_current(request_id, dataset):
                return False
            logger.exception("Forecast request failed for dataset '%s'", dataset.name)
            self._set_error(str(exc) or DEFAULT_FAILURE_MESSAGE)
            return False
        finally:
            self._in_flight -= 1

        if not self._is_current(request_id, dataset):
            log_event(logger, logging.INFO, "forecast_response_discarded", **dataset_fields(dataset))
            return False

        if result:
            self._forecast = result
            return True

        self._set_error(EMPTY_FORECAST_MESSAGE)
        return False

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _is_current(self, request_id: int, dataset: Dataset) -> bool:
        return request_id == self._request_seq and dataset is self._dataset

    def _set_error(self, message: str) -> None:
        self._cancel_dismiss_timer()
        self._error = message
        loop = asyncio.get_running_loop()
        self._dismiss_handle = loop.call_later(self._error_dismiss_seconds, self._auto_dismiss)

    def _auto_dismiss(self) -> None:
        self._dismiss_handle = None
        self._error = None

    def _clear_error(self) -> None:
        self._cancel_dismiss_timer()
        self._error = None

    def _cancel_dismiss_timer(self) -> None:
        if self._dismiss_handle is not None:
            self._dismiss_handle.cancel()
            self._dismiss_handle = None
