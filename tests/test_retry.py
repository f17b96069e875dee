"""
tests/test_retry.py

Pytest unit tests for transient-failure retry with exponential backoff.
"""

from __future__ import annotations

import asyncio

import pytest

from llm_synthesis.adapter import LLMServiceError
from llm_synthesis.retry import is_retryable, with_retry


class _Operation:
    def __init__(self, *outcomes: object) -> None:
        self._outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self) -> object:
        self.calls += 1
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class TestIsRetryable:
    @pytest.mark.parametrize("status", [None, 500, 502, 503, 429])
    def test_transient_statuses(self, status: int | None) -> None:
        assert is_retryable(LLMServiceError("boom", status=status))

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 422])
    def test_permanent_statuses(self, status: int) -> None:
        assert not is_retryable(LLMServiceError("boom", status=status))

    def test_plain_exception_without_status_is_transient(self) -> None:
        assert is_retryable(RuntimeError("connection reset"))


class TestWithRetry:
    def test_success_on_second_attempt_after_503(self, sleep) -> None:
        operation = _Operation(LLMServiceError("unavailable", status=503), "ok")
        result = asyncio.run(with_retry(operation, sleep=sleep))
        assert result == "ok"
        assert operation.calls == 2
        assert sleep.delays == [1.0]

    def test_permanent_failure_is_attempted_once(self, sleep) -> None:
        operation = _Operation(LLMServiceError("not found", status=404), "never")
        with pytest.raises(LLMServiceError) as exc_info:
            asyncio.run(with_retry(operation, sleep=sleep))
        assert exc_info.value.status == 404
        assert operation.calls == 1
        assert sleep.delays == []

    def test_backoff_doubles_and_gives_up_after_three_retries(self, sleep) -> None:
        failures = [LLMServiceError("rate limited", status=429) for _ in range(4)]
        operation = _Operation(*failures)
        with pytest.raises(LLMServiceError):
            asyncio.run(with_retry(operation, sleep=sleep))
        assert operation.calls == 4
        assert sleep.delays == [1.0, 2.0, 4.0]

    def test_first_success_makes_no_extra_calls(self, sleep) -> None:
        operation = _Operation("first", "second")
        assert asyncio.run(with_retry(operation, sleep=sleep)) == "first"
        assert operation.calls == 1

    def test_zero_retries(self, sleep) -> None:
        operation = _Operation(LLMServiceError("down", status=500))
        with pytest.raises(LLMServiceError):
            asyncio.run(with_retry(operation, retries=0, sleep=sleep))
        assert operation.calls == 1
