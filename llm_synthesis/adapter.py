"""AI adapters for dataset enrichment.

Provides a base interface, an adapter for OpenAI-compatible APIs and a
deterministic mock for local runs. Adapters are the only code that talks
to the external service; they turn transport failures into
``LLMServiceError`` carrying an optional HTTP-like status code.
"""

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from app.config import LLMSettings


class LLMServiceError(Exception):
    """Raised when the external AI service call fails.

    Attributes:
        status: HTTP-like status code, or None for network-level failures.
    """

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        self.status = status
        super().__init__(message)


@dataclass(frozen=True)
class StructuredOutput:
    """Names and describes the JSON shape a response must follow."""

    name: str
    schema: Dict[str, Any] = field(default_factory=dict)


class BaseLLMAdapter(ABC):
    """Abstract base for all AI adapters."""

    @abstractmethod
    async def generate(self, prompt: str, output: Optional[StructuredOutput] = None) -> str:
        """Send a prompt to the model and return the raw response text.

        Args:
            prompt: The fully formatted prompt string.
            output: Expected JSON shape, or None for a plain-text answer.

        Returns:
            Raw string response from the model.

        Raises:
            LLMServiceError: If the service call fails.
        """


class OpenAILLMAdapter(BaseLLMAdapter):
    """Adapter for OpenAI-compatible chat completion APIs.

    Configured for non-streaming, low-temperature output. When a structured
    output is requested its JSON schema is sent as a system instruction.
    """

    def __init__(
        self,
        model: str = "gpt-4o-mini",
        max_tokens: int = 2048,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
    ) -> None:
        """Initialise the OpenAI adapter.

        Args:
            model: Model identifier.
            max_tokens: Maximum tokens in the completion.
            api_key: API key for the endpoint.
            base_url: Optional base URL for OpenAI-compatible endpoints.
        """
        try:
            import openai  # type: ignore[import-untyped]
        except ImportError as exc:
            raise ImportError(
                "openai package is required for OpenAILLMAdapter. "
                "Install it with: pip install openai"
            ) from exc

        client_kwargs: dict = {"api_key": api_key}
        if base_url:
            client_kwargs["base_url"] = base_url

        self._openai = openai
        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._model = model
        self._max_tokens = max_tokens

    @staticmethod
    def _messages(prompt: str, output: Optional[StructuredOutput]) -> list:
        messages = []
        if output is not None:
            messages.append(
                {
                    "role": "system",
                    "content": (
                        "Respond with JSON only, no prose and no code fences. "
                        f"The JSON must match this schema ({output.name}):\n"
                        f"{json.dumps(output.schema)}"
                    ),
                }
            )
        messages.append({"role": "user", "content": prompt})
        return messages

    async def generate(self, prompt: str, output: Optional[StructuredOutput] = None) -> str:
        """Call the chat completion API.

        Args:
            prompt: The fully formatted prompt string.
            output: Expected JSON shape, or None for plain text.

        Returns:
            Raw string content from the model response.

        Raises:
            LLMServiceError: On HTTP errors (with status) or connection
                failures (without status).
        """
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=self._messages(prompt, output),
                temperature=0.2,
                max_tokens=self._max_tokens,
                stream=False,
            )
        except self._openai.APIStatusError as exc:
            raise LLMServiceError(str(exc), status=exc.status_code) from exc
        except self._openai.APIConnectionError as exc:
            raise LLMServiceError(str(exc)) from exc
        return response.choices[0].message.content or ""


# ---------------------------------------------------------------------------
# Fixed mock responses used for local runs.
# ---------------------------------------------------------------------------
_MOCK_RESPONSES = {
    "insights": [
        {
            "type": "growth",
            "title": "Steady top-line growth",
            "description": "The primary metric trends upward across the observed periods.",
            "confidence": 82,
        },
        {
            "type": "anomaly",
            "title": "Concentrated spikes",
            "description": "A handful of records account for an outsized share of the total.",
            "confidence": 74,
        },
        {
            "type": "correlation",
            "title": "Volume and value move apart",
            "description": "Higher unit counts tend to coincide with lower per-record value.",
            "confidence": 68,
        },
    ],
    "story": {
        "title": "What the data says",
        "summary": "Mock narrative generated without a live model.",
        "segments": [
            {
                "id": "s1",
                "title": "The headline",
                "text": "The primary metric is the main driver of the dataset.",
                "audioScript": "The primary metric drives this dataset.",
                "chartId": "trend_main",
            },
            {
                "id": "s2",
                "title": "Where it comes from",
                "text": "A few categories contribute most of the total.",
                "audioScript": "A few categories contribute most of the total.",
                "chartId": "cat_breakdown",
            },
        ],
    },
    "forecast": [
        {"date": "period+1", "value": 100.0, "lowerBound": 90.0, "upperBound": 110.0},
        {"date": "period+2", "value": 104.0, "lowerBound": 92.0, "upperBound": 116.0},
        {"date": "period+3", "value": 108.0, "lowerBound": 94.0, "upperBound": 122.0},
    ],
}

_MOCK_TEXT = "Mock answer: connect a live model for real responses."


class MockLLMAdapter(BaseLLMAdapter):
    """Deterministic adapter that returns fixed valid responses.

    Used for local runs and CI pipelines where no AI service is available.
    """

    async def generate(self, prompt: str, output: Optional[StructuredOutput] = None) -> str:
        """Return a fixed response regardless of the prompt.

        Args:
            prompt: Ignored - present only to satisfy the interface.
            output: Selects which canned JSON payload to return.

        Returns:
            Canned JSON for known output names, plain text otherwise.
        """
        if output is not None and output.name in _MOCK_RESPONSES:
            return json.dumps(_MOCK_RESPONSES[output.name], indent=2)
        return _MOCK_TEXT


def build_llm_adapter(settings: LLMSettings) -> Optional[BaseLLMAdapter]:
    """Build the configured adapter, or None when credentials are missing.

    Args:
        settings: LLM settings resolved from the environment.

    Returns:
        A mock adapter when ``settings.adapter == "mock"``, an OpenAI
        adapter when an API key is configured, otherwise None.
    """
    if settings.adapter == "mock":
        return MockLLMAdapter()
    if not settings.api_key:
        return None
    return OpenAILLMAdapter(
        model=settings.model,
        max_tokens=settings.max_tokens,
        api_key=settings.api_key,
        base_url=settings.base_url,
    )
