"""Turns raw AI response text into validated enrichment results.

Three checks run in order and each failure names its stage:

* ``empty``: the response carries no text at all.
* ``json_parse``: no JSON document could be recovered from the text.
* ``schema``: the JSON does not match the expected pydantic shape.
"""

import json
import re
from typing import Any, List, TypeVar

from pydantic import TypeAdapter, ValidationError

T = TypeVar("T")

_FENCED_BLOCK = re.compile(r"^```[a-zA-Z]*\s*\n?(?P<body>.*?)\n?\s*```$", re.DOTALL)
_MAX_SNIPPET = 200


class LLMOutputValidationError(Exception):
    """AI output that could not become a result.

    Attributes:
        stage: "empty", "json_parse" or "schema".
        errors: One line per problem found.
        raw_response: The response text exactly as received.
    """

    def __init__(self, stage: str, errors: List[str], raw_response: str) -> None:
        self.stage = stage
        self.errors = errors
        self.raw_response = raw_response
        super().__init__(f"AI output rejected ({stage}): {'; '.join(errors)}")

    @property
    def snippet(self) -> str:
        """Leading part of the raw response, for log lines."""
        text = self.raw_response or ""
        return text if len(text) <= _MAX_SNIPPET else text[:_MAX_SNIPPET] + "..."


def _unwrap(text: str) -> str:
    """Drop a surrounding ``` code fence, with or without a language tag."""
    stripped = text.strip()
    fenced = _FENCED_BLOCK.match(stripped)
    return fenced.group("body").strip() if fenced else stripped


def _embedded_json(text: str) -> str | None:
    """The outermost ``[...]`` or ``{...}`` span inside surrounding prose."""
    starts = [i for i in (text.find("["), text.find("{")) if i != -1]
    if not starts:
        return None
    start = min(starts)
    closer = "]" if text[start] == "[" else "}"
    end = text.rfind(closer)
    return text[start : end + 1] if end > start else None


def _decode(raw_response: str) -> Any:
    body = _unwrap(raw_response)
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        candidate = _embedded_json(body)
        if candidate is None or candidate == body:
            raise LLMOutputValidationError("json_parse", [str(exc)], raw_response) from exc
        try:
            return json.loads(candidate)
        except json.JSONDecodeError:
            raise LLMOutputValidationError("json_parse", [str(exc)], raw_response) from exc


def _describe(exc: ValidationError) -> List[str]:
    return [
        f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}"
        for error in exc.errors()
    ]


def validate_llm_output(raw_response: str, adapter: TypeAdapter[T]) -> T:
    """Decode *raw_response* and validate it with *adapter*.

    A code fence around the JSON is tolerated, and so is prose before or
    after a single JSON array or object.

    Raises:
        LLMOutputValidationError: At the first stage that fails.
    """
    if not raw_response or not raw_response.strip():
        raise LLMOutputValidationError("empty", ["response text is empty"], raw_response)

    data = _decode(raw_response)
    try:
        return adapter.validate_python(data)
    except ValidationError as exc:
        raise LLMOutputValidationError("schema", _describe(exc), raw_response) from exc
