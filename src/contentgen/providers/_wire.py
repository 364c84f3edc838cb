"""Wire models for OpenAI-compatible chat completion payloads.

Bodies are parsed as an explicit tagged union: a payload with an ``error``
key is an error envelope, one with ``choices`` is a completion (or chunk),
anything else is unrecognized. Unknown fields are ignored so vendor
extensions never break parsing.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from contentgen.errors import ProviderError, StreamParseWarning


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class FunctionPayload(_WireModel):
    name: str | None = None
    arguments: Any = None


class ToolCallPayload(_WireModel):
    id: str | None = None
    type: str | None = None
    function: FunctionPayload


class AssistantMessage(_WireModel):
    role: str | None = None
    content: str | None = None
    tool_calls: list[ToolCallPayload] | None = None


class UsagePayload(_WireModel):
    prompt_tokens: int | None = None
    completion_tokens: int | None = None
    total_tokens: int | None = None


class Choice(_WireModel):
    index: int = 0
    message: AssistantMessage | None = None
    finish_reason: str | None = None


class ChatCompletion(_WireModel):
    id: str | None = None
    model: str | None = None
    choices: list[Choice]
    usage: UsagePayload | None = None


class ToolCallDelta(_WireModel):
    index: int = 0
    id: str | None = None
    function: FunctionPayload | None = None


class ChoiceDelta(_WireModel):
    role: str | None = None
    content: str | None = None
    tool_calls: list[ToolCallDelta] | None = None


class ChunkChoice(_WireModel):
    index: int = 0
    delta: ChoiceDelta | None = None
    finish_reason: str | None = None


class ChatCompletionChunk(_WireModel):
    id: str | None = None
    model: str | None = None
    choices: list[ChunkChoice]
    usage: UsagePayload | None = None


class ErrorDetail(_WireModel):
    message: str | None = None
    type: str | None = None
    code: Any = None


class ErrorEnvelope(_WireModel):
    error: ErrorDetail

    def describe(self) -> str:
        detail = self.error
        text = detail.message or "unknown provider error"
        if detail.code is not None:
            text = f"{text} (code={detail.code})"
        return text


def _coerce_error(payload: dict[str, Any]) -> dict[str, Any]:
    # Some vendors send {"error": "message"} instead of an object.
    error = payload.get("error")
    if isinstance(error, str):
        return {"error": {"message": error}}
    return payload


def parse_completion(
    payload: Any, *, provider: str
) -> ChatCompletion | ErrorEnvelope:
    """Parse a non-streaming response body."""
    if not isinstance(payload, dict):
        raise ProviderError(
            f"{provider} returned a non-object response body",
            provider=provider,
            phase="generate",
        )
    try:
        if "error" in payload:
            return ErrorEnvelope.model_validate(_coerce_error(payload))
        if "choices" in payload:
            return ChatCompletion.model_validate(payload)
    except ValidationError as e:
        raise ProviderError(
            f"{provider} returned a malformed response: {e.error_count()} validation error(s)",
            provider=provider,
            phase="generate",
        ) from e
    raise ProviderError(
        f"{provider} returned an unrecognized response shape",
        body=str(payload)[:500],
        provider=provider,
        phase="generate",
    )


def parse_chunk(payload: Any) -> ChatCompletionChunk | ErrorEnvelope:
    """Parse one decoded stream frame.

    Raises:
        StreamParseWarning: The frame has an unrecognized shape.
    """
    if not isinstance(payload, dict):
        raise StreamParseWarning("stream frame is not a JSON object")
    try:
        if "error" in payload:
            return ErrorEnvelope.model_validate(_coerce_error(payload))
        if "choices" in payload:
            return ChatCompletionChunk.model_validate(payload)
    except ValidationError as e:
        raise StreamParseWarning(f"invalid stream frame: {e.error_count()} error(s)") from e
    raise StreamParseWarning("unrecognized stream frame shape")
