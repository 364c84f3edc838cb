"""Test helpers (small, reusable doubles).

Keep this file tiny and purpose-built: SSE bodies and httpx transports for
the OpenAI-compatible adapter, so suites do not hand-roll their own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from typing import Any

import httpx

from contentgen.providers.models import GenerateRequest, Turn
from contentgen.providers.openai_compat import OpenAICompatibleGenerator
from contentgen.providers.profiles import DEEPSEEK, ProviderProfile


def sse_frame(payload: dict[str, Any] | str) -> str:
    """Render one SSE ``data:`` event."""
    data = payload if isinstance(payload, str) else json.dumps(payload)
    return f"data: {data}\n\n"


def sse_body(*frames: dict[str, Any] | str, done: bool = True) -> bytes:
    """Render a complete SSE body, optionally ending with ``[DONE]``."""
    body = "".join(sse_frame(f) for f in frames)
    if done:
        body += sse_frame("[DONE]")
    return body.encode("utf-8")


def text_chunk(text: str, *, finish_reason: str | None = None, **extra: Any) -> dict[str, Any]:
    return {
        "model": "provider-x-chat",
        "choices": [
            {"index": 0, "delta": {"content": text}, "finish_reason": finish_reason}
        ],
        **extra,
    }


def tool_chunk(
    index: int,
    *,
    arguments: str,
    call_id: str | None = None,
    name: str | None = None,
    finish_reason: str | None = None,
) -> dict[str, Any]:
    function: dict[str, Any] = {"arguments": arguments}
    if name is not None:
        function["name"] = name
    call: dict[str, Any] = {"index": index, "function": function}
    if call_id is not None:
        call["id"] = call_id
    return {
        "model": "provider-x-chat",
        "choices": [
            {
                "index": 0,
                "delta": {"tool_calls": [call]},
                "finish_reason": finish_reason,
            }
        ],
    }


@dataclass
class RecordingHandler:
    """httpx.MockTransport handler that records requests and replays responses."""

    responses: list[httpx.Response] = field(default_factory=list)
    requests: list[httpx.Request] = field(default_factory=list)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            return httpx.Response(500, text="no scripted response")
        return self.responses.pop(0)

    @property
    def last_json(self) -> dict[str, Any]:
        return json.loads(self.requests[-1].content)


def make_generator(
    *responses: httpx.Response,
    profile: ProviderProfile = DEEPSEEK,
    api_key: str = "test-key",
    **kwargs: Any,
) -> tuple[OpenAICompatibleGenerator, RecordingHandler]:
    """Build an adapter wired to a MockTransport replaying *responses*."""
    handler = RecordingHandler(list(responses))
    generator = OpenAICompatibleGenerator(
        profile, api_key, transport=httpx.MockTransport(handler), **kwargs
    )
    return generator, handler


def hello_request(model: str = "provider-x-chat", **kwargs: Any) -> GenerateRequest:
    return GenerateRequest(model=model, turns=(Turn.user("Hello"),), **kwargs)
