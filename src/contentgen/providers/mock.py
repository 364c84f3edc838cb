"""Mock generator for offline use and tests."""

from __future__ import annotations

from typing import TYPE_CHECKING

from contentgen.errors import UnsupportedOperation
from contentgen.providers.base import ProviderCapabilities
from contentgen.providers.models import FinishReason, GenerateResponse, Text, Usage
from contentgen.streaming import StreamAggregator, StreamDelta
from contentgen.tokens import estimate_request_tokens, estimate_tokens

if TYPE_CHECKING:
    import asyncio
    from collections.abc import AsyncIterator

    from contentgen.providers.models import (
        EmbedContentRequest,
        EmbedContentResponse,
        GenerateRequest,
    )


def _echo_text(request: GenerateRequest) -> str:
    """Echo the last non-empty user text, truncated."""
    for turn in reversed(request.turns):
        if turn.role != "user":
            continue
        text = "".join(p.text for p in turn.parts if isinstance(p, Text)).strip()
        if text:
            return f"echo: {text[:100]}"
    return "echo: "


class MockContentGenerator:
    """Deterministic generator that never touches the network."""

    @property
    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(tool_calling=False)

    async def generate_content(self, request: GenerateRequest) -> GenerateResponse:
        text = _echo_text(request)
        prompt = estimate_request_tokens(request)
        completion = estimate_tokens(text)
        return GenerateResponse(
            model_version=request.model,
            parts=(Text(text),),
            finish_reason=FinishReason.STOP,
            usage=Usage(prompt, completion, prompt + completion),
        )

    async def generate_content_stream(
        self,
        request: GenerateRequest,
        *,
        cancel: asyncio.Event | None = None,
    ) -> AsyncIterator[GenerateResponse]:
        """Stream the echo word by word."""
        aggregator = StreamAggregator(
            request.model, prompt_tokens=estimate_request_tokens(request)
        )
        words = _echo_text(request).split(" ")
        for i, word in enumerate(words):
            if cancel is not None and cancel.is_set():
                return
            chunk = word if i == 0 else f" {word}"
            snapshot = aggregator.feed(StreamDelta(text=chunk))
            if snapshot is not None:
                yield snapshot
        yield aggregator.finish(clean=True)

    async def count_tokens(self, request: GenerateRequest) -> int:
        return estimate_request_tokens(request)

    async def embed_content(
        self,
        request: EmbedContentRequest,  # noqa: ARG002
    ) -> EmbedContentResponse:
        raise UnsupportedOperation("mock", "embed_content")

    async def aclose(self) -> None:
        return None
