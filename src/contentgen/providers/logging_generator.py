"""Logging decorator around any ContentGenerator."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import asyncio
    from collections.abc import AsyncIterator

    from contentgen.providers.base import ContentGenerator, ProviderCapabilities
    from contentgen.providers.models import (
        EmbedContentRequest,
        EmbedContentResponse,
        GenerateRequest,
        GenerateResponse,
    )

logger = logging.getLogger(__name__)


class LoggingContentGenerator:
    """Log every call made through the wrapped generator.

    Requests and outcomes go to DEBUG, failures to WARNING. Exceptions are
    re-raised unchanged.
    """

    def __init__(self, wrapped: ContentGenerator) -> None:
        self.wrapped = wrapped

    def __repr__(self) -> str:
        return f"LoggingContentGenerator({self.wrapped!r})"

    @property
    def capabilities(self) -> ProviderCapabilities:
        return self.wrapped.capabilities

    def _log_request(self, op: str, request: GenerateRequest) -> None:
        logger.debug(
            "%s request: model=%s turns=%d tools=%d",
            op,
            request.model,
            len(request.turns),
            len(request.tools),
        )

    @staticmethod
    def _log_response(op: str, response: GenerateResponse, started: float) -> None:
        usage = response.usage
        logger.debug(
            "%s response: model=%s finish=%s total_tokens=%s duration=%.3fs",
            op,
            response.model_version,
            response.finish_reason.value if response.finish_reason else None,
            usage.total_tokens if usage else None,
            time.monotonic() - started,
        )

    async def generate_content(self, request: GenerateRequest) -> GenerateResponse:
        self._log_request("generate_content", request)
        started = time.monotonic()
        try:
            response = await self.wrapped.generate_content(request)
        except Exception as e:
            logger.warning(
                "generate_content failed after %.3fs: %s", time.monotonic() - started, e
            )
            raise
        self._log_response("generate_content", response, started)
        return response

    async def generate_content_stream(
        self,
        request: GenerateRequest,
        *,
        cancel: asyncio.Event | None = None,
    ) -> AsyncIterator[GenerateResponse]:
        self._log_request("generate_content_stream", request)
        started = time.monotonic()
        snapshots = 0
        last: GenerateResponse | None = None
        stream = self.wrapped.generate_content_stream(request, cancel=cancel)
        try:
            async for response in stream:
                snapshots += 1
                last = response
                yield response
        except Exception as e:
            logger.warning(
                "generate_content_stream failed after %d snapshot(s): %s", snapshots, e
            )
            raise
        finally:
            aclose = getattr(stream, "aclose", None)
            if callable(aclose):
                await aclose()
        if last is not None and last.finish_reason is not None:
            self._log_response("generate_content_stream", last, started)
        else:
            logger.debug("generate_content_stream ended without a final response")

    async def count_tokens(self, request: GenerateRequest) -> int:
        tokens = await self.wrapped.count_tokens(request)
        logger.debug("count_tokens: model=%s tokens=%d", request.model, tokens)
        return tokens

    async def embed_content(self, request: EmbedContentRequest) -> EmbedContentResponse:
        logger.debug(
            "embed_content request: model=%s contents=%d",
            request.model,
            len(request.contents),
        )
        try:
            return await self.wrapped.embed_content(request)
        except Exception as e:
            logger.warning("embed_content failed: %s", e)
            raise

    async def aclose(self) -> None:
        await self.wrapped.aclose()
