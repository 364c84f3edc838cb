"""Generic adapter for OpenAI-compatible chat completion APIs.

One class serves DeepSeek, Kimi and Hunyuan; the differences between them
live in :class:`~contentgen.providers.profiles.ProviderProfile`.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import TYPE_CHECKING, Any

import httpx

from contentgen._http import DEFAULT_TIMEOUT_S, SSE_DATA_PREFIX, SSE_DONE_SENTINEL
from contentgen.errors import (
    ConfigurationError,
    ProviderError,
    StreamParseWarning,
    UnsupportedOperation,
)
from contentgen.finish_reasons import map_finish_reason
from contentgen.providers._errors import (
    error_for_status,
    parse_retry_after,
    wrap_provider_error,
)
from contentgen.providers._wire import ErrorEnvelope, parse_chunk, parse_completion
from contentgen.providers.models import (
    FinishReason,
    GenerateResponse,
    Text,
    Usage,
)
from contentgen.providers.translator import ChatMessageTranslator
from contentgen.streaming import StreamAggregator, StreamDelta, ToolCallFragment
from contentgen.tokens import estimate_parts_tokens, estimate_request_tokens

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from contentgen.providers._wire import ChatCompletionChunk, UsagePayload
    from contentgen.providers.base import ProviderCapabilities
    from contentgen.providers.models import (
        EmbedContentRequest,
        EmbedContentResponse,
        GenerateRequest,
        Part,
    )
    from contentgen.providers.profiles import ProviderProfile

logger = logging.getLogger(__name__)

_DONE = object()


def _usage_from(
    payload: UsagePayload | None,
    prompt_estimate: int,
    parts: tuple[Part, ...] | None,
) -> Usage | None:
    """Build Usage from a provider payload, estimating missing counts.

    With ``parts`` None (stream frames) a missing payload stays None.
    """
    if payload is None:
        if parts is None:
            return None
        completion = estimate_parts_tokens(parts)
        return Usage(prompt_estimate, completion, prompt_estimate + completion)
    prompt = payload.prompt_tokens if payload.prompt_tokens is not None else prompt_estimate
    completion = payload.completion_tokens
    if completion is None:
        completion = estimate_parts_tokens(parts or ())
    total = payload.total_tokens if payload.total_tokens is not None else prompt + completion
    return Usage(prompt, completion, total)


def _arguments_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


class OpenAICompatibleGenerator:
    """ContentGenerator over an OpenAI-compatible ``/chat/completions`` API."""

    def __init__(
        self,
        profile: ProviderProfile,
        api_key: str | None,
        *,
        base_url: str | None = None,
        proxy: str | None = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        headers: dict[str, str] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Create an adapter; no network activity happens until the first call.

        Args:
            profile: Static description of the provider.
            api_key: Bearer token. Must be non-empty.
            base_url: Overrides the profile's public base URL.
            proxy: Proxy URL scoped to this adapter's HTTP client.
            timeout_s: Per-request timeout in seconds.
            headers: Extra headers sent with every request.
            transport: Custom httpx transport (tests use ``httpx.MockTransport``).
        """
        if not api_key:
            raise ConfigurationError(
                f"api_key required for provider {profile.name!r}",
                hint=f"Set {profile.api_key_env} or pass api_key explicitly.",
            )
        self.profile = profile
        self._api_key = api_key
        self.base_url = (base_url or profile.base_url).rstrip("/")
        self.proxy = proxy
        self.timeout_s = timeout_s
        self._headers = dict(headers or {})
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self.translator = ChatMessageTranslator(
            native_tool_calls=profile.capabilities.tool_calling,
            multimodal=profile.capabilities.multimodal,
            require_alternation=profile.require_alternation,
        )

    def __repr__(self) -> str:
        return (
            f"OpenAICompatibleGenerator(provider={self.profile.name!r}, "
            f"base_url={self.base_url!r})"
        )

    @property
    def url(self) -> str:
        return self.base_url + self.profile.path

    @property
    def capabilities(self) -> ProviderCapabilities:
        return self.profile.capabilities

    def _get_client(self) -> httpx.AsyncClient:
        """Lazy-initialize the pooled HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={
                    "Authorization": f"Bearer {self._api_key}",
                    "Content-Type": "application/json",
                    **self._headers,
                },
                timeout=self.timeout_s,
                proxy=self.proxy,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        client = self._client
        self._client = None
        if client is not None:
            await client.aclose()

    def _build_payload(self, request: GenerateRequest, *, stream: bool) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.profile.resolve_model_alias(request.model),
            "messages": self.translator.to_provider_messages(
                request.turns, request.system_instruction
            ),
            "stream": stream,
        }
        if stream and self.profile.stream_usage:
            payload["stream_options"] = {"include_usage": True}
        if request.temperature is not None:
            payload["temperature"] = request.temperature
        if request.top_p is not None:
            payload["top_p"] = request.top_p
        if request.max_output_tokens is not None:
            payload["max_tokens"] = request.max_output_tokens

        if request.tools:
            tools = self.translator.to_provider_tools(request.tools)
            if tools is None:
                logger.debug(
                    "Dropping %d tool declaration(s): %s has no tool calling",
                    len(request.tools),
                    self.profile.name,
                )
            else:
                payload["tools"] = tools
                payload["tool_choice"] = self.translator.to_provider_tool_choice(
                    request.tool_choice
                )
        return payload

    async def generate_content(self, request: GenerateRequest) -> GenerateResponse:
        """Generate a complete (non-streaming) response."""
        payload = self._build_payload(request, stream=False)
        provider = self.profile.name
        try:
            response = await self._get_client().post(self.url, json=payload)
        except asyncio.CancelledError:
            raise
        except httpx.HTTPError as e:
            raise wrap_provider_error(
                e, provider=provider, phase="generate", allow_network_errors=True
            ) from e

        if response.status_code >= 400:
            raise error_for_status(
                response.status_code,
                response.text,
                provider=provider,
                phase="generate",
                retry_after_s=parse_retry_after(response.headers.get("Retry-After")),
            )

        try:
            body = response.json()
        except ValueError as e:
            raise ProviderError(
                f"{provider} returned a non-JSON response",
                status_code=response.status_code,
                body=response.text,
                provider=provider,
                phase="generate",
            ) from e

        parsed = parse_completion(body, provider=provider)
        if isinstance(parsed, ErrorEnvelope):
            raise ProviderError(
                f"{provider} generate failed: {parsed.describe()}",
                status_code=response.status_code,
                body=response.text,
                provider=provider,
                phase="generate",
            )
        if not parsed.choices:
            raise ProviderError(
                f"{provider} returned no choices",
                status_code=response.status_code,
                body=response.text,
                provider=provider,
                phase="generate",
            )

        choice = parsed.choices[0]
        parts = tuple(self.translator.from_provider_message(choice.message)) or (Text(""),)
        finish = (
            FinishReason.STOP
            if choice.finish_reason is None
            else map_finish_reason(choice.finish_reason)
        )
        return GenerateResponse(
            model_version=parsed.model or payload["model"],
            parts=parts,
            finish_reason=finish,
            usage=_usage_from(parsed.usage, estimate_request_tokens(request), parts),
        )

    async def generate_content_stream(
        self,
        request: GenerateRequest,
        *,
        cancel: asyncio.Event | None = None,
    ) -> AsyncIterator[GenerateResponse]:
        """Stream cumulative snapshots followed by one final response.

        Setting *cancel* (or closing the iterator) stops the stream: the HTTP
        response is released and no final response is produced.
        """
        payload = self._build_payload(request, stream=True)
        provider = self.profile.name
        aggregator = StreamAggregator(
            payload["model"], prompt_tokens=estimate_request_tokens(request)
        )
        if cancel is not None and cancel.is_set():
            return

        try:
            async with self._get_client().stream(
                "POST",
                self.url,
                json=payload,
                headers={"Accept": "text/event-stream"},
            ) as response:
                if response.status_code >= 400:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    raise error_for_status(
                        response.status_code,
                        body,
                        provider=provider,
                        phase="stream",
                        retry_after_s=parse_retry_after(
                            response.headers.get("Retry-After")
                        ),
                    )

                clean = False
                async for line in response.aiter_lines():
                    if cancel is not None and cancel.is_set():
                        logger.debug("%s stream cancelled by caller", provider)
                        aggregator.fail()
                        return
                    try:
                        decoded = self._decode_line(line)
                    except StreamParseWarning as w:
                        logger.debug("Discarding malformed %s stream frame: %s", provider, w)
                        continue
                    if decoded is None:
                        continue
                    if decoded is _DONE:
                        clean = True
                        break
                    snapshot = aggregator.feed(decoded)
                    if snapshot is not None:
                        yield snapshot
        except asyncio.CancelledError:
            aggregator.fail()
            raise
        except ProviderError:
            aggregator.fail()
            raise
        except httpx.HTTPError as e:
            aggregator.fail()
            raise wrap_provider_error(
                e, provider=provider, phase="stream", allow_network_errors=True
            ) from e

        yield aggregator.finish(clean=clean)

    def _decode_line(self, line: str) -> Any:
        """Decode one SSE line into a StreamDelta, ``_DONE`` or None.

        Raises:
            StreamParseWarning: The data line is not a recognizable frame.
            ProviderError: The frame is an in-band error object.
        """
        line = line.strip()
        if not line.startswith(SSE_DATA_PREFIX):
            # blank separators, comments and event/id fields
            return None
        data = line[len(SSE_DATA_PREFIX):].strip()
        if not data:
            return None
        if data == SSE_DONE_SENTINEL:
            return _DONE
        try:
            frame = json.loads(data)
        except ValueError as e:
            raise StreamParseWarning("stream frame is not valid JSON", frame=data) from e

        parsed = parse_chunk(frame)
        if isinstance(parsed, ErrorEnvelope):
            raise ProviderError(
                f"{self.profile.name} stream failed: {parsed.describe()}",
                body=data,
                provider=self.profile.name,
                phase="stream",
            )
        return self._delta_from_chunk(parsed)

    @staticmethod
    def _delta_from_chunk(chunk: ChatCompletionChunk) -> StreamDelta:
        usage = _usage_from(chunk.usage, 0, None)
        if not chunk.choices:
            return StreamDelta(usage=usage, model_version=chunk.model)
        choice = chunk.choices[0]
        delta = choice.delta
        fragments: tuple[ToolCallFragment, ...] = ()
        if delta is not None and delta.tool_calls:
            fragments = tuple(
                ToolCallFragment(
                    index=tc.index,
                    id=tc.id,
                    name=tc.function.name if tc.function else None,
                    arguments=_arguments_text(tc.function.arguments if tc.function else None),
                )
                for tc in delta.tool_calls
            )
        return StreamDelta(
            text=delta.content if delta is not None else None,
            tool_calls=fragments,
            finish_reason=choice.finish_reason,
            usage=usage,
            model_version=chunk.model,
        )

    async def count_tokens(self, request: GenerateRequest) -> int:
        """Estimate prompt tokens; these providers expose no counting endpoint."""
        return estimate_request_tokens(request)

    async def embed_content(
        self,
        request: EmbedContentRequest,  # noqa: ARG002
    ) -> EmbedContentResponse:
        raise UnsupportedOperation(
            self.profile.name,
            "embed_content",
            hint="Use the Gemini adapter for embeddings.",
        )
