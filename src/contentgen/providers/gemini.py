"""Native Gemini adapter over the google-genai SDK."""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import TYPE_CHECKING, Any

from contentgen.errors import ConfigurationError, ProviderError
from contentgen.finish_reasons import map_finish_reason
from contentgen.models import DEFAULT_THINKING_MODE, is_thinking_default
from contentgen.providers._errors import wrap_provider_error
from contentgen.providers.base import ProviderCapabilities
from contentgen.providers.models import (
    EmbedContentResponse,
    FinishReason,
    GenerateResponse,
    InlineBinary,
    Text,
    ToolCall,
    ToolChoiceMode,
    ToolResult,
    Usage,
)
from contentgen.streaming import StreamAggregator, StreamDelta
from contentgen.tokens import estimate_parts_tokens, estimate_request_tokens

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Sequence

    from contentgen.providers.models import (
        EmbedContentRequest,
        GenerateRequest,
        Part,
        Turn,
    )

logger = logging.getLogger(__name__)

_TOOL_MODES = {
    ToolChoiceMode.AUTO: "AUTO",
    ToolChoiceMode.NONE: "NONE",
    ToolChoiceMode.FORCED: "ANY",
}


def to_gemini_contents(turns: Sequence[Turn]) -> tuple[list[Any], list[str]]:
    """Convert turns to ``types.Content`` objects.

    Returns the contents plus the text of any system turns, which Gemini
    only accepts through ``system_instruction``.
    """
    from google.genai import types

    contents: list[Any] = []
    system_texts: list[str] = []
    for turn in turns:
        if turn.role == "system":
            system_texts.extend(p.text for p in turn.parts if isinstance(p, Text))
            continue
        parts: list[Any] = []
        for part in turn.parts:
            if isinstance(part, Text):
                parts.append(types.Part.from_text(text=part.text))
            elif isinstance(part, InlineBinary):
                parts.append(
                    types.Part.from_bytes(
                        data=base64.b64decode(part.data), mime_type=part.mime_type
                    )
                )
            elif isinstance(part, ToolCall):
                parts.append(
                    types.Part(
                        function_call=types.FunctionCall(
                            id=part.id, name=part.name, args=dict(part.args)
                        )
                    )
                )
            elif isinstance(part, ToolResult):
                parts.append(
                    types.Part(
                        function_response=types.FunctionResponse(
                            id=part.id, name=part.name, response=dict(part.response)
                        )
                    )
                )
        if parts:
            contents.append(types.Content(role=turn.role, parts=parts))
        else:
            logger.debug("Dropping empty %s turn", turn.role)
    return contents, system_texts


def parts_from_gemini(content: Any) -> list[Part]:
    """Convert a response ``Content`` back into unified parts, skipping thoughts."""
    out: list[Part] = []
    for index, part in enumerate(getattr(content, "parts", None) or ()):
        if getattr(part, "thought", False):
            continue
        fc = getattr(part, "function_call", None)
        if fc is not None:
            out.append(
                ToolCall(
                    name=str(fc.name),
                    args=dict(fc.args or {}),
                    id=fc.id or f"call_{index}",
                )
            )
            continue
        blob = getattr(part, "inline_data", None)
        if blob is not None and getattr(blob, "data", None):
            out.append(
                InlineBinary(
                    mime_type=str(blob.mime_type),
                    data=base64.b64encode(blob.data).decode("ascii"),
                )
            )
            continue
        text = getattr(part, "text", None)
        if isinstance(text, str):
            out.append(Text(text))
    return out


def _usage_from(metadata: Any) -> Usage | None:
    if metadata is None:
        return None
    prompt = getattr(metadata, "prompt_token_count", None) or 0
    completion = getattr(metadata, "candidates_token_count", None) or 0
    total = getattr(metadata, "total_token_count", None) or prompt + completion
    return Usage(prompt, completion, total)


class GeminiGenerator:
    """ContentGenerator backed by the Gemini API or Vertex AI."""

    def __init__(
        self,
        api_key: str | None = None,
        *,
        vertexai: bool = False,
        project: str | None = None,
        location: str | None = None,
        base_url: str | None = None,
        proxy: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        if vertexai:
            if not api_key and not (project and location):
                raise ConfigurationError(
                    "Vertex AI requires an API key or a project and location",
                    hint="Set GOOGLE_API_KEY, or GOOGLE_CLOUD_PROJECT and GOOGLE_CLOUD_LOCATION.",
                )
        elif not api_key:
            raise ConfigurationError(
                "api_key required for the Gemini API",
                hint="Set GEMINI_API_KEY or pass api_key explicitly.",
            )
        self.api_key = api_key
        self.vertexai = vertexai
        self.project = project
        self.location = location
        self.base_url = base_url
        self.proxy = proxy
        self.headers = dict(headers or {})
        self._client: Any = None

    @property
    def provider_name(self) -> str:
        return "vertex" if self.vertexai else "gemini"

    @property
    def capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(
            tool_calling=True,
            embeddings=True,
            token_counting=True,
            multimodal=True,
        )

    def _get_client(self) -> Any:
        """Lazy-initialize the google-genai client."""
        if self._client is None:
            from google import genai
            from google.genai import types

            kwargs: dict[str, Any] = {}
            if self.vertexai:
                kwargs["vertexai"] = True
                if self.api_key:
                    kwargs["api_key"] = self.api_key
                else:
                    kwargs["project"] = self.project
                    kwargs["location"] = self.location
            else:
                kwargs["api_key"] = self.api_key

            http_kwargs: dict[str, Any] = {}
            if self.base_url:
                http_kwargs["base_url"] = self.base_url
            if self.headers:
                http_kwargs["headers"] = self.headers
            if self.proxy:
                http_kwargs["async_client_args"] = {"proxy": self.proxy}
            if http_kwargs:
                kwargs["http_options"] = types.HttpOptions(**http_kwargs)
            self._client = genai.Client(**kwargs)
        return self._client

    async def aclose(self) -> None:
        client = self._client
        self._client = None
        aclose = getattr(getattr(client, "aio", None), "aclose", None)
        if callable(aclose):
            await aclose()

    def _build_config(self, request: GenerateRequest, system_texts: list[str]) -> Any:
        from google.genai import types

        config_kwargs: dict[str, Any] = {}
        system = [s for s in (request.system_instruction, *system_texts) if s]
        if system:
            config_kwargs["system_instruction"] = "\n\n".join(system)
        if request.temperature is not None:
            config_kwargs["temperature"] = request.temperature
        if request.top_p is not None:
            config_kwargs["top_p"] = request.top_p
        if request.max_output_tokens is not None:
            config_kwargs["max_output_tokens"] = request.max_output_tokens
        if is_thinking_default(request.model):
            config_kwargs["thinking_config"] = types.ThinkingConfig(
                thinking_budget=DEFAULT_THINKING_MODE
            )

        if request.tools:
            config_kwargs["tools"] = [
                types.Tool(
                    function_declarations=[
                        types.FunctionDeclaration(
                            name=t.name,
                            description=t.description,
                            parameters=t.parameters,
                        )
                        for t in request.tools
                    ]
                )
            ]
            config_kwargs["tool_config"] = {
                "function_calling_config": {"mode": _TOOL_MODES[request.tool_choice]}
            }
        return types.GenerateContentConfig(**config_kwargs)

    async def generate_content(self, request: GenerateRequest) -> GenerateResponse:
        client = self._get_client()
        contents, system_texts = to_gemini_contents(request.turns)
        config = self._build_config(request, system_texts)
        try:
            response = await client.aio.models.generate_content(
                model=request.model, contents=contents, config=config
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise wrap_provider_error(
                e,
                provider=self.provider_name,
                phase="generate",
                allow_network_errors=True,
                message="Gemini generate failed",
            ) from e
        if not response:
            raise ProviderError(
                "Gemini returned an empty response.",
                provider=self.provider_name,
                phase="generate",
            )
        return self._parse_response(response, request)

    def _parse_response(self, response: Any, request: GenerateRequest) -> GenerateResponse:
        model_version = getattr(response, "model_version", None) or request.model
        candidates = getattr(response, "candidates", None) or []
        if not candidates:
            feedback = getattr(response, "prompt_feedback", None)
            block_reason = getattr(feedback, "block_reason", None)
            if block_reason is None:
                raise ProviderError(
                    "Gemini returned no candidates",
                    provider=self.provider_name,
                    phase="generate",
                )
            logger.debug("Gemini blocked the prompt: %s", block_reason)
            return GenerateResponse(
                model_version=model_version,
                parts=(Text(""),),
                finish_reason=FinishReason.SAFETY,
                usage=_usage_from(getattr(response, "usage_metadata", None)),
            )

        candidate = candidates[0]
        parts = tuple(parts_from_gemini(getattr(candidate, "content", None))) or (Text(""),)
        raw_reason = getattr(candidate, "finish_reason", None)
        finish = FinishReason.STOP if raw_reason is None else map_finish_reason(raw_reason)

        usage = _usage_from(getattr(response, "usage_metadata", None))
        if usage is None:
            prompt = estimate_request_tokens(request)
            completion = estimate_parts_tokens(parts)
            usage = Usage(prompt, completion, prompt + completion)
        return GenerateResponse(
            model_version=model_version, parts=parts, finish_reason=finish, usage=usage
        )

    async def generate_content_stream(
        self,
        request: GenerateRequest,
        *,
        cancel: asyncio.Event | None = None,
    ) -> AsyncIterator[GenerateResponse]:
        client = self._get_client()
        contents, system_texts = to_gemini_contents(request.turns)
        config = self._build_config(request, system_texts)
        aggregator = StreamAggregator(
            request.model, prompt_tokens=estimate_request_tokens(request)
        )
        if cancel is not None and cancel.is_set():
            return
        try:
            stream = await client.aio.models.generate_content_stream(
                model=request.model, contents=contents, config=config
            )
            async for chunk in stream:
                if cancel is not None and cancel.is_set():
                    logger.debug("Gemini stream cancelled by caller")
                    aggregator.fail()
                    return
                snapshot = aggregator.feed(self._delta_from_chunk(chunk))
                if snapshot is not None:
                    yield snapshot
        except asyncio.CancelledError:
            aggregator.fail()
            raise
        except Exception as e:
            aggregator.fail()
            raise wrap_provider_error(
                e,
                provider=self.provider_name,
                phase="stream",
                allow_network_errors=True,
                message="Gemini stream failed",
            ) from e
        # The SDK surfaces no end-of-stream sentinel; exhausting it is a clean end.
        yield aggregator.finish(clean=True)

    @staticmethod
    def _delta_from_chunk(chunk: Any) -> StreamDelta:
        usage = _usage_from(getattr(chunk, "usage_metadata", None))
        model_version = getattr(chunk, "model_version", None)
        candidates = getattr(chunk, "candidates", None) or []
        if not candidates:
            return StreamDelta(usage=usage, model_version=model_version)
        candidate = candidates[0]
        parts = parts_from_gemini(getattr(candidate, "content", None))
        return StreamDelta(
            text="".join(p.text for p in parts if isinstance(p, Text)) or None,
            complete_tool_calls=tuple(p for p in parts if isinstance(p, ToolCall)),
            finish_reason=getattr(candidate, "finish_reason", None),
            usage=usage,
            model_version=model_version,
        )

    async def count_tokens(self, request: GenerateRequest) -> int:
        """Count prompt tokens server-side."""
        client = self._get_client()
        contents, _ = to_gemini_contents(request.turns)
        try:
            result = await client.aio.models.count_tokens(
                model=request.model, contents=contents
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise wrap_provider_error(
                e,
                provider=self.provider_name,
                phase="count_tokens",
                allow_network_errors=True,
            ) from e
        return int(getattr(result, "total_tokens", 0) or 0)

    async def embed_content(self, request: EmbedContentRequest) -> EmbedContentResponse:
        client = self._get_client()
        try:
            result = await client.aio.models.embed_content(
                model=request.model, contents=list(request.contents)
            )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            raise wrap_provider_error(
                e,
                provider=self.provider_name,
                phase="embed",
                allow_network_errors=True,
            ) from e
        embeddings = getattr(result, "embeddings", None) or []
        return EmbedContentResponse(
            embeddings=tuple(tuple(e.values or ()) for e in embeddings)
        )
