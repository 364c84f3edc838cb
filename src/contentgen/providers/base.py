"""ContentGenerator protocol: the contract every adapter implements."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import asyncio
    from collections.abc import AsyncIterator

    from contentgen.providers.models import (
        EmbedContentRequest,
        EmbedContentResponse,
        GenerateRequest,
        GenerateResponse,
    )


@dataclass(frozen=True)
class ProviderCapabilities:
    """Feature flags exposed by adapters."""

    tool_calling: bool
    embeddings: bool = False
    token_counting: bool = False
    multimodal: bool = False


@runtime_checkable
class ContentGenerator(Protocol):
    """Uniform generation contract over heterogeneous providers."""

    async def generate_content(self, request: GenerateRequest) -> GenerateResponse:
        """Generate a complete response."""
        ...

    def generate_content_stream(
        self,
        request: GenerateRequest,
        *,
        cancel: asyncio.Event | None = None,
    ) -> AsyncIterator[GenerateResponse]:
        """Yield cumulative snapshots, ending with one final response."""
        ...

    async def count_tokens(self, request: GenerateRequest) -> int:
        """Count (or estimate) prompt tokens."""
        ...

    async def embed_content(self, request: EmbedContentRequest) -> EmbedContentResponse:
        """Embed the request contents."""
        ...

    @property
    def capabilities(self) -> ProviderCapabilities:
        """Feature capabilities of this adapter."""
        ...

    async def aclose(self) -> None:
        """Release network resources."""
        ...
