"""Provider-agnostic request/response types.

Every adapter speaks these types on its public surface. They are frozen so
an adapter can never mutate the caller's request while translating it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal, Union

Role = Literal["user", "model", "system"]


class FinishReason(str, Enum):
    """Why the model stopped producing output."""

    STOP = "STOP"
    MAX_TOKENS = "MAX_TOKENS"
    SAFETY = "SAFETY"
    OTHER = "OTHER"


class ToolChoiceMode(str, Enum):
    """How the model may use the declared tools."""

    AUTO = "auto"
    NONE = "none"
    FORCED = "forced"


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class InlineBinary:
    """Inline bytes, base64-encoded, with their MIME type."""

    mime_type: str
    data: str


@dataclass(frozen=True)
class ToolCall:
    """A function invocation requested by the model."""

    name: str
    args: dict[str, Any] = field(default_factory=dict)
    id: str | None = None


@dataclass(frozen=True)
class ToolResult:
    """The result of a tool call, sent back to the model."""

    name: str
    response: dict[str, Any] = field(default_factory=dict)
    id: str | None = None


Part = Union[Text, InlineBinary, ToolCall, ToolResult]


def _coerce_parts(items: tuple[str | Part, ...]) -> tuple[Part, ...]:
    return tuple(Text(p) if isinstance(p, str) else p for p in items)


@dataclass(frozen=True)
class Turn:
    """One conversational turn."""

    role: Role
    parts: tuple[Part, ...] = ()

    @classmethod
    def user(cls, *parts: str | Part) -> Turn:
        return cls("user", _coerce_parts(parts))

    @classmethod
    def model(cls, *parts: str | Part) -> Turn:
        return cls("model", _coerce_parts(parts))

    @classmethod
    def system(cls, *parts: str | Part) -> Turn:
        return cls("system", _coerce_parts(parts))


@dataclass(frozen=True)
class ToolDeclaration:
    """A function the model may call."""

    name: str
    description: str = ""
    parameters: dict[str, Any] | None = None


@dataclass(frozen=True)
class Usage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class GenerateRequest:
    """Input to one content generation call."""

    model: str
    turns: tuple[Turn, ...] = ()
    system_instruction: str | None = None
    temperature: float | None = None
    top_p: float | None = None
    max_output_tokens: int | None = None
    tools: tuple[ToolDeclaration, ...] = ()
    tool_choice: ToolChoiceMode = ToolChoiceMode.AUTO


@dataclass(frozen=True)
class GenerateResponse:
    """Output of a generation call or one streamed snapshot.

    ``finish_reason`` is None only on incremental stream snapshots; the
    final response of every call carries one.
    """

    model_version: str
    parts: tuple[Part, ...] = ()
    finish_reason: FinishReason | None = None
    usage: Usage | None = None

    @property
    def text(self) -> str:
        """Concatenated text of all Text parts."""
        return "".join(p.text for p in self.parts if isinstance(p, Text))

    @property
    def tool_calls(self) -> tuple[ToolCall, ...]:
        return tuple(p for p in self.parts if isinstance(p, ToolCall))


@dataclass(frozen=True)
class EmbedContentRequest:
    model: str
    contents: tuple[str, ...] = ()


@dataclass(frozen=True)
class EmbedContentResponse:
    embeddings: tuple[tuple[float, ...], ...] = ()
