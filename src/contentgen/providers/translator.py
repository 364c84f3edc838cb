"""Translate unified turns to and from the OpenAI chat message dialect."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from contentgen.providers.models import (
    InlineBinary,
    Part,
    Text,
    ToolCall,
    ToolChoiceMode,
    ToolResult,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from contentgen.providers._wire import AssistantMessage
    from contentgen.providers.models import ToolDeclaration, Turn

logger = logging.getLogger(__name__)

_ROLE_MAP = {"user": "user", "model": "assistant", "system": "system"}


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, sort_keys=True)


def _function_call_text(call: ToolCall) -> str:
    return f"[Function Call: {call.name}({_dumps(call.args)})]"


def _function_response_text(result: ToolResult) -> str:
    return f"[Function Response: {_dumps({'name': result.name, 'response': result.response})}]"


def _inline_placeholder(blob: InlineBinary) -> str:
    return f"[Inline data: {blob.mime_type}, {len(blob.data)} base64 chars]"


class ChatMessageTranslator:
    """Convert between unified ``Turn`` objects and chat-completion messages.

    Parts the target provider cannot represent natively (tool calls on a
    provider without tool calling, images on a text-only provider) are
    rendered as text so the model still sees them.
    """

    def __init__(
        self,
        *,
        native_tool_calls: bool = True,
        multimodal: bool = False,
        require_alternation: bool = False,
    ) -> None:
        self.native_tool_calls = native_tool_calls
        self.multimodal = multimodal
        self.require_alternation = require_alternation

    def to_provider_messages(
        self,
        turns: Sequence[Turn],
        system_instruction: str | None = None,
    ) -> list[dict[str, Any]]:
        messages: list[dict[str, Any]] = []
        if system_instruction:
            messages.append({"role": "system", "content": system_instruction})

        # id of the most recent call per tool name, for pairing results
        call_ids: dict[str, str] = {}
        call_counter = 0

        for turn in turns:
            role = _ROLE_MAP.get(turn.role, "user")
            if role == "assistant":
                msg, call_counter = self._assistant_message(
                    turn.parts, call_ids, call_counter
                )
                converted = [msg] if msg is not None else []
            else:
                converted, call_counter = self._user_messages(
                    role, turn.parts, call_ids, call_counter
                )
            if not converted:
                if self.require_alternation:
                    converted = [{"role": role, "content": ""}]
                else:
                    logger.debug("Dropping empty %s turn", turn.role)
            messages.extend(converted)
        return messages

    def _assistant_message(
        self,
        parts: Iterable[Part],
        call_ids: dict[str, str],
        call_counter: int,
    ) -> tuple[dict[str, Any] | None, int]:
        texts: list[str] = []
        tool_calls: list[dict[str, Any]] = []
        for part in parts:
            if isinstance(part, Text):
                texts.append(part.text)
            elif isinstance(part, ToolCall):
                if self.native_tool_calls:
                    call_id = part.id or f"call_{call_counter}"
                    call_counter += 1
                    call_ids[part.name] = call_id
                    tool_calls.append(
                        {
                            "id": call_id,
                            "type": "function",
                            "function": {
                                "name": part.name,
                                "arguments": json.dumps(part.args, ensure_ascii=False),
                            },
                        }
                    )
                else:
                    texts.append(_function_call_text(part))
            elif isinstance(part, ToolResult):
                texts.append(_function_response_text(part))
            elif isinstance(part, InlineBinary):
                texts.append(_inline_placeholder(part))

        if not texts and not tool_calls:
            return None, call_counter
        msg: dict[str, Any] = {
            "role": "assistant",
            "content": "\n".join(texts) if texts else None,
        }
        if tool_calls:
            msg["tool_calls"] = tool_calls
        return msg, call_counter

    def _user_messages(
        self,
        role: str,
        parts: Iterable[Part],
        call_ids: dict[str, str],
        call_counter: int,
    ) -> tuple[list[dict[str, Any]], int]:
        """Convert a user or system turn.

        Native tool results become separate ``tool`` messages ahead of any
        remaining content.
        """
        tool_messages: list[dict[str, Any]] = []
        texts: list[str] = []
        images: list[dict[str, Any]] = []
        for part in parts:
            if isinstance(part, Text):
                texts.append(part.text)
            elif isinstance(part, InlineBinary):
                if self.multimodal and role == "user":
                    images.append(
                        {
                            "type": "image_url",
                            "image_url": {
                                "url": f"data:{part.mime_type};base64,{part.data}"
                            },
                        }
                    )
                else:
                    texts.append(_inline_placeholder(part))
            elif isinstance(part, ToolResult):
                if self.native_tool_calls:
                    call_id = part.id or call_ids.get(part.name)
                    if call_id is None:
                        call_id = f"call_{call_counter}"
                        call_counter += 1
                    tool_messages.append(
                        {
                            "role": "tool",
                            "tool_call_id": call_id,
                            "content": _dumps(part.response),
                        }
                    )
                else:
                    texts.append(_function_response_text(part))
            elif isinstance(part, ToolCall):
                texts.append(_function_call_text(part))

        messages = list(tool_messages)
        if images:
            content: list[dict[str, Any]] = []
            if texts:
                content.append({"type": "text", "text": "\n".join(texts)})
            content.extend(images)
            messages.append({"role": role, "content": content})
        elif texts:
            messages.append({"role": role, "content": "\n".join(texts)})
        return messages, call_counter

    def from_provider_message(self, message: AssistantMessage | None) -> list[Part]:
        """Convert an assistant message back into unified parts."""
        if message is None:
            return []
        parts: list[Part] = []
        if message.content:
            parts.append(Text(message.content))
        for index, call in enumerate(message.tool_calls or ()):
            name = call.function.name or ""
            raw = call.function.arguments
            if isinstance(raw, dict):
                parts.append(ToolCall(name=name, args=raw, id=call.id or f"call_{index}"))
                continue
            if raw is None or (isinstance(raw, str) and not raw.strip()):
                parts.append(ToolCall(name=name, args={}, id=call.id or f"call_{index}"))
                continue
            try:
                args = json.loads(raw) if isinstance(raw, str) else raw
            except ValueError:
                logger.debug("Unparseable arguments for tool call %r", name)
                parts.append(Text(f"[Tool Call: {name}({raw})]"))
                continue
            if not isinstance(args, dict):
                args = {"value": args}
            parts.append(ToolCall(name=name, args=args, id=call.id or f"call_{index}"))
        return parts

    def to_provider_tools(
        self, tools: Sequence[ToolDeclaration]
    ) -> list[dict[str, Any]] | None:
        if not tools or not self.native_tool_calls:
            return None
        out: list[dict[str, Any]] = []
        for tool in tools:
            fn: dict[str, Any] = {"name": tool.name, "description": tool.description}
            if tool.parameters is not None:
                fn["parameters"] = tool.parameters
            out.append({"type": "function", "function": fn})
        return out

    @staticmethod
    def to_provider_tool_choice(mode: ToolChoiceMode) -> str:
        if mode is ToolChoiceMode.NONE:
            return "none"
        if mode is ToolChoiceMode.FORCED:
            return "required"
        return "auto"
