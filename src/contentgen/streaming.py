"""Aggregate provider stream deltas into cumulative response snapshots.

A provider stream arrives as many small deltas. Callers want every
snapshot to carry the full text so far, tool calls only once their
arguments are complete, and exactly one final response with a finish
reason. ``StreamAggregator`` owns that state for one stream.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import json
import logging
from typing import Any

from contentgen.finish_reasons import map_finish_reason
from contentgen.providers.models import (
    FinishReason,
    GenerateResponse,
    Part,
    Text,
    ToolCall,
    Usage,
)
from contentgen.tokens import estimate_tokens

logger = logging.getLogger(__name__)


class StreamState(Enum):
    OPEN = "open"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class ToolCallFragment:
    """A piece of one streamed tool call, addressed by its index."""

    index: int
    id: str | None = None
    name: str | None = None
    arguments: str = ""


@dataclass(frozen=True)
class StreamDelta:
    """One decoded stream frame in provider-neutral form."""

    text: str | None = None
    tool_calls: tuple[ToolCallFragment, ...] = ()
    complete_tool_calls: tuple[ToolCall, ...] = ()
    finish_reason: Any = None
    usage: Usage | None = None
    model_version: str | None = None


@dataclass
class _PendingCall:
    id: str | None = None
    name: str | None = None
    fragments: list[str] = field(default_factory=list)
    done: bool = False

    @property
    def arguments(self) -> str:
        return "".join(self.fragments)


def _parse_arguments(raw: str) -> dict[str, Any] | None:
    """Parse a JSON argument string; None when it is not (yet) valid."""
    try:
        value = json.loads(raw)
    except ValueError:
        return None
    if isinstance(value, dict):
        return value
    return {"value": value}


class ToolCallAccumulator:
    """Reassemble tool calls whose arguments arrive split across frames."""

    def __init__(self) -> None:
        self._pending: dict[int, _PendingCall] = {}
        self._completed: list[Part] = []

    def add(self, fragment: ToolCallFragment) -> bool:
        """Record a fragment. Returns True when it completed a call."""
        pending = self._pending.setdefault(fragment.index, _PendingCall())
        if pending.done:
            logger.debug("Ignoring fragment for completed tool call %d", fragment.index)
            return False
        if fragment.id:
            pending.id = fragment.id
        if fragment.name:
            pending.name = fragment.name
        if fragment.arguments:
            pending.fragments.append(fragment.arguments)
        if pending.name and pending.fragments:
            args = _parse_arguments(pending.arguments)
            if args is not None:
                self._complete(fragment.index, pending, args)
                return True
        return False

    def add_complete(self, call: ToolCall) -> None:
        """Record a call that arrived whole (e.g. from a native SDK)."""
        self._completed.append(call)

    def _complete(self, index: int, pending: _PendingCall, args: dict[str, Any]) -> None:
        pending.done = True
        self._completed.append(
            ToolCall(
                name=pending.name or "",
                args=args,
                id=pending.id or f"call_{index}",
            )
        )

    def finalize(self) -> None:
        """Resolve every unfinished call at end of stream.

        Empty arguments become ``{}``; arguments that never became valid JSON
        degrade to a text part so nothing the model produced is lost.
        """
        for index in sorted(self._pending):
            pending = self._pending[index]
            if pending.done or not pending.name:
                continue
            raw = pending.arguments
            if not raw.strip():
                self._complete(index, pending, {})
                continue
            args = _parse_arguments(raw)
            if args is not None:
                self._complete(index, pending, args)
            else:
                pending.done = True
                self._completed.append(Text(f"[Tool Call: {pending.name}({raw})]"))

    @property
    def completed(self) -> tuple[Part, ...]:
        return tuple(self._completed)


class StreamAggregator:
    """Fold stream deltas into cumulative ``GenerateResponse`` snapshots.

    Feed each decoded frame to :meth:`feed`; it returns a snapshot when the
    frame added text or completed a tool call, else None. Once a frame
    carries a finish reason the content is frozen and :meth:`finish`
    yields the final response; later frames contribute only usage and
    model version (trailing usage-only chunks). Output depends
    only on the frames fed, so replaying a stream reproduces it exactly.
    """

    def __init__(self, model_version: str, *, prompt_tokens: int = 0) -> None:
        self.model_version = model_version
        self.state = StreamState.OPEN
        self._prompt_tokens = prompt_tokens
        self._text: list[str] = []
        self._calls = ToolCallAccumulator()
        self._finish_reason: FinishReason | None = None
        self._usage: Usage | None = None

    @property
    def text(self) -> str:
        return "".join(self._text)

    @property
    def finished(self) -> bool:
        """True once a finish signal has been seen."""
        return self._finish_reason is not None

    def feed(self, delta: StreamDelta) -> GenerateResponse | None:
        if self.state is not StreamState.OPEN:
            return None
        if delta.model_version:
            self.model_version = delta.model_version
        if delta.usage is not None:
            self._usage = delta.usage
        if self.finished:
            return None

        changed = False
        if delta.text:
            self._text.append(delta.text)
            changed = True
        for fragment in delta.tool_calls:
            changed = self._calls.add(fragment) or changed
        for call in delta.complete_tool_calls:
            self._calls.add_complete(call)
            changed = True

        if delta.finish_reason is not None:
            self._finish_reason = map_finish_reason(delta.finish_reason)
        if not changed:
            return None
        return self._snapshot(None, None)

    def finish(self, *, clean: bool = True) -> GenerateResponse:
        """Produce the final response and close the aggregator.

        Without a finish signal, a clean end of stream maps to STOP and a
        truncated one to OTHER.
        """
        if self.state is StreamState.FAILED:
            raise RuntimeError("cannot finish a failed stream")
        self._calls.finalize()
        reason = self._finish_reason
        if reason is None:
            reason = FinishReason.STOP if clean else FinishReason.OTHER
        self.state = StreamState.COMPLETED
        return self._snapshot(reason, self._final_usage(), final=True)

    def fail(self) -> None:
        self.state = StreamState.FAILED

    def _final_usage(self) -> Usage:
        if self._usage is not None:
            return self._usage
        completion = estimate_tokens(self.text)
        return Usage(
            prompt_tokens=self._prompt_tokens,
            completion_tokens=completion,
            total_tokens=self._prompt_tokens + completion,
        )

    def _snapshot(
        self,
        reason: FinishReason | None,
        usage: Usage | None,
        *,
        final: bool = False,
    ) -> GenerateResponse:
        parts: list[Part] = []
        text = self.text
        if text or final:
            parts.append(Text(text))
        parts.extend(self._calls.completed)
        return GenerateResponse(
            model_version=self.model_version,
            parts=tuple(parts),
            finish_reason=reason,
            usage=usage,
        )
