"""Chat message translation in both directions."""

from __future__ import annotations

import json

from hypothesis import assume, given, settings
from hypothesis import strategies as st
import pytest

from contentgen.providers._wire import AssistantMessage
from contentgen.providers.models import (
    InlineBinary,
    Text,
    ToolCall,
    ToolChoiceMode,
    ToolDeclaration,
    ToolResult,
    Turn,
)
from contentgen.providers.translator import ChatMessageTranslator

pytestmark = pytest.mark.unit


def _assistant(**kwargs):
    return AssistantMessage.model_validate({"role": "assistant", **kwargs})


class TestToProviderMessages:
    def test_system_instruction_becomes_leading_message(self):
        messages = ChatMessageTranslator().to_provider_messages(
            [Turn.user("Hi")], "Be brief."
        )
        assert messages == [
            {"role": "system", "content": "Be brief."},
            {"role": "user", "content": "Hi"},
        ]

    @pytest.mark.parametrize("instruction", [None, ""])
    def test_absent_system_instruction_adds_nothing(self, instruction):
        messages = ChatMessageTranslator().to_provider_messages(
            [Turn.user("Hi")], instruction
        )
        assert messages == [{"role": "user", "content": "Hi"}]

    def test_text_parts_join_with_newlines(self):
        messages = ChatMessageTranslator().to_provider_messages(
            [Turn.user("one", "two")]
        )
        assert messages == [{"role": "user", "content": "one\ntwo"}]

    def test_roles_are_mapped_and_same_role_turns_forwarded(self):
        messages = ChatMessageTranslator().to_provider_messages(
            [Turn.user("a"), Turn.user("b"), Turn.model("c"), Turn.system("d")]
        )
        assert [m["role"] for m in messages] == ["user", "user", "assistant", "system"]

    def test_native_tool_call_and_result(self):
        call = ToolCall("get_weather", {"city": "Paris"}, id="call_9")
        result = ToolResult("get_weather", {"temp": 21})
        messages = ChatMessageTranslator(native_tool_calls=True).to_provider_messages(
            [Turn.user("Weather?"), Turn.model(call), Turn.user(result)]
        )
        assistant = messages[1]
        assert assistant["role"] == "assistant"
        assert assistant["content"] is None
        assert assistant["tool_calls"][0]["id"] == "call_9"
        assert assistant["tool_calls"][0]["function"]["name"] == "get_weather"
        assert json.loads(assistant["tool_calls"][0]["function"]["arguments"]) == {
            "city": "Paris"
        }
        # result has no id: paired with the preceding call of the same name
        assert messages[2] == {
            "role": "tool",
            "tool_call_id": "call_9",
            "content": '{"temp": 21}',
        }

    def test_tool_parts_degrade_to_text_without_native_support(self):
        call = ToolCall("get_weather", {"city": "Paris"})
        result = ToolResult("get_weather", {"temp": 21})
        messages = ChatMessageTranslator(native_tool_calls=False).to_provider_messages(
            [Turn.model("Checking.", call), Turn.user(result)]
        )
        assert messages[0] == {
            "role": "assistant",
            "content": 'Checking.\n[Function Call: get_weather({"city": "Paris"})]',
        }
        assert messages[1]["role"] == "user"
        assert messages[1]["content"].startswith("[Function Response: ")
        assert '"temp": 21' in messages[1]["content"]

    def test_inline_binary_on_multimodal_provider(self):
        blob = InlineBinary("image/png", "QUJD")
        messages = ChatMessageTranslator(multimodal=True).to_provider_messages(
            [Turn.user("Describe", blob)]
        )
        assert messages[0]["content"] == [
            {"type": "text", "text": "Describe"},
            {"type": "image_url", "image_url": {"url": "data:image/png;base64,QUJD"}},
        ]

    def test_inline_binary_on_text_only_provider(self):
        blob = InlineBinary("image/png", "QUJD")
        messages = ChatMessageTranslator(multimodal=False).to_provider_messages(
            [Turn.user(blob)]
        )
        assert messages == [
            {"role": "user", "content": "[Inline data: image/png, 4 base64 chars]"}
        ]

    def test_empty_turn_is_dropped(self):
        messages = ChatMessageTranslator().to_provider_messages(
            [Turn.user("a"), Turn.model(), Turn.user("b")]
        )
        assert [m["content"] for m in messages] == ["a", "b"]

    def test_empty_turn_kept_when_alternation_required(self):
        messages = ChatMessageTranslator(require_alternation=True).to_provider_messages(
            [Turn.user("a"), Turn.model(), Turn.user("b")]
        )
        assert messages[1] == {"role": "assistant", "content": ""}
        assert len(messages) == 3

    def test_request_turns_are_not_mutated(self):
        turns = (Turn.model(ToolCall("f", {"a": [1]})),)
        ChatMessageTranslator().to_provider_messages(turns)
        assert turns == (Turn.model(ToolCall("f", {"a": [1]})),)


class TestFromProviderMessage:
    def test_text_and_tool_calls(self):
        message = _assistant(
            content="Sure.",
            tool_calls=[
                {
                    "id": "c1",
                    "type": "function",
                    "function": {"name": "f", "arguments": '{"a": 1}'},
                }
            ],
        )
        parts = ChatMessageTranslator().from_provider_message(message)
        assert parts == [Text("Sure."), ToolCall("f", {"a": 1}, id="c1")]

    def test_malformed_arguments_degrade_to_text(self):
        message = _assistant(
            tool_calls=[{"id": "c1", "function": {"name": "f", "arguments": "{bad"}}]
        )
        parts = ChatMessageTranslator().from_provider_message(message)
        assert parts == [Text("[Tool Call: f({bad)]")]

    def test_non_object_arguments_are_wrapped(self):
        message = _assistant(
            tool_calls=[{"id": "c1", "function": {"name": "f", "arguments": "[1, 2]"}}]
        )
        parts = ChatMessageTranslator().from_provider_message(message)
        assert parts == [ToolCall("f", {"value": [1, 2]}, id="c1")]

    def test_missing_message_yields_no_parts(self):
        assert ChatMessageTranslator().from_provider_message(None) == []


def test_model_turn_round_trips_through_native_messages():
    translator = ChatMessageTranslator(native_tool_calls=True)
    turn = Turn.model("Let me check.", ToolCall("lookup", {"q": "x", "n": 2}, id="c7"))
    (message,) = translator.to_provider_messages([turn])
    parts = translator.from_provider_message(AssistantMessage.model_validate(message))
    assert tuple(parts) == turn.parts


_json_scalars = st.none() | st.booleans() | st.integers() | st.text(max_size=10)
_json_values = st.recursive(
    _json_scalars,
    lambda inner: (
        st.lists(inner, max_size=3) | st.dictionaries(st.text(max_size=5), inner, max_size=3)
    ),
    max_leaves=8,
)
_tool_calls = st.lists(
    st.tuples(
        st.text(alphabet="abcdefghijklmnopqrstuvwxyz_", min_size=1, max_size=12),
        st.dictionaries(st.text(max_size=8), _json_values, max_size=4),
    ),
    max_size=4,
).map(lambda calls: [ToolCall(n, args, id=f"c{i}") for i, (n, args) in enumerate(calls)])


@given(text=st.none() | st.text(min_size=1, max_size=20), calls=_tool_calls)
@settings(max_examples=50, deadline=None, derandomize=True)
def test_model_turn_round_trip_property(text, calls):
    """Property: text plus native tool calls survive the trip to messages and back."""
    parts = ([Text(text)] if text is not None else []) + calls
    assume(parts)
    translator = ChatMessageTranslator(native_tool_calls=True)
    (message,) = translator.to_provider_messages([Turn.model(*parts)])
    back = translator.from_provider_message(AssistantMessage.model_validate(message))
    assert back == parts


class TestTools:
    def test_declarations(self):
        tools = ChatMessageTranslator().to_provider_tools(
            [ToolDeclaration("f", "does f", {"type": "object", "properties": {}})]
        )
        assert tools == [
            {
                "type": "function",
                "function": {
                    "name": "f",
                    "description": "does f",
                    "parameters": {"type": "object", "properties": {}},
                },
            }
        ]

    def test_no_tools_without_native_support(self):
        translator = ChatMessageTranslator(native_tool_calls=False)
        assert translator.to_provider_tools([ToolDeclaration("f")]) is None

    @pytest.mark.parametrize(
        ("mode", "expected"),
        [
            (ToolChoiceMode.AUTO, "auto"),
            (ToolChoiceMode.NONE, "none"),
            (ToolChoiceMode.FORCED, "required"),
        ],
    )
    def test_tool_choice(self, mode, expected):
        assert ChatMessageTranslator.to_provider_tool_choice(mode) == expected
