"""Finish-reason mapping."""

from __future__ import annotations

import enum

import pytest

from contentgen.finish_reasons import map_finish_reason
from contentgen.providers.models import FinishReason

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("stop", FinishReason.STOP),
        ("tool_calls", FinishReason.STOP),
        ("length", FinishReason.MAX_TOKENS),
        ("content_filter", FinishReason.SAFETY),
        ("STOP", FinishReason.STOP),
        ("MAX_TOKENS", FinishReason.MAX_TOKENS),
        ("SAFETY", FinishReason.SAFETY),
        ("RECITATION", FinishReason.SAFETY),
        ("Length", FinishReason.MAX_TOKENS),
    ],
)
def test_known_reasons(raw, expected):
    assert map_finish_reason(raw) is expected


@pytest.mark.parametrize("raw", ["", "mystery", None, 7, "FINISH_REASON_UNSPECIFIED"])
def test_unknown_reasons_map_to_other(raw):
    assert map_finish_reason(raw) is FinishReason.OTHER


def test_sdk_enums_are_mapped_by_name():
    class SdkReason(enum.Enum):
        MAX_TOKENS = 2

    assert map_finish_reason(SdkReason.MAX_TOKENS) is FinishReason.MAX_TOKENS


def test_unified_reason_passes_through():
    assert map_finish_reason(FinishReason.SAFETY) is FinishReason.SAFETY
