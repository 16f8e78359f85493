"""
Simulated streaming tests
"""

import pytest

from textgen_adapter.converters.response import decompose_response
from textgen_adapter.domain.types import (
    CallWarning,
    FinishReason,
    GenerateResult,
    ReasoningPart,
    StreamEventType,
    TextPart,
    ToolCallPart,
    Usage,
)
from textgen_adapter.streaming.simulate import simulate_stream, simulated_events
from tests.fakes import assert_well_framed, collect, event_types


def test_replays_decomposed_response():
    output = {
        "choices": [
            {
                "message": {
                    "content": "Calling the tool.",
                    "reasoning_content": "Need weather.",
                    "tool_calls": [{"function": {"name": "weather", "arguments": '{"city":"Paris"}'}}],
                }
            }
        ]
    }
    content = decompose_response(output)
    result = GenerateResult(content=content, usage=Usage(4, 6, 10))

    events = simulated_events(result)

    assert event_types(events) == [
        "stream-start",
        "reasoning-start",
        "reasoning-delta",
        "text-start",
        "text-delta",
        "tool-call",
        "reasoning-end",
        "text-end",
        "finish",
    ]
    assert events[2].delta == "Need weather."
    assert events[4].delta == "Calling the tool."
    assert events[5].tool_call is content[2]
    assert events[-1].usage == Usage(4, 6, 10)
    assert_well_framed(events)


def test_reasoning_deltas_use_block_id():
    result = GenerateResult(content=[ReasoningPart(text="a"), ReasoningPart(text="b")])

    events = simulated_events(result)
    reasoning = [e for e in events if e.type.value.startswith("reasoning")]

    assert len({e.id for e in reasoning}) == 1
    assert_well_framed(events)


def test_finish_reason_and_warnings_carried():
    result = GenerateResult(
        content=[TextPart(text="")],
        finish_reason=FinishReason.LENGTH,
        warnings=[CallWarning(setting="presencePenalty")],
    )

    events = simulated_events(result)

    assert events[0].warnings == result.warnings
    assert events[-1].finish_reason == FinishReason.LENGTH


def test_explicit_warnings_override_result():
    result = GenerateResult(content=[], warnings=[CallWarning(setting="x")])
    assert simulated_events(result, warnings=[])[0].warnings == []


def test_no_text_block_without_text_part():
    result = GenerateResult(content=[ToolCallPart(tool_call_id="t", tool_name="f", input={})])

    events = simulated_events(result)

    assert event_types(events) == ["stream-start", "tool-call", "finish"]


@pytest.mark.asyncio
async def test_simulate_stream_yields_same_sequence():
    result = GenerateResult(content=[TextPart(text="hi")])

    events = await collect(simulate_stream(result))

    assert event_types(events) == ["stream-start", "text-start", "text-delta", "text-end", "finish"]
    assert events[-1].type == StreamEventType.FINISH
