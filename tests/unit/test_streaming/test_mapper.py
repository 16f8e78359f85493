"""
Stream mapping tests

Covers per-chunk signal handling, end-of-stream reconciliation and the
lifetime of the upstream byte stream.
"""

import json

import pytest

from textgen_adapter.domain.types import (
    CallWarning,
    FinishReason,
    StreamEventType,
    Usage,
)
from textgen_adapter.streaming.mapper import ChunkAggregator, map_stream
from tests.fakes import TrackingStream, assert_well_framed, collect, event_types, sse


def _delta(**fields):
    return {"choices": [{"delta": fields}]}


class TestChunkAggregator:
    def test_response_text_opens_block_once(self):
        aggregator = ChunkAggregator()

        first = aggregator.feed(json.dumps({"response": "Hel"}))
        second = aggregator.feed(json.dumps({"response": "lo"}))

        assert event_types(first) == ["text-start", "text-delta"]
        assert event_types(second) == ["text-delta"]
        assert first[0].id == first[1].id == second[0].id

    def test_delta_content_shares_text_block(self):
        aggregator = ChunkAggregator()

        events = aggregator.feed(json.dumps({"response": "a"}))
        events += aggregator.feed(json.dumps(_delta(content="b")))

        assert event_types(events) == ["text-start", "text-delta", "text-delta"]
        assert len({e.id for e in events}) == 1

    def test_reasoning_before_content_within_chunk(self):
        aggregator = ChunkAggregator()

        events = aggregator.feed(json.dumps(_delta(reasoning_content="hmm", content="ok")))

        assert event_types(events) == [
            "reasoning-start",
            "reasoning-delta",
            "text-start",
            "text-delta",
        ]
        assert events[0].id != events[2].id

    def test_empty_strings_ignored(self):
        aggregator = ChunkAggregator()
        assert aggregator.feed(json.dumps({"response": ""})) == []
        assert aggregator.feed(json.dumps(_delta(content="", reasoning_content=""))) == []

    def test_invalid_json_skipped(self):
        aggregator = ChunkAggregator()
        assert aggregator.feed("{not json") == []
        assert event_types(aggregator.feed(json.dumps({"response": "x"}))) == ["text-start", "text-delta"]

    def test_done_sentinel(self):
        aggregator = ChunkAggregator()
        assert aggregator.feed("[DONE]") == []
        assert aggregator.done
        assert aggregator.feed(json.dumps({"response": "late"})) == []

    def test_finish_closes_reasoning_before_text(self):
        aggregator = ChunkAggregator()
        aggregator.feed(json.dumps(_delta(content="a")))
        aggregator.feed(json.dumps(_delta(reasoning_content="b")))

        events = aggregator.finish()

        assert event_types(events) == ["reasoning-end", "text-end", "finish"]

    def test_finish_only_once(self):
        aggregator = ChunkAggregator()
        aggregator.finish()
        with pytest.raises(RuntimeError):
            aggregator.finish()
        with pytest.raises(RuntimeError):
            aggregator.feed(json.dumps({"response": "x"}))

    def test_usage_last_write_wins(self):
        aggregator = ChunkAggregator()
        aggregator.feed(json.dumps({"usage": {"prompt_tokens": 5, "completion_tokens": 1}}))
        aggregator.feed(json.dumps({"response": "x"}))
        aggregator.feed(json.dumps({"usage": {"prompt_tokens": 5, "completion_tokens": 9}}))

        finish = aggregator.finish()[-1]

        assert finish.usage == Usage(input_tokens=5, output_tokens=9, total_tokens=14)

    def test_tool_calls_emitted_at_finish(self):
        aggregator = ChunkAggregator()
        assert aggregator.feed(json.dumps({"tool_calls": [{"index": 0, "function": {"name": "get"}}]})) == []
        aggregator.feed(json.dumps({"tool_calls": [{"index": 0, "function": {"arguments": '{"a":'}}]}))
        aggregator.feed(json.dumps({"tool_calls": [{"index": 0, "function": {"arguments": "1}"}}]}))

        events = aggregator.finish()

        assert event_types(events) == ["tool-call", "finish"]
        assert events[0].tool_call.tool_call_id == "functions.get:0"
        assert events[0].tool_call.input == {"a": 1}

    def test_delta_tool_calls_collected(self):
        aggregator = ChunkAggregator()
        aggregator.feed(json.dumps(_delta(tool_calls=[{"index": 0, "id": "c1", "function": {"name": "f", "arguments": "{}"}}])))

        events = aggregator.finish()

        assert events[0].tool_call.tool_call_id == "c1"


class TestMapStream:
    @pytest.mark.asyncio
    async def test_text_stream(self):
        stream = TrackingStream(
            sse(
                {"response": "Hello"},
                {"response": " world", "usage": {"prompt_tokens": 3, "completion_tokens": 2}},
                "[DONE]",
            )
        )

        events = await collect(map_stream(stream))

        assert event_types(events) == ["text-start", "text-delta", "text-delta", "text-end", "finish"]
        assert "".join(e.delta for e in events if e.type == StreamEventType.TEXT_DELTA) == "Hello world"
        assert events[-1].finish_reason == FinishReason.STOP
        assert events[-1].usage.total_tokens == 5
        assert_well_framed(events)

    @pytest.mark.asyncio
    async def test_stream_start_carries_warnings(self):
        warning = CallWarning(setting="frequencyPenalty")
        events = await collect(map_stream(TrackingStream(sse({"response": "x"})), warnings=[warning]))

        assert events[0].type == StreamEventType.STREAM_START
        assert events[0].warnings == [warning]
        assert_well_framed(events)

    @pytest.mark.asyncio
    async def test_empty_stream(self):
        events = await collect(map_stream(TrackingStream([])))

        assert event_types(events) == ["finish"]
        assert events[0].finish_reason == FinishReason.STOP
        assert events[0].usage == Usage(0, 0, 0)

    @pytest.mark.asyncio
    async def test_fragmented_tool_call(self):
        stream = TrackingStream(
            sse(
                {"tool_calls": [{"index": 0, "function": {"name": "get"}}]},
                {"tool_calls": [{"index": 0, "function": {"arguments": '{"a":'}}]},
                {"tool_calls": [{"index": 0, "function": {"arguments": "1}"}}]},
                "[DONE]",
            )
        )

        events = await collect(map_stream(stream))
        tool_calls = [e.tool_call for e in events if e.type == StreamEventType.TOOL_CALL]

        assert len(tool_calls) == 1
        assert tool_calls[0].tool_name == "get"
        assert tool_calls[0].input == {"a": 1}
        assert_well_framed(events)

    @pytest.mark.asyncio
    async def test_truncated_tool_call_dropped(self):
        stream = TrackingStream(
            sse(
                {"response": "partial"},
                {"tool_calls": [{"index": 0, "function": {"name": "get", "arguments": '{"a":'}}]},
            )
        )

        events = await collect(map_stream(stream))

        assert StreamEventType.TOOL_CALL not in [e.type for e in events]
        assert_well_framed(events)

    @pytest.mark.asyncio
    async def test_reads_stop_at_done(self):
        chunks = sse({"response": "a"}, "[DONE]", {"response": "after"})
        stream = TrackingStream(chunks)

        events = await collect(map_stream(stream))

        assert [e.delta for e in events if e.type == StreamEventType.TEXT_DELTA] == ["a"]
        assert stream.consumed == 2
        assert stream.closed

    @pytest.mark.asyncio
    async def test_pull_driven(self):
        stream = TrackingStream(sse({"response": "a"}, {"response": "b"}, {"response": "c"}))
        events = map_stream(stream)

        first = await events.__anext__()

        assert first.type == StreamEventType.TEXT_START
        assert stream.consumed == 1
        await events.aclose()

    @pytest.mark.asyncio
    async def test_consumer_stop_closes_upstream(self):
        stream = TrackingStream(sse({"response": "a"}, {"response": "b"}))
        events = map_stream(stream)

        await events.__anext__()
        await events.aclose()

        assert stream.closed
        assert stream.consumed == 1

    @pytest.mark.asyncio
    async def test_close_before_first_pull_closes_upstream(self):
        stream = TrackingStream(sse({"response": "a"}))
        events = map_stream(stream, warnings=[])

        await events.aclose()

        assert stream.closed
        assert stream.consumed == 0

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        stream = TrackingStream(sse({"response": "a"}))
        events = map_stream(stream)

        await collect(events)
        await events.aclose()
        await events.aclose()

        assert stream.closed

    @pytest.mark.asyncio
    async def test_upstream_closed_on_completion(self):
        stream = TrackingStream(sse({"response": "a"}))
        await collect(map_stream(stream))
        assert stream.closed

    @pytest.mark.asyncio
    async def test_mixed_reasoning_text_and_tools(self):
        stream = TrackingStream(
            sse(
                _delta(reasoning_content="Think"),
                _delta(reasoning_content="ing", content="Answer"),
                _delta(tool_calls=[{"index": 0, "function": {"name": "f", "arguments": "{}"}}]),
                {"response": "", "usage": {"prompt_tokens": 1, "completion_tokens": 1}},
                "[DONE]",
            )
        )

        events = await collect(map_stream(stream))

        assert event_types(events) == [
            "reasoning-start",
            "reasoning-delta",
            "reasoning-delta",
            "text-start",
            "text-delta",
            "tool-call",
            "reasoning-end",
            "text-end",
            "finish",
        ]
        assert_well_framed(events)
