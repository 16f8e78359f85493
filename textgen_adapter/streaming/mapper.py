"""
Streaming Chunk Aggregation

Turns the backend's SSE stream of JSON chunks into canonical framed events.

Per chunk, signals are read in a fixed order:
1. usage (last write wins)
2. tool_calls fragments (buffered until the end of the stream)
3. top-level "response" text
4. choices[0].delta.reasoning_content
5. choices[0].delta.content (same text block as 3)

At the end of the stream the buffered fragments are reconciled into
tool-call events, open blocks are closed (reasoning before text) and a
single finish event is emitted.
"""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator, Optional, Sequence

from textgen_adapter.common.utils import generate_id
from textgen_adapter.converters.normalize import map_usage
from textgen_adapter.converters.tools import process_partial_tool_calls
from textgen_adapter.domain.types import (
    CallWarning,
    FinishReason,
    StreamEvent,
    StreamEventType,
    Usage,
)
from textgen_adapter.streaming.sse import DONE_SENTINEL, iter_sse_payloads

logger = logging.getLogger(__name__)


def _first_delta(chunk: dict[str, Any]) -> dict[str, Any]:
    choices = chunk.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        delta = choices[0].get("delta")
        if isinstance(delta, dict):
            return delta
    return {}


def _non_empty_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


class ChunkAggregator:
    """
    Per-stream state machine.

    One instance serves exactly one stream: it owns the open block ids, the
    tool-call fragment table and the usage snapshot, and must not be reused
    after finish() has been called.
    """

    def __init__(self) -> None:
        self.text_id: Optional[str] = None
        self.reasoning_id: Optional[str] = None
        self.partial_tool_calls: list[dict[str, Any]] = []
        self.usage = Usage()
        # Set once the end-of-stream sentinel is seen
        self.done = False
        self.finished = False

    def feed(self, payload: str) -> list[StreamEvent]:
        """
        Process one SSE data payload.

        Returns:
            list[StreamEvent]: Events produced by this chunk, possibly empty
        """
        if self.finished:
            raise RuntimeError("ChunkAggregator already finished")
        if not payload or self.done:
            return []
        if payload.strip() == DONE_SENTINEL:
            self.done = True
            return []

        try:
            chunk = json.loads(payload)
        except ValueError:
            logger.warning("Skipping stream chunk that is not valid JSON: %.200s", payload)
            return []
        if not isinstance(chunk, dict):
            return []

        events: list[StreamEvent] = []

        if chunk.get("usage"):
            self.usage = map_usage(chunk)

        delta = _first_delta(chunk)

        tool_calls = chunk.get("tool_calls")
        if isinstance(tool_calls, list):
            self.partial_tool_calls.extend(tool_calls)
        delta_tool_calls = delta.get("tool_calls")
        if isinstance(delta_tool_calls, list):
            self.partial_tool_calls.extend(delta_tool_calls)

        response_text = _non_empty_str(chunk.get("response"))
        if response_text:
            events.extend(self._text_delta(response_text))

        reasoning_text = _non_empty_str(delta.get("reasoning_content"))
        if reasoning_text:
            if self.reasoning_id is None:
                self.reasoning_id = generate_id()
                events.append(StreamEvent(type=StreamEventType.REASONING_START, id=self.reasoning_id))
            events.append(
                StreamEvent(
                    type=StreamEventType.REASONING_DELTA,
                    id=self.reasoning_id,
                    delta=reasoning_text,
                )
            )

        content_text = _non_empty_str(delta.get("content"))
        if content_text:
            events.extend(self._text_delta(content_text))

        return events

    def _text_delta(self, text: str) -> list[StreamEvent]:
        events = []
        if self.text_id is None:
            self.text_id = generate_id()
            events.append(StreamEvent(type=StreamEventType.TEXT_START, id=self.text_id))
        events.append(StreamEvent(type=StreamEventType.TEXT_DELTA, id=self.text_id, delta=text))
        return events

    def finish(self) -> list[StreamEvent]:
        """Emit reconciled tool calls, close open blocks and emit the finish event."""
        if self.finished:
            raise RuntimeError("ChunkAggregator already finished")
        self.finished = True

        events: list[StreamEvent] = []

        if self.partial_tool_calls:
            for tool_call in process_partial_tool_calls(self.partial_tool_calls):
                events.append(StreamEvent(type=StreamEventType.TOOL_CALL, tool_call=tool_call))

        if self.reasoning_id is not None:
            events.append(StreamEvent(type=StreamEventType.REASONING_END, id=self.reasoning_id))
            self.reasoning_id = None
        if self.text_id is not None:
            events.append(StreamEvent(type=StreamEventType.TEXT_END, id=self.text_id))
            self.text_id = None

        # The stream carries no finish signal of its own.
        events.append(
            StreamEvent(
                type=StreamEventType.FINISH,
                finish_reason=FinishReason.STOP,
                usage=self.usage,
            )
        )
        return events


async def _close_upstream(byte_stream: AsyncIterator[bytes]) -> None:
    aclose = getattr(byte_stream, "aclose", None)
    if aclose is not None:
        await aclose()


async def _mapped_events(
    byte_stream: AsyncIterator[bytes],
    warnings: Optional[Sequence[CallWarning]],
) -> AsyncIterator[StreamEvent]:
    aggregator = ChunkAggregator()
    payloads = iter_sse_payloads(byte_stream)
    try:
        if warnings is not None:
            yield StreamEvent(type=StreamEventType.STREAM_START, warnings=list(warnings))
        async for payload in payloads:
            for event in aggregator.feed(payload):
                yield event
            if aggregator.done:
                break
    finally:
        await payloads.aclose()
        await _close_upstream(byte_stream)

    for event in aggregator.finish():
        yield event


class EventStream:
    """
    Canonical events mapped from one backend byte stream.

    Owns the upstream iterator: aclose() releases it whether or not any
    event has been pulled yet.
    """

    def __init__(
        self,
        byte_stream: AsyncIterator[bytes],
        warnings: Optional[Sequence[CallWarning]] = None,
    ):
        self._byte_stream = byte_stream
        self._events = _mapped_events(byte_stream, warnings)
        self._closed = False

    def __aiter__(self) -> "EventStream":
        return self

    async def __anext__(self) -> StreamEvent:
        return await self._events.__anext__()

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._events.aclose()
        finally:
            await _close_upstream(self._byte_stream)


def map_stream(
    byte_stream: AsyncIterator[bytes],
    warnings: Optional[Sequence[CallWarning]] = None,
) -> EventStream:
    """
    Map a backend byte stream to canonical events.

    Pull-driven: upstream bytes are read only when the consumer asks for
    the next event. The upstream iterator is closed as soon as the sentinel
    is seen, the input ends, or the consumer closes the returned stream.

    Args:
        byte_stream: Raw SSE bytes from the backend
        warnings: When given, a stream-start event carrying them is emitted first
    """
    return EventStream(byte_stream, warnings)
