"""
Simulated Streaming

Replays a completed non-streaming result as a one-shot event sequence with
the same framing as a real stream.
"""

from typing import AsyncIterator, Optional, Sequence

from textgen_adapter.common.utils import generate_id
from textgen_adapter.domain.types import (
    CallWarning,
    GenerateResult,
    ReasoningPart,
    StreamEvent,
    StreamEventType,
    TextPart,
    ToolCallPart,
)


def simulated_events(
    result: GenerateResult,
    warnings: Optional[Sequence[CallWarning]] = None,
) -> list[StreamEvent]:
    """
    Build the full event sequence for a completed result.

    Args:
        result: Result of the blocking call
        warnings: Warnings for stream-start; defaults to result.warnings

    Returns:
        list[StreamEvent]: stream-start ... finish
    """
    text_id: Optional[str] = None
    reasoning_id: Optional[str] = None

    events = [
        StreamEvent(
            type=StreamEventType.STREAM_START,
            warnings=list(result.warnings if warnings is None else warnings),
        )
    ]

    for part in result.content:
        if isinstance(part, TextPart):
            if text_id is None:
                text_id = generate_id()
                events.append(StreamEvent(type=StreamEventType.TEXT_START, id=text_id))
            events.append(StreamEvent(type=StreamEventType.TEXT_DELTA, id=text_id, delta=part.text))
        elif isinstance(part, ReasoningPart):
            if reasoning_id is None:
                reasoning_id = generate_id()
                events.append(StreamEvent(type=StreamEventType.REASONING_START, id=reasoning_id))
            events.append(
                StreamEvent(type=StreamEventType.REASONING_DELTA, id=reasoning_id, delta=part.text)
            )
        elif isinstance(part, ToolCallPart):
            events.append(StreamEvent(type=StreamEventType.TOOL_CALL, tool_call=part))

    if reasoning_id is not None:
        events.append(StreamEvent(type=StreamEventType.REASONING_END, id=reasoning_id))
    if text_id is not None:
        events.append(StreamEvent(type=StreamEventType.TEXT_END, id=text_id))

    events.append(
        StreamEvent(
            type=StreamEventType.FINISH,
            finish_reason=result.finish_reason,
            usage=result.usage,
        )
    )
    return events


async def simulate_stream(
    result: GenerateResult,
    warnings: Optional[Sequence[CallWarning]] = None,
) -> AsyncIterator[StreamEvent]:
    """Async-iterator view of simulated_events()."""
    for event in simulated_events(result, warnings):
        yield event
