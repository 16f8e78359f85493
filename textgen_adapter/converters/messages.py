"""
Canonical Prompt -> Backend Messages

Flattens structured turns into the backend's role/content records and
lifts image attachments into a side-channel list.
"""

import json
from typing import Any

from textgen_adapter.common.errors import UnsupportedPartError
from textgen_adapter.domain.backend import (
    BackendMessage,
    BackendToolCall,
    ExtractedImage,
    tool_call_id_for,
)
from textgen_adapter.domain.types import (
    AssistantTurn,
    FilePart,
    ReasoningPart,
    SystemTurn,
    TextPart,
    ToolCallPart,
    ToolTurn,
    Turn,
    UserTurn,
)


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def _convert_user_turn(turn: UserTurn, images: list[ExtractedImage]) -> BackendMessage:
    rendered: list[str] = []
    for part in turn.content:
        if isinstance(part, TextPart):
            rendered.append(part.text)
        elif isinstance(part, FilePart):
            if isinstance(part.data, (bytes, bytearray)):
                images.append(
                    ExtractedImage(
                        data=bytes(part.data),
                        media_type=part.media_type,
                        provider_options=part.provider_options,
                    )
                )
            # No text for the image part
            rendered.append("")
        else:
            raise UnsupportedPartError("part type", getattr(part, "type", type(part).__name__))

    return BackendMessage(role="user", content="\n".join(rendered))


def _convert_assistant_turn(turn: AssistantTurn) -> BackendMessage:
    text = ""
    tool_calls: list[BackendToolCall] = []

    for part in turn.content:
        if isinstance(part, (TextPart, ReasoningPart)):
            text += part.text
        elif isinstance(part, ToolCallPart):
            # The buffer holds only the most recent call's summary.
            text = _dumps({"name": part.tool_name, "parameters": part.input})
            tool_calls.append(
                BackendToolCall(
                    id=tool_call_id_for(part.tool_name, len(tool_calls)),
                    name=part.tool_name,
                    arguments=_dumps(part.input),
                )
            )
        else:
            raise UnsupportedPartError("part type", getattr(part, "type", type(part).__name__))

    return BackendMessage(
        role="assistant",
        content=text,
        tool_calls=tool_calls or None,
    )


def _convert_tool_turn(turn: ToolTurn) -> list[BackendMessage]:
    return [
        BackendMessage(
            role="tool",
            content=_dumps(result.output),
            name=result.tool_name,
            tool_call_id=tool_call_id_for(result.tool_name, index),
        )
        for index, result in enumerate(turn.content)
    ]


def convert_to_backend_messages(
    prompt: list[Turn],
) -> tuple[list[BackendMessage], list[ExtractedImage]]:
    """
    Convert a canonical prompt to backend messages.

    Args:
        prompt: Ordered canonical turns

    Returns:
        tuple: (backend messages in turn order, extracted images)

    Raises:
        UnsupportedPartError: Unknown turn role or content part type
    """
    messages: list[BackendMessage] = []
    images: list[ExtractedImage] = []

    for turn in prompt:
        if isinstance(turn, SystemTurn):
            messages.append(BackendMessage(role="system", content=turn.content))
        elif isinstance(turn, UserTurn):
            messages.append(_convert_user_turn(turn, images))
        elif isinstance(turn, AssistantTurn):
            messages.append(_convert_assistant_turn(turn))
        elif isinstance(turn, ToolTurn):
            messages.extend(_convert_tool_turn(turn))
        else:
            raise UnsupportedPartError("role", getattr(turn, "role", type(turn).__name__))

    return messages, images
