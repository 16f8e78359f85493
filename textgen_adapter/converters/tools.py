"""
Tool Helpers

Tool declaration/choice preparation for requests, plus extraction of
text and tool calls from backend outputs (complete or fragmented).
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Optional, Sequence

from textgen_adapter.common.errors import UnsupportedToolChoiceError
from textgen_adapter.domain.backend import BackendMessage, PartialToolCall, tool_call_id_for
from textgen_adapter.domain.types import ToolCallPart, ToolChoice, ToolDefinition

logger = logging.getLogger(__name__)


def prepare_tools_and_tool_choice(
    tools: Optional[Sequence[ToolDefinition]],
    tool_choice: Optional[ToolChoice],
) -> dict[str, Any]:
    """
    Map canonical tool declarations and tool choice to backend fields.

    Returns:
        dict: {"tools": [...] | None, "tool_choice": str | None}

    Raises:
        UnsupportedToolChoiceError: Unknown tool choice type
    """
    if not tools:
        return {"tools": None, "tool_choice": None}

    mapped_tools = [
        {
            "type": "function",
            "function": {
                "name": tool.name,
                "description": tool.description,
                "parameters": tool.parameters,
            },
        }
        for tool in tools
    ]

    if tool_choice is None:
        return {"tools": mapped_tools, "tool_choice": None}

    choice_type = tool_choice.type
    if choice_type in ("auto", "none"):
        return {"tools": mapped_tools, "tool_choice": choice_type}
    if choice_type == "required":
        return {"tools": mapped_tools, "tool_choice": "any"}
    if choice_type == "tool":
        return {
            "tools": [t for t in mapped_tools if t["function"]["name"] == tool_choice.tool_name],
            "tool_choice": "any",
        }
    raise UnsupportedToolChoiceError(choice_type)


def last_message_was_user(messages: Sequence[BackendMessage]) -> bool:
    return len(messages) > 0 and messages[-1].role == "user"


def process_text(output: dict[str, Any]) -> Optional[str]:
    """Pull the response text out of a complete backend output."""
    response = output.get("response")
    if isinstance(response, str):
        return response
    if isinstance(response, (dict, list)):
        return json.dumps(response, ensure_ascii=False)

    # A null response defers to the chat-completions shape
    choices = output.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        message = choices[0].get("message") or {}
        return message.get("content")
    return None


def _decode_arguments(arguments: Any) -> Any:
    """Decode a JSON-string argument payload. Raises ValueError when malformed."""
    if arguments is None or arguments == "":
        return {}
    if isinstance(arguments, str):
        return json.loads(arguments)
    return arguments


def _process_tool_call(tool_call: dict[str, Any], index: int) -> Optional[ToolCallPart]:
    function = tool_call.get("function")
    if isinstance(function, dict):
        name = function.get("name") or ""
        raw_arguments = function.get("arguments")
    else:
        # Flat shape used by some models: {"name": ..., "arguments": ...}
        name = tool_call.get("name") or ""
        raw_arguments = tool_call.get("arguments")

    try:
        arguments = _decode_arguments(raw_arguments)
    except ValueError:
        logger.warning("Dropping tool call %r: arguments are not valid JSON", name)
        return None

    return ToolCallPart(
        tool_call_id=tool_call.get("id") or tool_call_id_for(name, index),
        tool_name=name,
        input=arguments,
    )


def process_tool_calls(output: dict[str, Any]) -> list[ToolCallPart]:
    """
    Extract complete tool calls from a backend output.

    Looks at the top-level tool_calls list first, then choices[0].message.tool_calls.
    """
    tool_calls = output.get("tool_calls")
    if not isinstance(tool_calls, list):
        choices = output.get("choices")
        tool_calls = None
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            tool_calls = (choices[0].get("message") or {}).get("tool_calls")
    if not isinstance(tool_calls, list):
        return []

    parts = []
    for index, tool_call in enumerate(tool_calls):
        if not isinstance(tool_call, dict):
            continue
        part = _process_tool_call(tool_call, index)
        if part is not None:
            parts.append(part)
    return parts


def merge_partial_tool_calls(fragments: Iterable[dict[str, Any]]) -> list[PartialToolCall]:
    """
    Merge stream fragments by index.

    Names and argument strings are concatenated in arrival order; the
    result is sorted by index.
    """
    merged: dict[int, PartialToolCall] = {}
    for position, fragment in enumerate(fragments):
        if not isinstance(fragment, dict):
            continue
        index = fragment.get("index")
        if not isinstance(index, int):
            index = position

        function = fragment.get("function")
        if not isinstance(function, dict):
            function = {"name": fragment.get("name"), "arguments": fragment.get("arguments")}

        call = merged.get(index)
        if call is None:
            call = merged[index] = PartialToolCall(index=index)
        if fragment.get("id"):
            call.id = fragment["id"]
        if fragment.get("type"):
            call.type = fragment["type"]

        name = function.get("name")
        if name:
            call.name += name
        arguments = function.get("arguments")
        if isinstance(arguments, str):
            call.arguments += arguments
        elif arguments is not None:
            call.arguments += json.dumps(arguments, ensure_ascii=False)

    return [merged[index] for index in sorted(merged)]


def process_partial_tool_calls(fragments: Iterable[dict[str, Any]]) -> list[ToolCallPart]:
    """
    Reconcile accumulated fragments into complete tool calls.

    A merged call is complete only when it has a name and its arguments
    parse as JSON; incomplete calls are dropped.
    """
    parts = []
    for call in merge_partial_tool_calls(fragments):
        if not call.name:
            logger.debug("Dropping tool call fragment %d: no function name", call.index)
            continue
        try:
            arguments = json.loads(call.arguments) if call.arguments else {}
        except ValueError:
            logger.debug(
                "Dropping tool call fragment %d (%s): arguments are not valid JSON",
                call.index,
                call.name,
            )
            continue
        parts.append(
            ToolCallPart(
                tool_call_id=call.id or tool_call_id_for(call.name, call.index),
                tool_name=call.name,
                input=arguments,
            )
        )
    return parts
