"""
Converters Module

Pure translation functions between the canonical protocol and the backend
wire format.
"""

from .messages import convert_to_backend_messages
from .normalize import map_finish_reason, map_usage
from .response import decompose_response
from .tools import (
    last_message_was_user,
    merge_partial_tool_calls,
    prepare_tools_and_tool_choice,
    process_partial_tool_calls,
    process_text,
    process_tool_calls,
)

__all__ = [
    "convert_to_backend_messages",
    "decompose_response",
    "last_message_was_user",
    "map_finish_reason",
    "map_usage",
    "merge_partial_tool_calls",
    "prepare_tools_and_tool_choice",
    "process_partial_tool_calls",
    "process_text",
    "process_tool_calls",
]
