"""
Domain Module

Canonical protocol types and backend wire types.
"""

from .backend import (
    BackendMessage,
    BackendToolCall,
    ExtractedImage,
    PartialToolCall,
    tool_call_id_for,
)
from .types import (
    AssistantTurn,
    CallOptions,
    CallWarning,
    ContentPart,
    FilePart,
    FinishReason,
    GenerateResult,
    PartType,
    ReasoningPart,
    ResponseFormat,
    Role,
    SourcePart,
    StreamEvent,
    StreamEventType,
    SystemTurn,
    TextPart,
    ToolCallPart,
    ToolChoice,
    ToolDefinition,
    ToolResultPart,
    ToolTurn,
    Turn,
    Usage,
    UserTurn,
)

__all__ = [
    # Canonical types
    "AssistantTurn",
    "CallOptions",
    "CallWarning",
    "ContentPart",
    "FilePart",
    "FinishReason",
    "GenerateResult",
    "PartType",
    "ReasoningPart",
    "ResponseFormat",
    "Role",
    "SourcePart",
    "StreamEvent",
    "StreamEventType",
    "SystemTurn",
    "TextPart",
    "ToolCallPart",
    "ToolChoice",
    "ToolDefinition",
    "ToolResultPart",
    "ToolTurn",
    "Turn",
    "Usage",
    "UserTurn",
    # Backend types
    "BackendMessage",
    "BackendToolCall",
    "ExtractedImage",
    "PartialToolCall",
    "tool_call_id_for",
]
