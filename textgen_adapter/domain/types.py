"""
Canonical Type Definitions

Provider-agnostic representation of prompts, call options, results and
stream events. Content parts and turns are closed sets: every converter
dispatches over them exhaustively and raises on anything else.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


class Role(str, Enum):
    """Turn roles of the canonical protocol."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


class PartType(str, Enum):
    """Content part tags."""
    TEXT = "text"
    REASONING = "reasoning"
    FILE = "file"
    TOOL_CALL = "tool-call"
    TOOL_RESULT = "tool-result"
    SOURCE = "source"


class FinishReason(str, Enum):
    """Canonical finish reasons."""
    STOP = "stop"
    LENGTH = "length"
    TOOL_CALLS = "tool-calls"
    UNKNOWN = "unknown"


class StreamEventType(str, Enum):
    """Types of canonical streaming events."""
    STREAM_START = "stream-start"
    TEXT_START = "text-start"
    TEXT_DELTA = "text-delta"
    TEXT_END = "text-end"
    REASONING_START = "reasoning-start"
    REASONING_DELTA = "reasoning-delta"
    REASONING_END = "reasoning-end"
    TOOL_CALL = "tool-call"
    FINISH = "finish"


# =============================================================================
# Content parts
# =============================================================================


@dataclass
class TextPart:
    type: PartType = field(default=PartType.TEXT, init=False)
    text: str = ""


@dataclass
class ReasoningPart:
    type: PartType = field(default=PartType.REASONING, init=False)
    text: str = ""


@dataclass
class FilePart:
    """File attachment. Images are the only files the backend accepts."""
    type: PartType = field(default=PartType.FILE, init=False)
    data: Union[bytes, str] = b""
    media_type: Optional[str] = None  # e.g., "image/png"
    provider_options: Optional[dict[str, Any]] = None


@dataclass
class ToolCallPart:
    type: PartType = field(default=PartType.TOOL_CALL, init=False)
    tool_call_id: str = ""
    tool_name: str = ""
    input: Any = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "toolCallId": self.tool_call_id,
            "toolName": self.tool_name,
            "input": self.input,
        }


@dataclass
class ToolResultPart:
    type: PartType = field(default=PartType.TOOL_RESULT, init=False)
    tool_call_id: str = ""
    tool_name: str = ""
    output: Any = None


@dataclass
class SourcePart:
    """Retrieved document reference (search model output only)."""
    type: PartType = field(default=PartType.SOURCE, init=False)
    id: str = ""
    url: str = ""
    provider_metadata: dict[str, Any] = field(default_factory=dict)


ContentPart = Union[
    TextPart,
    ReasoningPart,
    FilePart,
    ToolCallPart,
    ToolResultPart,
    SourcePart,
]


def content_part_to_dict(part: ContentPart) -> dict[str, Any]:
    """Render an output content part in the canonical wire shape."""
    if isinstance(part, ToolCallPart):
        return part.to_dict()
    if isinstance(part, (TextPart, ReasoningPart)):
        return {"type": part.type.value, "text": part.text}
    if isinstance(part, SourcePart):
        return {
            "type": part.type.value,
            "sourceType": "url",
            "id": part.id,
            "url": part.url,
            "providerMetadata": part.provider_metadata,
        }
    raise TypeError(f"Not an output content part: {part.type}")


# =============================================================================
# Turns
# =============================================================================


@dataclass
class SystemTurn:
    role: Role = field(default=Role.SYSTEM, init=False)
    content: str = ""


@dataclass
class UserTurn:
    role: Role = field(default=Role.USER, init=False)
    content: list[Union[TextPart, FilePart]] = field(default_factory=list)


@dataclass
class AssistantTurn:
    role: Role = field(default=Role.ASSISTANT, init=False)
    content: list[Union[TextPart, ReasoningPart, ToolCallPart]] = field(default_factory=list)


@dataclass
class ToolTurn:
    role: Role = field(default=Role.TOOL, init=False)
    content: list[ToolResultPart] = field(default_factory=list)


Turn = Union[SystemTurn, UserTurn, AssistantTurn, ToolTurn]


# =============================================================================
# Call options
# =============================================================================


@dataclass
class ToolDefinition:
    """Function tool declaration."""
    name: str
    description: Optional[str] = None
    parameters: dict[str, Any] = field(default_factory=dict)  # JSON Schema


@dataclass
class ToolChoice:
    type: str = "auto"  # auto, none, required, tool
    tool_name: Optional[str] = None  # For "tool"


@dataclass
class ResponseFormat:
    type: str = "text"  # text, json
    schema: Optional[dict[str, Any]] = None


@dataclass
class CallOptions:
    """Everything the caller supplies for one generate/stream call."""
    prompt: list[Turn] = field(default_factory=list)
    tools: Optional[list[ToolDefinition]] = None
    tool_choice: Optional[ToolChoice] = None
    max_output_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    seed: Optional[int] = None
    response_format: Optional[ResponseFormat] = None


@dataclass
class CallWarning:
    """Non-fatal notice attached to a result, e.g. an ignored setting."""
    type: str = "unsupported-setting"
    setting: Optional[str] = None
    details: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"type": self.type}
        if self.setting is not None:
            result["setting"] = self.setting
        if self.details is not None:
            result["details"] = self.details
        return result


# =============================================================================
# Results
# =============================================================================


@dataclass
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "inputTokens": self.input_tokens,
            "outputTokens": self.output_tokens,
            "totalTokens": self.total_tokens,
        }


@dataclass
class GenerateResult:
    """Non-streaming call result."""
    content: list[ContentPart] = field(default_factory=list)
    finish_reason: FinishReason = FinishReason.STOP
    usage: Usage = field(default_factory=Usage)
    warnings: list[CallWarning] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "content": [content_part_to_dict(part) for part in self.content],
            "finishReason": self.finish_reason.value,
            "usage": self.usage.to_dict(),
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass
class StreamEvent:
    """
    Canonical stream event.

    Which fields are set depends on the type: block events carry an id
    (and a delta for *-delta), tool-call events carry the complete call,
    finish carries the reason and usage, stream-start carries warnings.
    """
    type: StreamEventType
    id: Optional[str] = None
    delta: Optional[str] = None
    tool_call: Optional[ToolCallPart] = None
    finish_reason: Optional[FinishReason] = None
    usage: Optional[Usage] = None
    warnings: Optional[list[CallWarning]] = None

    def to_dict(self) -> dict[str, Any]:
        if self.type == StreamEventType.TOOL_CALL and self.tool_call is not None:
            return self.tool_call.to_dict()

        result: dict[str, Any] = {"type": self.type.value}
        if self.id is not None:
            result["id"] = self.id
        if self.delta is not None:
            result["delta"] = self.delta
        if self.finish_reason is not None:
            result["finishReason"] = self.finish_reason.value
        if self.usage is not None:
            result["usage"] = self.usage.to_dict()
        if self.warnings is not None:
            result["warnings"] = [w.to_dict() for w in self.warnings]
        return result
