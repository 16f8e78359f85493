"""
Backend Wire Types

Flat message records sent to the inference backend, the image side-channel
extracted during conversion, and the fragment accumulator used while a
streamed tool call is still arriving.
"""

from dataclasses import dataclass
from typing import Any, Optional


def tool_call_id_for(name: str, index: int) -> str:
    """
    Synthesize the id of a tool call from its position.

    Assistant tool calls and the matching tool results both compute their
    ids with this formula, so they correlate without backend-assigned ids.
    """
    return f"functions.{name}:{index}"


@dataclass
class BackendToolCall:
    id: str
    name: str
    arguments: str  # JSON string
    type: str = "function"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "function": {"name": self.name, "arguments": self.arguments},
        }


@dataclass
class BackendMessage:
    """Backend chat message. content is always a single string."""
    role: str
    content: str
    name: Optional[str] = None
    tool_call_id: Optional[str] = None
    tool_calls: Optional[list[BackendToolCall]] = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.name is not None:
            result["name"] = self.name
        if self.tool_call_id is not None:
            result["tool_call_id"] = self.tool_call_id
        if self.tool_calls:
            result["tool_calls"] = [tc.to_dict() for tc in self.tool_calls]
        return result


@dataclass
class ExtractedImage:
    """Image bytes lifted out of a user turn; travels beside the messages."""
    data: bytes
    media_type: Optional[str] = None
    provider_options: Optional[dict[str, Any]] = None


@dataclass
class PartialToolCall:
    """Merged state of every stream fragment sharing one index."""
    index: int
    id: str = ""
    type: str = ""
    name: str = ""
    arguments: str = ""
