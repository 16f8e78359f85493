"""
Backend Response -> Canonical Content

Splits one complete backend output into content parts. Emission order is
fixed: reasoning (when present), exactly one text part, then tool calls.
"""

from typing import Any, Optional

from textgen_adapter.converters.tools import process_text, process_tool_calls
from textgen_adapter.domain.types import ContentPart, ReasoningPart, TextPart


def extract_reasoning(output: dict[str, Any]) -> Optional[str]:
    """Return choices[0].message.reasoning_content, if any."""
    choices = output.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return None
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return None
    reasoning = message.get("reasoning_content")
    return reasoning if isinstance(reasoning, str) and reasoning else None


def decompose_response(output: dict[str, Any]) -> list[ContentPart]:
    content: list[ContentPart] = []

    reasoning = extract_reasoning(output)
    if reasoning:
        content.append(ReasoningPart(text=reasoning))

    text = process_text(output)
    content.append(TextPart(text=text if isinstance(text, str) else ""))

    content.extend(process_tool_calls(output))
    return content
