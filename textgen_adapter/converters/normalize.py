"""
Usage and Finish-Reason Normalization

Map backend token counts and completion signals to canonical values.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from textgen_adapter.domain.types import FinishReason, Usage

_FINISH_REASON_MAP: dict[str, FinishReason] = {
    "stop": FinishReason.STOP,
    "completed": FinishReason.STOP,
    "end_turn": FinishReason.STOP,
    "eos": FinishReason.STOP,
    "length": FinishReason.LENGTH,
    "model_length": FinishReason.LENGTH,
    "max_tokens": FinishReason.LENGTH,
    "tool_calls": FinishReason.TOOL_CALLS,
    "tool_use": FinishReason.TOOL_CALLS,
    "function_call": FinishReason.TOOL_CALLS,
}


def _safe_int(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return 0


def map_usage(output: Any) -> Usage:
    """
    Normalize the backend usage record.

    A missing or malformed usage record counts as zero tokens.
    """
    usage = output.get("usage") if isinstance(output, dict) else None
    if not isinstance(usage, dict):
        usage = {}

    input_tokens = _safe_int(usage.get("prompt_tokens"))
    output_tokens = _safe_int(usage.get("completion_tokens"))
    return Usage(
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        total_tokens=input_tokens + output_tokens,
    )


def _extract_finish_reason(response: dict[str, Any]) -> Optional[str]:
    choices = response.get("choices")
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        reason = choices[0].get("finish_reason")
        if reason is not None:
            return reason
    return response.get("finish_reason")


def map_finish_reason(value: Union[str, dict[str, Any], None]) -> FinishReason:
    """
    Map a backend completion signal, or a whole response, to a canonical reason.

    Args:
        value: Raw finish reason string, a backend response dict, or None

    Returns:
        FinishReason: STOP when no signal was reported, UNKNOWN for unrecognized values
    """
    reason = _extract_finish_reason(value) if isinstance(value, dict) else value
    if reason is None:
        return FinishReason.STOP
    return _FINISH_REASON_MAP.get(str(reason).lower(), FinishReason.UNKNOWN)
