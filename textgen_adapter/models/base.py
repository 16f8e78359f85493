"""
Language Model Base Class

Shared argument handling for the chat and search models.
"""

from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional

from textgen_adapter.common.errors import UnsupportedResponseFormatError
from textgen_adapter.domain.types import (
    CallOptions,
    CallWarning,
    GenerateResult,
    StreamEvent,
)

# Accepted response format selectors; both spellings select JSON-schema output.
TEXT_FORMAT = "text"
JSON_FORMATS = ("json", "json-schema")


class LanguageModel(ABC):
    """
    Language Model Abstract Base Class

    generate() returns a complete result. stream() is awaited until the
    backend has accepted the call, so fatal errors surface before the
    first event, and then returns the event iterator.
    """

    provider: str = "workers-ai"

    def __init__(self, model_id: str):
        self.model_id = model_id

    @staticmethod
    def collect_warnings(options: CallOptions) -> list[CallWarning]:
        """Warnings for settings the backend does not support."""
        warnings = []
        if options.frequency_penalty is not None:
            warnings.append(CallWarning(type="unsupported-setting", setting="frequencyPenalty"))
        if options.presence_penalty is not None:
            warnings.append(CallWarning(type="unsupported-setting", setting="presencePenalty"))
        return warnings

    @staticmethod
    def response_format_type(options: CallOptions) -> str:
        """
        Normalize the response format selector.

        Returns:
            str: "text" or "json"

        Raises:
            UnsupportedResponseFormatError: Unknown selector
        """
        fmt_type: Optional[str] = (
            options.response_format.type if options.response_format else TEXT_FORMAT
        )
        if fmt_type is None or fmt_type == TEXT_FORMAT:
            return TEXT_FORMAT
        if fmt_type in JSON_FORMATS:
            return "json"
        raise UnsupportedResponseFormatError(fmt_type)

    @abstractmethod
    async def generate(self, options: CallOptions) -> GenerateResult:
        pass

    @abstractmethod
    async def stream(self, options: CallOptions) -> AsyncIterator[StreamEvent]:
        pass
