"""
Search Chat Language Model

Answers a prompt from a retrieval-augmented search index. The whole
conversation is flattened into one query; retrieved documents come back
as source parts ahead of the answer text.
"""

import logging
from typing import Any, AsyncIterator, Optional

from textgen_adapter.common.errors import ConversionError
from textgen_adapter.config import get_settings
from textgen_adapter.converters.messages import convert_to_backend_messages
from textgen_adapter.converters.normalize import map_usage
from textgen_adapter.converters.tools import process_tool_calls
from textgen_adapter.domain.backend import BackendMessage
from textgen_adapter.domain.types import (
    CallOptions,
    ContentPart,
    FinishReason,
    GenerateResult,
    SourcePart,
    StreamEvent,
    TextPart,
)
from textgen_adapter.models.base import LanguageModel
from textgen_adapter.providers.base import BackendClient
from textgen_adapter.providers.factory import get_backend_client
from textgen_adapter.streaming.mapper import map_stream

logger = logging.getLogger(__name__)


def build_query(messages: list[BackendMessage]) -> str:
    return "\n\n".join(f"{message.role}: {message.content}" for message in messages)


def _source_parts(output: dict[str, Any]) -> list[SourcePart]:
    documents = output.get("data")
    if not isinstance(documents, list):
        return []
    return [
        SourcePart(
            id=str(document.get("file_id", "")),
            url=str(document.get("filename", "")),
            provider_metadata={"attributes": {"score": document.get("score")}},
        )
        for document in documents
        if isinstance(document, dict)
    ]


class SearchChatLanguageModel(LanguageModel):
    provider = "workers-ai.search"

    def __init__(
        self,
        index: Optional[str] = None,
        client: Optional[BackendClient] = None,
    ):
        index = index or get_settings().DEFAULT_SEARCH_INDEX
        if not index:
            raise ConversionError(
                message="A search index name is required",
                code="missing_search_index",
            )
        super().__init__(index)
        self.index = index
        self.client = client or get_backend_client()

    def _query(self, options: CallOptions) -> str:
        # Validates the response format even though the search endpoint ignores it
        self.response_format_type(options)
        messages, _images = convert_to_backend_messages(options.prompt)
        return build_query(messages)

    async def generate(self, options: CallOptions) -> GenerateResult:
        warnings = self.collect_warnings(options)
        query = self._query(options)

        output = await self.client.search(self.index, {"query": query})

        response = output.get("response")
        content: list[ContentPart] = [
            *_source_parts(output),
            TextPart(text=response if isinstance(response, str) else ""),
            *process_tool_calls(output),
        ]
        return GenerateResult(
            content=content,
            finish_reason=FinishReason.STOP,
            usage=map_usage(output),
            warnings=warnings,
        )

    async def stream(self, options: CallOptions) -> AsyncIterator[StreamEvent]:
        warnings = self.collect_warnings(options)
        query = self._query(options)

        byte_stream = await self.client.search_stream(self.index, {"query": query, "stream": True})
        logger.debug("Streaming search answer from index %s", self.index)
        return map_stream(byte_stream, warnings=warnings)
