"""
Chat Language Model

Drives a text-generation model on the backend with canonical prompts,
in blocking, streaming and simulated-streaming modes.
"""

import logging
from typing import Any, AsyncIterator, Optional, Sequence

from textgen_adapter.common.errors import MultipleImagesError
from textgen_adapter.config import get_settings
from textgen_adapter.converters.messages import convert_to_backend_messages
from textgen_adapter.converters.normalize import map_finish_reason, map_usage
from textgen_adapter.converters.response import decompose_response
from textgen_adapter.converters.tools import (
    last_message_was_user,
    prepare_tools_and_tool_choice,
)
from textgen_adapter.domain.backend import BackendMessage, ExtractedImage
from textgen_adapter.domain.types import (
    CallOptions,
    CallWarning,
    GenerateResult,
    StreamEvent,
)
from textgen_adapter.models.base import LanguageModel
from textgen_adapter.providers.base import BackendClient
from textgen_adapter.providers.factory import get_backend_client
from textgen_adapter.streaming.mapper import map_stream
from textgen_adapter.streaming.simulate import simulate_stream

logger = logging.getLogger(__name__)


class ChatLanguageModel(LanguageModel):
    """
    Chat model backed by the inference REST API.

    Tool-enabled turns that follow a user message are served by one
    blocking call replayed as a simulated stream; everything else streams
    directly from the backend.
    """

    provider = "workers-ai.chat"

    def __init__(
        self,
        model_id: Optional[str] = None,
        client: Optional[BackendClient] = None,
    ):
        super().__init__(model_id or get_settings().DEFAULT_MODEL)
        self.client = client or get_backend_client()

    def get_args(self, options: CallOptions) -> tuple[dict[str, Any], list[CallWarning]]:
        """
        Prepare backend arguments from call options.

        Returns:
            tuple: (arguments, warnings)

        Raises:
            UnsupportedResponseFormatError: Unknown response format selector
            UnsupportedToolChoiceError: Unknown tool choice type
        """
        warnings = self.collect_warnings(options)
        base_args = {
            "model": self.model_id,
            "max_tokens": options.max_output_tokens,
            "temperature": options.temperature,
            "top_p": options.top_p,
            "random_seed": options.seed,
        }

        if self.response_format_type(options) == "json":
            schema = options.response_format.schema if options.response_format else None
            return {
                **base_args,
                "response_format": {"type": "json_schema", "json_schema": schema},
                "tools": None,
            }, warnings

        return {
            **base_args,
            **prepare_tools_and_tool_choice(options.tools, options.tool_choice),
        }, warnings

    @staticmethod
    def build_request(
        args: dict[str, Any],
        messages: Sequence[BackendMessage],
        images: Sequence[ExtractedImage],
        stream: bool = False,
    ) -> dict[str, Any]:
        """
        Assemble the backend request body.

        Raises:
            MultipleImagesError: More than one image was extracted
        """
        if len(images) > 1:
            raise MultipleImagesError(len(images))

        body: dict[str, Any] = {
            "model": args["model"],
            "messages": [message.to_dict() for message in messages],
            "max_tokens": args.get("max_tokens"),
            "temperature": args.get("temperature"),
            "top_p": args.get("top_p"),
            "random_seed": args.get("random_seed"),
            "tools": args.get("tools") or None,
            "response_format": args.get("response_format"),
        }
        if images:
            # The backend takes image bytes as a list of integers
            body["image"] = list(images[0].data)
        if stream:
            body["stream"] = True
        return {key: value for key, value in body.items() if value is not None}

    async def generate(self, options: CallOptions) -> GenerateResult:
        args, warnings = self.get_args(options)
        messages, images = convert_to_backend_messages(options.prompt)
        body = self.build_request(args, messages, images)

        output = await self.client.run(self.model_id, body)

        return GenerateResult(
            content=decompose_response(output),
            finish_reason=map_finish_reason(output),
            usage=map_usage(output),
            warnings=warnings,
        )

    async def stream(self, options: CallOptions) -> AsyncIterator[StreamEvent]:
        args, warnings = self.get_args(options)
        messages, images = convert_to_backend_messages(options.prompt)

        if args.get("tools") and last_message_was_user(messages):
            logger.debug("Serving tool-enabled turn for %s as a simulated stream", self.model_id)
            result = await self.generate(options)
            return simulate_stream(result, warnings)

        body = self.build_request(args, messages, images, stream=True)
        byte_stream = await self.client.run_stream(self.model_id, body)
        return map_stream(byte_stream, warnings=warnings)
