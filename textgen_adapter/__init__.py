"""
Text Generation Adapter

Drives a chunk-oriented text-generation backend through a provider-agnostic
chat/tool-calling protocol. Supports blocking, streaming and simulated
streaming calls.
"""

from textgen_adapter.converters import (
    convert_to_backend_messages,
    decompose_response,
    map_finish_reason,
    map_usage,
)
from textgen_adapter.models import ChatLanguageModel, SearchChatLanguageModel
from textgen_adapter.streaming import ChunkAggregator, map_stream, simulate_stream

__version__ = "0.1.0"
__all__ = [
    "ChatLanguageModel",
    "ChunkAggregator",
    "SearchChatLanguageModel",
    "convert_to_backend_messages",
    "decompose_response",
    "map_finish_reason",
    "map_stream",
    "map_usage",
    "simulate_stream",
]
