"""
Backend client module initialization
"""

from textgen_adapter.providers.base import BackendClient
from textgen_adapter.providers.factory import get_backend_client
from textgen_adapter.providers.workers_ai_client import (
    ResponseByteStream,
    WorkersAIClient,
    unwrap_result,
)

__all__ = [
    "BackendClient",
    "ResponseByteStream",
    "WorkersAIClient",
    "get_backend_client",
    "unwrap_result",
]
