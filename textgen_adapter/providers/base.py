"""
Backend Client Base Class

Defines the abstract interface the language models use to reach the
inference backend.
"""

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator


class BackendClient(ABC):
    """
    Backend Client Abstract Base Class

    Blocking calls return the unwrapped JSON result. Streaming calls are
    awaited until the backend has accepted the request, then return an
    async iterator over the raw SSE bytes; closing that iterator releases
    the connection.
    """

    @abstractmethod
    async def run(self, model: str, body: dict[str, Any]) -> dict[str, Any]:
        """
        Run a text-generation model and wait for the full result.

        Args:
            model: Model name
            body: Backend request body

        Returns:
            dict: Backend output

        Raises:
            UpstreamError: The backend call failed
        """

    @abstractmethod
    async def run_stream(self, model: str, body: dict[str, Any]) -> AsyncIterator[bytes]:
        """
        Run a text-generation model in streaming mode.

        Raises:
            UpstreamError: The backend rejected the request
        """

    @abstractmethod
    async def search(self, index: str, body: dict[str, Any]) -> dict[str, Any]:
        """Query a retrieval-augmented search index and wait for the answer."""

    @abstractmethod
    async def search_stream(self, index: str, body: dict[str, Any]) -> AsyncIterator[bytes]:
        """Query a retrieval-augmented search index in streaming mode."""
