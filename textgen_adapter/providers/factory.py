"""
Backend Client Factory Module
"""

from typing import Optional

from textgen_adapter.providers.base import BackendClient
from textgen_adapter.providers.workers_ai_client import WorkersAIClient

# Client cache
_client: Optional[BackendClient] = None


def get_backend_client() -> BackendClient:
    """
    Get the shared backend client

    Uses caching to avoid repeated client instantiation.

    Returns:
        BackendClient: Client instance
    """
    global _client
    if _client is None:
        _client = WorkersAIClient()
    return _client
