"""
API Dependency Injection Module

Provides the dependencies used by FastAPI routes.
"""

from typing import Annotated

from fastapi import Depends

from textgen_adapter.providers import BackendClient, get_backend_client


def get_client() -> BackendClient:
    """Get the shared backend client"""
    return get_backend_client()


BackendClientDep = Annotated[BackendClient, Depends(get_client)]
