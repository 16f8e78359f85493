"""
API Module
"""

from textgen_adapter.api.routes import router

__all__ = ["router"]
