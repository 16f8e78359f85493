"""
Language Models Module
"""

from textgen_adapter.models.base import LanguageModel
from textgen_adapter.models.chat import ChatLanguageModel
from textgen_adapter.models.search import SearchChatLanguageModel

__all__ = [
    "ChatLanguageModel",
    "LanguageModel",
    "SearchChatLanguageModel",
]
