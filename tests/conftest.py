"""
Test Configuration Module
"""

import pytest

from textgen_adapter.config import Settings
from textgen_adapter.domain.types import TextPart, UserTurn


@pytest.fixture
def settings() -> Settings:
    """Backend settings pointing at the REST API of a test account"""
    return Settings(
        ACCOUNT_ID="acc-123",
        API_TOKEN="token-abc",
        BACKEND_BASE_URL="https://backend.test/client/v4",
        GATEWAY_BASE_URL="https://gateway.test/v1",
    )


@pytest.fixture
def user_prompt():
    """Single user turn asking a question"""
    return [UserTurn(content=[TextPart(text="What is the weather in Paris?")])]
