"""
Pytest configuration and fixtures.

Stub SDK clients record the request each provider builds and return canned
vendor-shaped responses, so no test touches the network.
"""

import pytest
import sys
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

# Ensure the package and the stub helpers are importable
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from chatflow.config import ChatFlowConfig
from chatflow.messages import Tool


@pytest.fixture
def lookup_tool():
    """A single tool declaration."""
    return Tool(
        name="lookup",
        description="Look up a value by query",
        input_schema={
            "type": "object",
            "properties": {"q": {"type": "string", "description": "Query"}},
            "required": ["q"],
        },
    )


@pytest.fixture
def mock_api_key(monkeypatch):
    """Set mock API keys for testing."""
    monkeypatch.setenv("GEMINI_API_KEY", "test-api-key-12345")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test-12345")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-ant-test-12345")


@pytest.fixture
def keyed_config():
    """Config with a key for every provider, independent of the environment."""
    return ChatFlowConfig.from_env({
        "ANTHROPIC_API_KEY": "sk-ant-test",
        "OPENAI_API_KEY": "sk-test",
        "GEMINI_API_KEY": "gm-test",
    })


@pytest.fixture
def anthropic_client():
    """Factory for a stub AsyncAnthropic returning the given responses in order."""
    def make(*responses):
        client = MagicMock()
        client.messages.create = AsyncMock(side_effect=list(responses))
        return client
    return make


@pytest.fixture
def openai_client():
    """Factory for a stub AsyncOpenAI returning the given responses in order."""
    def make(*responses):
        client = MagicMock()
        client.chat.completions.create = AsyncMock(side_effect=list(responses))
        return client
    return make


@pytest.fixture
def gemini_model_factory():
    """Factory for a stub GenerativeModel constructor.

    The returned factory exposes ``.model`` whose ``generate_content`` yields
    the given responses in order.
    """
    def make(*responses):
        model = MagicMock()
        model.generate_content = MagicMock(side_effect=list(responses))
        factory = MagicMock(return_value=model)
        factory.model = model
        return factory
    return make
