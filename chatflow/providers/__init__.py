"""
AI Model Provider Abstractions

One request/response contract over three backends:
- Anthropic (Claude)
- OpenAI (GPT-4, GPT-3.5)
- Gemini (Google)
"""

from .base import AIProvider, ProviderCapabilities
from .id_generator import ToolUseIdGenerator, TimestampIdGenerator, SequentialIdGenerator
from .tool_translator import ToolTranslator, ProviderType
from .anthropic_provider import AnthropicProvider
from .openai_provider import OpenAIProvider
from .gemini_provider import GeminiProvider
from .provider_factory import ProviderFactory

__all__ = [
    # Base classes
    "AIProvider",
    "ProviderCapabilities",

    # Utilities
    "ToolTranslator",
    "ProviderType",
    "ProviderFactory",
    "ToolUseIdGenerator",
    "TimestampIdGenerator",
    "SequentialIdGenerator",

    # Providers
    "AnthropicProvider",
    "OpenAIProvider",
    "GeminiProvider",
]
