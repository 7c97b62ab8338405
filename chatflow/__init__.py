"""
chatflow: one chat and tool-calling contract over several LLM backends

Features:
- Anthropic, OpenAI and Gemini providers behind a single interface
- Tool declarations, invocations and results normalized across vendors
- Factory that selects a provider and validates its credential together
- Two-phase orchestrator for tool round trips
"""

__version__ = "0.1.0"

from .exceptions import (
    ChatFlowError,
    ConfigurationError,
    UnsupportedProviderError,
    ProviderRequestError,
    CorrelationError,
    ToolResultLimitError,
    ValidationError,
    ToolExecutionError,
)
from .messages import ChatMessage, Tool, ToolUse, ToolResult, AIResponse
from .prompts import SYSTEM_PROMPT
from .config import ChatFlowConfig, ConfigManager
from .providers import AIProvider, ProviderFactory
from .orchestrator import ConversationOrchestrator, ConversationState, ConversationTurn

__all__ = [
    "ChatFlowError",
    "ConfigurationError",
    "UnsupportedProviderError",
    "ProviderRequestError",
    "CorrelationError",
    "ToolResultLimitError",
    "ValidationError",
    "ToolExecutionError",
    "ChatMessage",
    "Tool",
    "ToolUse",
    "ToolResult",
    "AIResponse",
    "SYSTEM_PROMPT",
    "ChatFlowConfig",
    "ConfigManager",
    "AIProvider",
    "ProviderFactory",
    "ConversationOrchestrator",
    "ConversationState",
    "ConversationTurn",
    "__version__",
]
