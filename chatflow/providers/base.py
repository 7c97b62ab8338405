"""
Base provider interface for AI models
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from ..exceptions import (
    ChatFlowError,
    ConfigurationError,
    ProviderRequestError,
    ToolResultLimitError,
    describe_exception,
    setup_logger,
)
from ..messages import (
    ChatMessage,
    Tool,
    ToolResult,
    AIResponse,
    coerce_history,
    coerce_tools,
    coerce_tool_results,
    require_message,
)
from ..prompts import SYSTEM_PROMPT

logger = setup_logger(__name__)


@dataclass(frozen=True)
class ProviderCapabilities:
    """Capabilities supported by a provider"""
    supports_function_calling: bool = True
    supports_system_instructions: bool = True
    native_tool_use_ids: bool = True
    max_tool_results_per_turn: Optional[int] = None  # None means unbounded


class AIProvider(ABC):
    """Base class for all AI model providers

    A provider owns one credential binding and a lazily built SDK client.
    It keeps no per-conversation state: everything a call needs arrives in
    its arguments, so one instance can serve concurrent conversations.
    """

    name: str = ""
    api_key_env_var: str = ""
    api_key_url: str = ""
    default_model: str = ""
    model_env_var: str = ""
    max_tool_results_per_turn: Optional[int] = None

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None,
                 max_tokens: int = 4096, timeout: float = 60.0,
                 system_instruction: str = SYSTEM_PROMPT, client: Any = None):
        """Initialize provider

        Args:
            api_key: API key for the provider
            model_name: Model name to use (defaults to the provider default)
            max_tokens: Completion token limit
            timeout: Request timeout in seconds
            system_instruction: System instruction sent with every request
            client: Pre-built SDK client (skips lazy construction)
        """
        self.api_key = api_key
        self.model_name = model_name or self.default_model
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.system_instruction = system_instruction
        self._client = client

    def validate_config(self) -> None:
        """Check that the credential is present

        Raises:
            ConfigurationError: If the API key is missing
        """
        if not self.api_key:
            raise ConfigurationError(
                f"{self.api_key_env_var} is required. Get your key at {self.api_key_url}",
                provider=self.name,
            )

    @property
    def client(self) -> Any:
        """Vendor SDK client, built on first use"""
        if self._client is None:
            self.validate_config()
            self._client = self._create_client()
        return self._client

    @abstractmethod
    def _create_client(self) -> Any:
        """Build the vendor SDK client"""

    async def send_message(self, message: str,
                           history: Optional[Sequence[ChatMessage]] = None,
                           tools: Optional[Sequence[Tool]] = None) -> AIResponse:
        """Send a user message after the given prior turns

        Args:
            message: The user's message
            history: Previous turns in conversation order
            tools: Tools the model may invoke (none offered when empty)

        Returns:
            Normalized AIResponse

        Raises:
            ValidationError: If the message is empty
            ProviderRequestError: If the backend call fails
        """
        message = require_message(message)
        turns = coerce_history(history)
        tool_list = coerce_tools(tools)

        logger.debug(
            f"{self.name}: sending message with {len(turns)} prior turns "
            f"and {len(tool_list)} tools"
        )
        return await self._call(
            "Failed to get response",
            self._send, message, turns, tool_list,
        )

    async def continue_with_tool_result(self, history: Sequence[ChatMessage],
                                        tool_results: Sequence[ToolResult],
                                        tools: Optional[Sequence[Tool]] = None) -> AIResponse:
        """Continue after the caller executed the requested tools

        Args:
            history: Full conversation including the assistant turn whose
                tool uses are being resolved
            tool_results: Results of the executed tool uses
            tools: Available tools

        Returns:
            The backend's follow-up response
        """
        turns = coerce_history(history)
        results = coerce_tool_results(tool_results)
        tool_list = coerce_tools(tools)

        if (self.max_tool_results_per_turn is not None
                and len(results) > self.max_tool_results_per_turn):
            raise ToolResultLimitError(self.name, self.max_tool_results_per_turn, len(results))

        logger.debug(f"{self.name}: continuing with {len(results)} tool results")
        return await self._call(
            "Failed to continue with tool result",
            self._continue, turns, results, tool_list,
        )

    async def _call(self, action: str, func, *args) -> AIResponse:
        """Run one backend exchange, mapping every vendor failure to ProviderRequestError"""
        try:
            return await func(*args)
        except ChatFlowError:
            raise
        except Exception as e:
            logger.error(f"{self.name} API error: {describe_exception(e)}")
            raise ProviderRequestError(
                self.name, f"{action}: {describe_exception(e)}"
            ) from e

    @abstractmethod
    async def _send(self, message: str, history: List[ChatMessage],
                    tools: List[Tool]) -> AIResponse:
        """Vendor-specific request for a new user message"""

    @abstractmethod
    async def _continue(self, history: List[ChatMessage], tool_results: List[ToolResult],
                        tools: List[Tool]) -> AIResponse:
        """Vendor-specific request carrying tool results"""

    def get_capabilities(self) -> ProviderCapabilities:
        """Get provider capabilities"""
        return ProviderCapabilities(
            max_tool_results_per_turn=self.max_tool_results_per_turn,
        )

    def get_provider_name(self) -> str:
        return self.name

    def describe(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "model": self.model_name,
            "configured": bool(self.api_key),
        }

    def __repr__(self):
        return f"{self.__class__.__name__}(model_name={self.model_name!r})"
