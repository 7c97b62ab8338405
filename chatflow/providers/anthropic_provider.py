"""
Anthropic (Claude) Provider Implementation

The system instruction travels in the dedicated ``system`` field, tool
invocations come back as ``tool_use`` content blocks with native ids, and
tool results go back as ``tool_result`` blocks inside a user turn.
"""

from typing import List, Dict, Any, Optional, Tuple

try:
    from anthropic import AsyncAnthropic
    ANTHROPIC_AVAILABLE = True
except ImportError:
    ANTHROPIC_AVAILABLE = False
    AsyncAnthropic = None

from .base import AIProvider
from .tool_translator import ToolTranslator, ProviderType
from ..exceptions import ConfigurationError, setup_logger
from ..messages import ASSISTANT, SYSTEM, AIResponse, ChatMessage, Tool, ToolResult, ToolUse
from ..prompts import build_system_instruction

logger = setup_logger(__name__)


class AnthropicProvider(AIProvider):
    """Anthropic API provider implementation"""

    name = "anthropic"
    api_key_env_var = "ANTHROPIC_API_KEY"
    api_key_url = "https://console.anthropic.com/"
    default_model = "claude-3-5-sonnet-20241022"
    model_env_var = "ANTHROPIC_MODEL"

    def _create_client(self) -> Any:
        if not ANTHROPIC_AVAILABLE:
            raise ConfigurationError(
                "Anthropic provider requires 'anthropic' package. "
                "Install with: pip install anthropic",
                provider=self.name,
            )
        # Retry policy belongs to the caller
        return AsyncAnthropic(api_key=self.api_key, max_retries=0, timeout=self.timeout)

    async def _send(self, message: str, history: List[ChatMessage],
                    tools: List[Tool]) -> AIResponse:
        system, messages = self._build_messages(history)
        messages.append({"role": "user", "content": message})
        return await self._create(system, messages, tools)

    async def _continue(self, history: List[ChatMessage], tool_results: List[ToolResult],
                        tools: List[Tool]) -> AIResponse:
        system, messages = self._build_messages(history)

        # All results go back together as one user turn
        messages.append({
            "role": "user",
            "content": [
                {
                    "type": "tool_result",
                    "tool_use_id": result.tool_use_id,
                    "content": result.content,
                }
                for result in tool_results
            ],
        })
        return await self._create(system, messages, tools)

    async def _create(self, system: str, messages: List[Dict[str, Any]],
                      tools: List[Tool]) -> AIResponse:
        request_params: Dict[str, Any] = {
            "model": self.model_name,
            "max_tokens": self.max_tokens,  # Anthropic requires max_tokens
            "messages": messages,
        }

        if system:
            request_params["system"] = system

        translated = ToolTranslator.translate(tools, ProviderType.ANTHROPIC)
        if translated:
            request_params["tools"] = translated

        response = await self.client.messages.create(**request_params)
        return self._parse_response(response)

    def _build_messages(self, history: List[ChatMessage]) -> Tuple[str, List[Dict[str, Any]]]:
        """
        Map neutral history onto Anthropic messages

        System turns have no transcript role here, so they are folded into
        the system instruction.

        Returns:
            (system instruction, messages)
        """
        extra_system = []
        messages: List[Dict[str, Any]] = []

        for msg in history:
            if msg.role == SYSTEM:
                extra_system.append(msg.content)
            elif msg.role == ASSISTANT and msg.tool_uses:
                blocks: List[Dict[str, Any]] = []
                if msg.content:
                    blocks.append({"type": "text", "text": msg.content})
                blocks.extend(
                    {
                        "type": "tool_use",
                        "id": tool_use.id,
                        "name": tool_use.name,
                        "input": dict(tool_use.input),
                    }
                    for tool_use in msg.tool_uses
                )
                messages.append({"role": "assistant", "content": blocks})
            elif msg.role == ASSISTANT and not msg.content:
                # Anthropic rejects empty assistant content
                logger.debug("Skipping empty assistant turn")
            else:
                messages.append({"role": msg.role, "content": msg.content})

        return build_system_instruction(self.system_instruction, extra_system), messages

    def _parse_response(self, response: Any) -> AIResponse:
        """
        Parse Anthropic response into normalized AIResponse

        Text blocks are newline-joined in order; tool_use blocks keep their ids.
        """
        texts = []
        tool_uses: List[ToolUse] = []

        for block in response.content:
            block_type = getattr(block, "type", None)
            if block_type == "text":
                texts.append(block.text)
            elif block_type == "tool_use":
                tool_uses.append(ToolUse(
                    id=block.id,
                    name=block.name,
                    input=dict(block.input or {}),
                ))

        stop_reason: Optional[str] = getattr(response, "stop_reason", None)

        return AIResponse(
            content="\n".join(texts),
            tool_uses=tool_uses or None,
            stop_reason=str(stop_reason) if stop_reason else None,
        )
