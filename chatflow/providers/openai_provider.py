"""
OpenAI Provider Implementation

Supports GPT-4, GPT-4-Turbo and other chat-completions models. The system
instruction is the first transcript message, tool invocations come back as
``tool_calls`` with native ids and JSON-encoded arguments, and each tool
result is sent back as its own ``tool`` message.
"""

import json
from typing import List, Dict, Any

try:
    from openai import AsyncOpenAI
    OPENAI_AVAILABLE = True
except ImportError:
    OPENAI_AVAILABLE = False
    AsyncOpenAI = None

from .base import AIProvider
from .tool_translator import ToolTranslator, ProviderType
from ..exceptions import ConfigurationError, ProviderRequestError, setup_logger
from ..messages import ASSISTANT, AIResponse, ChatMessage, Tool, ToolResult, ToolUse

logger = setup_logger(__name__)


class OpenAIProvider(AIProvider):
    """OpenAI API provider implementation"""

    name = "openai"
    api_key_env_var = "OPENAI_API_KEY"
    api_key_url = "https://platform.openai.com/"
    default_model = "gpt-4-turbo-preview"
    model_env_var = "OPENAI_MODEL"

    def _create_client(self) -> Any:
        if not OPENAI_AVAILABLE:
            raise ConfigurationError(
                "OpenAI provider requires 'openai' package. "
                "Install with: pip install openai",
                provider=self.name,
            )
        return AsyncOpenAI(api_key=self.api_key, max_retries=0, timeout=self.timeout)

    async def _send(self, message: str, history: List[ChatMessage],
                    tools: List[Tool]) -> AIResponse:
        messages = self._build_messages(history)
        messages.append({"role": "user", "content": message})
        return await self._create(messages, tools)

    async def _continue(self, history: List[ChatMessage], tool_results: List[ToolResult],
                        tools: List[Tool]) -> AIResponse:
        messages = self._build_messages(history)
        messages.extend(
            {
                "role": "tool",
                "tool_call_id": result.tool_use_id,
                "content": result.content,
            }
            for result in tool_results
        )
        return await self._create(messages, tools)

    async def _create(self, messages: List[Dict[str, Any]], tools: List[Tool]) -> AIResponse:
        request_params: Dict[str, Any] = {
            "model": self.model_name,
            "messages": messages,
            "max_tokens": self.max_tokens,
        }

        translated = ToolTranslator.translate(tools, ProviderType.OPENAI)
        if translated:
            request_params["tools"] = translated

        response = await self.client.chat.completions.create(**request_params)
        return self._parse_response(response)

    def _build_messages(self, history: List[ChatMessage]) -> List[Dict[str, Any]]:
        """Map neutral history onto chat-completions messages"""
        messages: List[Dict[str, Any]] = []

        if self.system_instruction:
            messages.append({"role": "system", "content": self.system_instruction})

        for msg in history:
            if msg.role == ASSISTANT and msg.tool_uses:
                messages.append({
                    "role": "assistant",
                    "content": msg.content or None,
                    "tool_calls": [
                        {
                            "id": tool_use.id,
                            "type": "function",
                            "function": {
                                "name": tool_use.name,
                                "arguments": json.dumps(tool_use.input),
                            },
                        }
                        for tool_use in msg.tool_uses
                    ],
                })
            else:
                messages.append({"role": msg.role, "content": msg.content})

        return messages

    def _parse_response(self, response: Any) -> AIResponse:
        """
        Parse OpenAI response into normalized AIResponse

        Raises:
            ProviderRequestError: If the response has no choices or a tool
                call carries arguments that are not a JSON object
        """
        if not response.choices:
            raise ProviderRequestError(self.name, "Response contained no choices")

        choice = response.choices[0]
        message = choice.message

        tool_uses = []
        for tool_call in message.tool_calls or []:
            function = getattr(tool_call, "function", None)
            if function is None:
                # Non-function tool calls have no neutral counterpart
                logger.warning(f"Ignoring non-function tool call {tool_call.id}")
                continue
            tool_uses.append(ToolUse(
                id=tool_call.id,
                name=function.name,
                input=self._parse_arguments(function.name, function.arguments),
            ))

        return AIResponse(
            content=message.content or "",
            tool_uses=tool_uses or None,
            stop_reason=choice.finish_reason,
        )

    def _parse_arguments(self, tool_name: str, arguments: str) -> Dict[str, Any]:
        if not arguments:
            return {}
        try:
            parsed = json.loads(arguments)
        except json.JSONDecodeError as e:
            raise ProviderRequestError(
                self.name,
                f"Malformed arguments for tool '{tool_name}'",
                details=str(e),
            )
        if not isinstance(parsed, dict):
            raise ProviderRequestError(
                self.name,
                f"Arguments for tool '{tool_name}' are not a JSON object",
            )
        return parsed
