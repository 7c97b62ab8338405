"""
Gemini AI Provider Implementation

Gemini names the assistant role ``model``, takes the system instruction and
tool declarations on the model object, and returns function calls without
ids. Ids are synthesized through a ToolUseIdGenerator, and a tool result is
matched back to its function name through the tool uses recorded in history.
Only one function response is accepted per continuation.
"""

import asyncio
from collections.abc import Mapping
from typing import Any, Callable, Dict, List, Optional

import google.generativeai as genai

from .base import AIProvider, ProviderCapabilities
from .id_generator import TimestampIdGenerator, ToolUseIdGenerator
from .tool_translator import ToolTranslator, ProviderType
from ..exceptions import CorrelationError, ProviderRequestError, setup_logger
from ..messages import ASSISTANT, SYSTEM, AIResponse, ChatMessage, Tool, ToolResult, ToolUse
from ..prompts import build_system_instruction

logger = setup_logger(__name__)


class GeminiProvider(AIProvider):
    """Gemini AI provider implementation

    The google-generativeai SDK keeps its credential in module state set by
    ``genai.configure``. Building a second GeminiProvider client with a
    different key replaces the key used by every GeminiProvider in the
    process, so run one Gemini credential per process.
    """

    name = "gemini"
    api_key_env_var = "GEMINI_API_KEY"
    api_key_url = "https://makersuite.google.com/app/apikey"
    default_model = "gemini-1.5-pro"
    model_env_var = "GEMINI_MODEL"
    max_tool_results_per_turn = 1

    def __init__(self, *args, id_generator: Optional[ToolUseIdGenerator] = None, **kwargs):
        """Initialize Gemini provider

        Args:
            id_generator: Strategy for synthesizing tool-use ids
                (defaults to TimestampIdGenerator)
            *args, **kwargs: See AIProvider. ``client`` here is a factory
                with the signature of ``genai.GenerativeModel``.
        """
        super().__init__(*args, **kwargs)
        self.id_generator = id_generator or TimestampIdGenerator()

    def _create_client(self) -> Callable[..., Any]:
        genai.configure(api_key=self.api_key)
        return genai.GenerativeModel

    async def _send(self, message: str, history: List[ChatMessage],
                    tools: List[Tool]) -> AIResponse:
        system, contents = self._build_contents(history)
        contents.append({"role": "user", "parts": [{"text": message}]})
        return await self._generate(system, contents, tools)

    async def _continue(self, history: List[ChatMessage], tool_results: List[ToolResult],
                        tools: List[Tool]) -> AIResponse:
        system, contents = self._build_contents(history)
        names = self._tool_names_by_id(history)

        parts = []
        for result in tool_results:
            name = names.get(result.tool_use_id)
            if name is None:
                raise CorrelationError(
                    "Tool result does not match any tool use in history",
                    tool_use_ids=[result.tool_use_id],
                    provider=self.name,
                )
            parts.append({
                "function_response": {
                    "name": name,
                    "response": {"content": result.content},
                }
            })

        contents.append({"role": "user", "parts": parts})
        return await self._generate(system, contents, tools)

    async def _generate(self, system: str, contents: List[Dict[str, Any]],
                        tools: List[Tool]) -> AIResponse:
        model = self.client(
            model_name=self.model_name,
            system_instruction=system or None,
            tools=ToolTranslator.translate(tools, ProviderType.GEMINI),
            generation_config={"max_output_tokens": self.max_tokens},
        )

        # The SDK call is synchronous
        response = await asyncio.to_thread(
            model.generate_content,
            contents,
            request_options={"timeout": self.timeout},
        )
        return self._parse_response(response)

    def _build_contents(self, history: List[ChatMessage]):
        """
        Map neutral history onto Gemini contents

        Returns:
            (system instruction, contents)
        """
        extra_system = []
        contents: List[Dict[str, Any]] = []

        for msg in history:
            if msg.role == SYSTEM:
                extra_system.append(msg.content)
                continue

            if msg.role == ASSISTANT:
                if not msg.content and not msg.tool_uses:
                    # Gemini rejects empty text parts
                    logger.debug("Skipping empty model turn")
                    continue
                parts: List[Dict[str, Any]] = []
                if msg.content:
                    parts.append({"text": msg.content})
                for tool_use in msg.tool_uses or []:
                    parts.append({
                        "function_call": {"name": tool_use.name, "args": dict(tool_use.input)}
                    })
                contents.append({"role": "model", "parts": parts})
            else:
                contents.append({"role": "user", "parts": [{"text": msg.content}]})

        return build_system_instruction(self.system_instruction, extra_system), contents

    @staticmethod
    def _tool_names_by_id(history: List[ChatMessage]) -> Dict[str, str]:
        names: Dict[str, str] = {}
        for msg in history:
            for tool_use in msg.tool_uses or []:
                names[tool_use.id] = tool_use.name
        return names

    def _parse_response(self, response: Any) -> AIResponse:
        """
        Parse Gemini response into normalized AIResponse

        Raises:
            ProviderRequestError: If the response has no candidates
                (e.g. the prompt was blocked)
        """
        candidates = getattr(response, "candidates", None)
        if not candidates:
            feedback = getattr(response, "prompt_feedback", None)
            raise ProviderRequestError(
                self.name,
                "Response contained no candidates",
                details=str(feedback) if feedback else None,
            )

        candidate = candidates[0]
        texts = []
        calls = []

        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            function_call = getattr(part, "function_call", None)
            if function_call and getattr(function_call, "name", ""):
                calls.append(function_call)
                continue
            text = getattr(part, "text", "")
            if text:
                texts.append(text)

        ids = self.id_generator.generate(len(calls)) if calls else []
        tool_uses = [
            ToolUse(id=tool_use_id, name=call.name, input=_to_plain(call.args) or {})
            for tool_use_id, call in zip(ids, calls)
        ]

        return AIResponse(
            content="\n".join(texts),
            tool_uses=tool_uses or None,
            stop_reason=_finish_reason(getattr(candidate, "finish_reason", None)),
        )

    def get_capabilities(self) -> ProviderCapabilities:
        return ProviderCapabilities(
            native_tool_use_ids=False,
            max_tool_results_per_turn=self.max_tool_results_per_turn,
        )


def _finish_reason(value: Any) -> Optional[str]:
    if value is None:
        return None
    # Enum members carry the readable name (e.g. STOP, MAX_TOKENS)
    name = getattr(value, "name", None)
    return name if isinstance(name, str) else str(value)


def _to_plain(value: Any) -> Any:
    """Convert protobuf map/repeated composites into dicts and lists"""
    if value is None:
        return None
    if isinstance(value, Mapping) or hasattr(value, "items"):
        return {key: _to_plain(item) for key, item in value.items()}
    if isinstance(value, (str, bytes)):
        return value
    if isinstance(value, (list, tuple)) or hasattr(value, "__iter__"):
        return [_to_plain(item) for item in value]
    return value
