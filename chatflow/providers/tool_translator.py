"""
Tool declaration translator for different AI providers

Converts the neutral Tool (name, description, JSON-Schema input_schema) into
each backend's declaration envelope:
- Anthropic (Claude)
- OpenAI
- Gemini (Google)
"""

import copy
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from ..exceptions import setup_logger
from ..messages import Tool

logger = setup_logger(__name__)


class ProviderType(Enum):
    """Supported provider types"""
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GEMINI = "gemini"


# Keywords of Gemini's OpenAPI schema subset; anything else is rejected by the API
GEMINI_SCHEMA_KEYS = {"type", "format", "description", "nullable", "enum",
                      "items", "properties", "required"}


class ToolTranslator:
    """Translates neutral tool declarations to provider-specific formats"""

    @staticmethod
    def to_anthropic(tools: Sequence[Tool]) -> List[Dict[str, Any]]:
        """
        Convert to Anthropic Claude format

        Anthropic schema:
        {
            "name": "tool_name",
            "description": "...",
            "input_schema": {...}
        }
        """
        return [
            {
                "name": tool.name,
                "description": tool.description,
                "input_schema": copy.deepcopy(tool.input_schema),
            }
            for tool in tools
        ]

    @staticmethod
    def to_openai(tools: Sequence[Tool]) -> List[Dict[str, Any]]:
        """
        Convert to OpenAI function calling format

        OpenAI schema:
        {
            "type": "function",
            "function": {
                "name": "tool_name",
                "description": "...",
                "parameters": {...}
            }
        }
        """
        return [
            {
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": copy.deepcopy(tool.input_schema),
                },
            }
            for tool in tools
        ]

    @staticmethod
    def to_gemini(tools: Sequence[Tool]) -> List[Dict[str, Any]]:
        """
        Convert to Gemini function declarations

        Gemini takes one tool entry holding every declaration:
        [{
            "function_declarations": [{
                "name": "tool_name",
                "description": "...",
                "parameters": {"type": "OBJECT", "properties": {...}, ...}
            }]
        }]

        Parameters are left out for tools without properties, since Gemini
        rejects an OBJECT schema with no properties.
        """
        declarations = []
        for tool in tools:
            declaration: Dict[str, Any] = {
                "name": tool.name,
                "description": tool.description,
            }
            if tool.input_schema.get("properties"):
                declaration["parameters"] = ToolTranslator._to_gemini_schema(tool.input_schema)
            declarations.append(declaration)

        return [{"function_declarations": declarations}]

    @staticmethod
    def _to_gemini_schema(schema: Dict[str, Any]) -> Dict[str, Any]:
        """
        Rewrite a JSON Schema into Gemini's dialect

        Gemini uses uppercase types (STRING, INTEGER, OBJECT) and accepts only
        a subset of keywords. A ``["string", "null"]`` type becomes a nullable
        STRING.
        """
        result: Dict[str, Any] = {}

        for key, value in schema.items():
            if key not in GEMINI_SCHEMA_KEYS:
                continue
            if key == "type":
                type_name, nullable = ToolTranslator._single_type(value)
                if type_name:
                    result["type"] = type_name.upper()
                if nullable:
                    result["nullable"] = True
            elif key == "properties" and isinstance(value, dict):
                result[key] = {
                    name: ToolTranslator._to_gemini_schema(prop)
                    for name, prop in value.items()
                    if isinstance(prop, dict)
                }
            elif key == "items" and isinstance(value, dict):
                result[key] = ToolTranslator._to_gemini_schema(value)
            elif isinstance(value, list):
                result[key] = list(value)
            else:
                result[key] = value

        return result

    @staticmethod
    def _single_type(value: Union[str, List[str], None]):
        if isinstance(value, list):
            types = [t for t in value if t != "null"]
            return (types[0] if types else None), ("null" in value)
        return value, False

    @classmethod
    def translate(cls, tools: Optional[Sequence[Tool]],
                  provider: Union[ProviderType, str]) -> Optional[List[Dict[str, Any]]]:
        """
        Main translation method - dispatches to appropriate converter

        Args:
            tools: Neutral tool declarations
            provider: Target provider type

        Returns:
            Tools in provider-specific format, or None when there are no tools

        Raises:
            ValueError: If provider is unsupported
        """
        if isinstance(provider, str):
            try:
                provider = ProviderType(provider.lower())
            except ValueError:
                raise ValueError(f"Unsupported provider: {provider}")

        if not tools:
            return None

        translators = {
            ProviderType.ANTHROPIC: cls.to_anthropic,
            ProviderType.OPENAI: cls.to_openai,
            ProviderType.GEMINI: cls.to_gemini,
        }

        logger.debug(f"Translating {len(tools)} tools to {provider.value} format")
        return translators[provider](tools)
