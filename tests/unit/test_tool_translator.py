"""
Tests for tool declaration translation
"""

import pytest

from chatflow.messages import Tool
from chatflow.providers.tool_translator import ProviderType, ToolTranslator


class TestToolTranslator:
    """Test per-vendor tool envelopes"""

    def test_no_tools_translates_to_none(self):
        """Test that an empty catalog produces no declaration at all"""
        for provider in ProviderType:
            assert ToolTranslator.translate([], provider) is None
            assert ToolTranslator.translate(None, provider) is None

    def test_anthropic_passes_schema_through(self, lookup_tool):
        """Test Anthropic envelope"""
        translated = ToolTranslator.translate([lookup_tool], "anthropic")

        assert translated == [{
            "name": "lookup",
            "description": "Look up a value by query",
            "input_schema": lookup_tool.input_schema,
        }]

    def test_openai_function_envelope(self, lookup_tool):
        """Test OpenAI envelope"""
        translated = ToolTranslator.translate([lookup_tool], ProviderType.OPENAI)

        assert translated == [{
            "type": "function",
            "function": {
                "name": "lookup",
                "description": "Look up a value by query",
                "parameters": lookup_tool.input_schema,
            },
        }]

    def test_translation_does_not_share_schema(self, lookup_tool):
        """Test that translated schemas are copies"""
        translated = ToolTranslator.to_openai([lookup_tool])
        translated[0]["function"]["parameters"]["properties"]["extra"] = {}

        assert "extra" not in lookup_tool.input_schema["properties"]

    def test_gemini_declarations(self, lookup_tool):
        """Test Gemini envelope with uppercase types"""
        translated = ToolTranslator.translate([lookup_tool], ProviderType.GEMINI)

        assert translated == [{
            "function_declarations": [{
                "name": "lookup",
                "description": "Look up a value by query",
                "parameters": {
                    "type": "OBJECT",
                    "properties": {"q": {"type": "STRING", "description": "Query"}},
                    "required": ["q"],
                },
            }]
        }]

    def test_gemini_drops_unsupported_keywords(self):
        """Test that JSON Schema keywords outside Gemini's subset are removed"""
        tool = Tool(
            name="search",
            description="Search",
            input_schema={
                "$schema": "http://json-schema.org/draft-07/schema#",
                "type": "object",
                "additionalProperties": False,
                "properties": {
                    "tags": {"type": "array", "items": {"type": "string", "default": "x"}},
                    "limit": {"type": ["integer", "null"]},
                },
            },
        )

        params = ToolTranslator.to_gemini([tool])[0]["function_declarations"][0]["parameters"]

        assert "$schema" not in params
        assert "additionalProperties" not in params
        assert params["properties"]["tags"] == {"type": "ARRAY", "items": {"type": "STRING"}}
        assert params["properties"]["limit"] == {"type": "INTEGER", "nullable": True}

    def test_gemini_omits_parameters_without_properties(self):
        """Test that argument-less tools carry no parameters"""
        tool = Tool(name="ping", description="Ping", input_schema={"type": "object"})

        declaration = ToolTranslator.to_gemini([tool])[0]["function_declarations"][0]

        assert declaration == {"name": "ping", "description": "Ping"}

    def test_unknown_provider(self, lookup_tool):
        """Test unsupported provider names"""
        with pytest.raises(ValueError, match="Unsupported provider"):
            ToolTranslator.translate([lookup_tool], "ollama")
