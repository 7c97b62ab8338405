"""
Tests for the conversation orchestrator
"""

import pytest

from chatflow.exceptions import (
    CorrelationError,
    ProviderRequestError,
    ToolExecutionError,
    ToolResultLimitError,
    ValidationError,
)
from chatflow.messages import ChatMessage, ToolResult
from chatflow.orchestrator import ConversationOrchestrator, ConversationState
from chatflow.providers import AnthropicProvider, GeminiProvider, OpenAIProvider
from chatflow.providers.id_generator import SequentialIdGenerator

from stubs import (
    anthropic_response,
    anthropic_text,
    anthropic_tool_use,
    gemini_call,
    gemini_response,
    gemini_text,
    openai_response,
    openai_tool_call,
)


@pytest.fixture
def anthropic_orchestrator(anthropic_client, lookup_tool):
    """Orchestrator over a stubbed Anthropic client."""
    def make(*responses):
        client = anthropic_client(*responses)
        provider = AnthropicProvider(api_key="sk-ant-test", client=client)
        return ConversationOrchestrator(provider, tools=[lookup_tool]), client
    return make


class TestSend:
    """Test the first phase of an exchange"""

    @pytest.mark.asyncio
    async def test_plain_reply_is_done(self, anthropic_orchestrator):
        """Test that a reply without tool uses finishes the turn"""
        orchestrator, _ = anthropic_orchestrator(anthropic_response(anthropic_text("Hi there")))

        turn = await orchestrator.send("Hello")

        assert turn.state is ConversationState.DONE
        assert turn.final_response.content == "Hi there"
        assert turn.pending_tool_uses == []
        assert [m.role for m in turn.history] == ["user", "assistant"]

    @pytest.mark.asyncio
    async def test_tool_uses_leave_turn_pending(self, anthropic_orchestrator):
        """Test that requested tools are exposed, not executed"""
        orchestrator, _ = anthropic_orchestrator(anthropic_response(
            anthropic_tool_use("toolu_1", "lookup", {"q": "x"}), stop_reason="tool_use",
        ))

        turn = await orchestrator.send("What is x?")

        assert turn.state is ConversationState.TOOLS_PENDING
        assert [t.id for t in turn.pending_tool_uses] == ["toolu_1"]
        assert turn.history[-1].tool_uses == turn.response.tool_uses

    @pytest.mark.asyncio
    async def test_caller_history_untouched(self, anthropic_orchestrator):
        """Test that the turn owns a copy of the history"""
        orchestrator, client = anthropic_orchestrator(anthropic_response(anthropic_text("ok")))
        history = [
            ChatMessage(role="user", content="First"),
            ChatMessage(role="assistant", content="Reply"),
        ]

        turn = await orchestrator.send("Second", history)

        assert len(history) == 2
        assert len(turn.history) == 4
        assert len(client.messages.create.call_args.kwargs["messages"]) == 3

    @pytest.mark.asyncio
    async def test_provider_failure_marks_turn_failed(self, anthropic_orchestrator):
        """Test that backend errors propagate"""
        orchestrator, _ = anthropic_orchestrator(RuntimeError("down"))

        with pytest.raises(ProviderRequestError):
            await orchestrator.send("Hello")

    @pytest.mark.asyncio
    async def test_empty_message(self, anthropic_orchestrator):
        orchestrator, client = anthropic_orchestrator()

        with pytest.raises(ValidationError):
            await orchestrator.send("   ")

        client.messages.create.assert_not_called()


class TestResolveTools:
    """Test the second phase of an exchange"""

    @pytest.mark.asyncio
    async def test_round_trip(self, anthropic_orchestrator):
        """Test tool results producing the final answer"""
        orchestrator, _ = anthropic_orchestrator(
            anthropic_response(anthropic_tool_use("toolu_1", "lookup", {"q": "x"}),
                               stop_reason="tool_use"),
            anthropic_response(anthropic_text("The answer is 42")),
        )

        turn = await orchestrator.send("What is x?")
        followup = await orchestrator.resolve_tools(turn, [ToolResult("toolu_1", "42")])

        assert followup.content == "The answer is 42"
        assert turn.state is ConversationState.DONE
        assert turn.final_response is followup
        assert [m.role for m in turn.history] == ["user", "assistant", "assistant"]

    @pytest.mark.asyncio
    async def test_not_pending(self, anthropic_orchestrator):
        """Test resolving a finished turn"""
        orchestrator, _ = anthropic_orchestrator(anthropic_response(anthropic_text("Hi")))
        turn = await orchestrator.send("Hello")

        with pytest.raises(ValidationError):
            await orchestrator.resolve_tools(turn, [])

    @pytest.mark.asyncio
    @pytest.mark.parametrize("results", [
        [ToolResult("toolu_9", "x")],
        [ToolResult("toolu_1", "a")],
        [ToolResult("toolu_1", "a"), ToolResult("toolu_1", "b"), ToolResult("toolu_2", "c")],
    ])
    async def test_correlation_checked(self, anthropic_orchestrator, results):
        """Test unknown, missing and duplicate results"""
        orchestrator, client = anthropic_orchestrator(anthropic_response(
            anthropic_tool_use("toolu_1", "lookup", {"q": "a"}),
            anthropic_tool_use("toolu_2", "lookup", {"q": "b"}),
            stop_reason="tool_use",
        ))
        turn = await orchestrator.send("Go")

        with pytest.raises(CorrelationError):
            await orchestrator.resolve_tools(turn, results)

        assert turn.state is ConversationState.TOOLS_PENDING
        assert client.messages.create.call_count == 1

    @pytest.mark.asyncio
    async def test_followup_tool_uses_not_executed(self, anthropic_orchestrator):
        """Test that a follow-up requesting tools ends the exchange"""
        orchestrator, client = anthropic_orchestrator(
            anthropic_response(anthropic_tool_use("toolu_1", "lookup", {"q": "a"})),
            anthropic_response(anthropic_tool_use("toolu_2", "lookup", {"q": "b"})),
        )
        turn = await orchestrator.send("Go")

        await orchestrator.resolve_tools(turn, [ToolResult("toolu_1", "1")])

        assert turn.state is ConversationState.DONE
        assert [t.id for t in turn.followup_tool_uses] == ["toolu_2"]
        assert client.messages.create.call_count == 2

    @pytest.mark.asyncio
    async def test_gemini_multiple_results_fail_fast(self, gemini_model_factory, lookup_tool):
        """Test the per-turn limit surfaces through the orchestrator"""
        factory = gemini_model_factory(gemini_response(
            gemini_call("lookup", {"q": "a"}),
            gemini_call("lookup", {"q": "b"}),
        ))
        provider = GeminiProvider(api_key="gm-test", client=factory,
                                  id_generator=SequentialIdGenerator())
        orchestrator = ConversationOrchestrator(provider, tools=[lookup_tool])

        turn = await orchestrator.send("Go")
        results = [ToolResult(t.id, "x") for t in turn.pending_tool_uses]

        with pytest.raises(ToolResultLimitError):
            await orchestrator.resolve_tools(turn, results)

        assert turn.state is ConversationState.FAILED
        assert factory.model.generate_content.call_count == 1


class TestRun:
    """Test single-round execution with an executor"""

    @pytest.mark.asyncio
    async def test_run_executes_once(self, openai_client, lookup_tool):
        """Test the full lookup scenario"""
        client = openai_client(
            openai_response(None, tool_calls=[openai_tool_call("call_1", "lookup", {"q": "x"})]),
            openai_response("The answer is 42"),
        )
        orchestrator = ConversationOrchestrator(
            OpenAIProvider(api_key="sk-test", client=client), tools=[lookup_tool]
        )
        calls = []

        async def executor(tool_use):
            calls.append(tool_use.input)
            return 42

        turn = await orchestrator.run("What is x?", executor=executor)

        assert calls == [{"q": "x"}]
        assert turn.tool_results == [ToolResult("call_1", "42")]
        assert turn.final_response.content == "The answer is 42"

    @pytest.mark.asyncio
    async def test_run_without_executor(self, gemini_model_factory, lookup_tool):
        """Test that pending tools are returned to the caller"""
        factory = gemini_model_factory(gemini_response(gemini_call("lookup", {"q": "x"})))
        orchestrator = ConversationOrchestrator(
            GeminiProvider(api_key="gm-test", client=factory, id_generator=SequentialIdGenerator()),
            tools=[lookup_tool],
        )

        turn = await orchestrator.run("What is x?")

        assert turn.state is ConversationState.TOOLS_PENDING
        assert turn.pending_tool_uses[0].id == "tool_1"

    @pytest.mark.asyncio
    async def test_over_limit_executes_nothing(self, gemini_model_factory, lookup_tool):
        """Test that no tool runs when the provider cannot take every result"""
        factory = gemini_model_factory(gemini_response(
            gemini_call("lookup", {"q": "a"}),
            gemini_call("lookup", {"q": "b"}),
        ))
        orchestrator = ConversationOrchestrator(
            GeminiProvider(api_key="gm-test", client=factory, id_generator=SequentialIdGenerator()),
            tools=[lookup_tool],
        )
        executed = []

        async def executor(tool_use):
            executed.append(tool_use.input["q"])
            return "done"

        with pytest.raises(ToolResultLimitError) as exc_info:
            await orchestrator.run("go", executor=executor)

        assert executed == []
        assert exc_info.value.received == 2
        assert factory.model.generate_content.call_count == 1

    @pytest.mark.asyncio
    async def test_single_gemini_tool_executes(self, gemini_model_factory, lookup_tool):
        """Test that a call within the limit still runs"""
        factory = gemini_model_factory(
            gemini_response(gemini_call("lookup", {"q": "x"})),
            gemini_response(gemini_text("The answer is 42")),
        )
        orchestrator = ConversationOrchestrator(
            GeminiProvider(api_key="gm-test", client=factory, id_generator=SequentialIdGenerator()),
            tools=[lookup_tool],
        )

        async def executor(tool_use):
            return "42"

        turn = await orchestrator.run("What is x?", executor=executor)

        assert turn.state is ConversationState.DONE
        assert turn.final_response.content == "The answer is 42"

    @pytest.mark.asyncio
    async def test_executor_failure(self, anthropic_orchestrator):
        """Test that executor exceptions are wrapped"""
        orchestrator, _ = anthropic_orchestrator(
            anthropic_response(anthropic_tool_use("toolu_1", "lookup", {"q": "x"})),
        )

        async def executor(tool_use):
            raise KeyError("x")

        with pytest.raises(ToolExecutionError, match="lookup"):
            await orchestrator.run("What is x?", executor=executor)

    @pytest.mark.asyncio
    async def test_plain_reply(self, gemini_model_factory):
        factory = gemini_model_factory(gemini_response(gemini_text("Hi there")))
        orchestrator = ConversationOrchestrator(GeminiProvider(api_key="gm-test", client=factory))

        turn = await orchestrator.run("Hello")

        assert turn.state is ConversationState.DONE
        assert turn.final_response.tool_uses is None
        assert factory.call_args.kwargs["tools"] is None
