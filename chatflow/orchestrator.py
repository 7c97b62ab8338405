"""
Conversation orchestrator

Drives the two-phase exchange with a provider:

    send(message) -> response
        -> (tool uses) caller executes them -> resolve_tools(results)
        -> follow-up response

There is no automatic looping. If the follow-up asks for more tools, running
another round is the caller's decision.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Sequence

from .exceptions import (
    ChatFlowError,
    CorrelationError,
    ToolExecutionError,
    ToolResultLimitError,
    ValidationError,
    describe_exception,
    setup_logger,
)
from .messages import (
    USER,
    AIResponse,
    ChatMessage,
    Tool,
    ToolResult,
    ToolUse,
    coerce_history,
    coerce_tool_results,
    coerce_tools,
    require_message,
)
from .providers.base import AIProvider

logger = setup_logger(__name__)

ToolExecutor = Callable[[ToolUse], Awaitable[str]]


class ConversationState(Enum):
    """Where a single exchange currently stands"""
    START = "start"
    AWAITING_MODEL = "awaiting_model"
    TOOLS_PENDING = "tools_pending"
    AWAITING_FOLLOWUP = "awaiting_followup"
    DONE = "done"
    FAILED = "failed"


@dataclass
class ConversationTurn:
    """One user message and everything the provider answered to it

    ``history`` is owned by the turn: it starts as a copy of the caller's
    history and grows with the user message, the assistant turn and, once
    tools are resolved, the follow-up turn.
    """
    message: str
    history: List[ChatMessage] = field(default_factory=list)
    state: ConversationState = ConversationState.START
    response: Optional[AIResponse] = None
    tool_results: List[ToolResult] = field(default_factory=list)
    followup: Optional[AIResponse] = None

    @property
    def pending_tool_uses(self) -> List[ToolUse]:
        if self.state is not ConversationState.TOOLS_PENDING or self.response is None:
            return []
        return list(self.response.tool_uses or [])

    @property
    def final_response(self) -> Optional[AIResponse]:
        return self.followup or self.response

    @property
    def followup_tool_uses(self) -> List[ToolUse]:
        """Tool uses requested by the follow-up; never executed automatically"""
        if self.followup is None:
            return []
        return list(self.followup.tool_uses or [])


class ConversationOrchestrator:
    """Runs exchanges against one provider

    Holds no per-conversation state, so one orchestrator can drive many
    independent conversations concurrently.
    """

    def __init__(self, provider: AIProvider, tools: Optional[Sequence[Tool]] = None):
        self.provider = provider
        self.tools = coerce_tools(tools)

    async def send(self, message: str,
                   history: Optional[Sequence[ChatMessage]] = None) -> ConversationTurn:
        """
        Send a user message

        Args:
            message: The user's message
            history: Prior turns (never modified)

        Returns:
            ConversationTurn in TOOLS_PENDING or DONE state
        """
        message = require_message(message)
        turn = ConversationTurn(message=message, history=coerce_history(history))

        turn.state = ConversationState.AWAITING_MODEL
        try:
            response = await self.provider.send_message(message, list(turn.history), self.tools)
        except ChatFlowError:
            turn.state = ConversationState.FAILED
            raise

        turn.response = response
        turn.history.append(ChatMessage(role=USER, content=message))
        turn.history.append(response.to_message())

        if response.has_tool_uses:
            turn.state = ConversationState.TOOLS_PENDING
            logger.info(
                f"{self.provider.name} requested tools: "
                f"{', '.join(tool_use.name for tool_use in response.tool_uses)}"
            )
        else:
            turn.state = ConversationState.DONE

        return turn

    async def resolve_tools(self, turn: ConversationTurn,
                            tool_results: Sequence[ToolResult]) -> AIResponse:
        """
        Feed executed tool results back and get the follow-up response

        Args:
            turn: A turn in TOOLS_PENDING state
            tool_results: One result per pending tool use

        Returns:
            The follow-up AIResponse (also stored on the turn)

        Raises:
            ValidationError: If the turn is not waiting for tool results
            CorrelationError: If the results do not answer exactly the
                pending tool uses
        """
        if turn.state is not ConversationState.TOOLS_PENDING:
            raise ValidationError(
                f"Turn is not waiting for tool results (state: {turn.state.value})"
            )

        results = coerce_tool_results(tool_results)
        self._check_correlation(turn.pending_tool_uses, results)

        turn.tool_results = results
        turn.state = ConversationState.AWAITING_FOLLOWUP
        try:
            followup = await self.provider.continue_with_tool_result(
                list(turn.history), results, self.tools
            )
        except ChatFlowError:
            turn.state = ConversationState.FAILED
            raise

        turn.followup = followup
        turn.history.append(followup.to_message())
        turn.state = ConversationState.DONE

        if followup.has_tool_uses:
            logger.info(
                f"{self.provider.name} follow-up requested more tools; "
                "leaving them to the caller"
            )
        return followup

    async def run(self, message: str,
                  history: Optional[Sequence[ChatMessage]] = None,
                  executor: Optional[ToolExecutor] = None) -> ConversationTurn:
        """
        Send a message and, if tools are requested, execute them once

        Args:
            message: The user's message
            history: Prior turns
            executor: Async callable running one tool use and returning its
                output as text. Without one, the turn is returned in
                TOOLS_PENDING state.

        Raises:
            ToolExecutionError: If the executor fails
            ToolResultLimitError: If the provider cannot accept a result for
                every requested tool use; no tool is executed
        """
        turn = await self.send(message, history)

        if turn.state is ConversationState.TOOLS_PENDING and executor is not None:
            self._check_result_limit(turn.pending_tool_uses)
            results = []
            for tool_use in turn.pending_tool_uses:
                results.append(await self._execute(executor, tool_use))
            await self.resolve_tools(turn, results)

        return turn

    def _check_result_limit(self, pending: List[ToolUse]) -> None:
        limit = self.provider.get_capabilities().max_tool_results_per_turn
        if limit is not None and len(pending) > limit:
            logger.warning(
                f"{self.provider.name} requested {len(pending)} tools but accepts "
                f"{limit} result(s) per turn; not executing any"
            )
            raise ToolResultLimitError(self.provider.name, limit, len(pending))

    @staticmethod
    async def _execute(executor: ToolExecutor, tool_use: ToolUse) -> ToolResult:
        try:
            output = await executor(tool_use)
        except ChatFlowError:
            raise
        except Exception as e:
            raise ToolExecutionError(tool_use.name, describe_exception(e)) from e
        return ToolResult(tool_use_id=tool_use.id, content=str(output))

    @staticmethod
    def _check_correlation(pending: List[ToolUse], results: List[ToolResult]) -> None:
        pending_ids = [tool_use.id for tool_use in pending]
        result_ids = [result.tool_use_id for result in results]

        unknown = [rid for rid in result_ids if rid not in pending_ids]
        if unknown:
            raise CorrelationError(
                "Tool results reference tool uses not in the preceding response",
                tool_use_ids=unknown,
            )

        duplicates = sorted({rid for rid in result_ids if result_ids.count(rid) > 1})
        if duplicates:
            raise CorrelationError("Duplicate tool results", tool_use_ids=duplicates)

        missing = [pid for pid in pending_ids if pid not in result_ids]
        if missing:
            raise CorrelationError("Tool uses left without a result", tool_use_ids=missing)
