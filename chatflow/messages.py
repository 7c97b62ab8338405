"""
Vendor-neutral message model

These are the shapes every provider consumes and produces. They carry no
behaviour beyond validation and dict conversion for the outer HTTP layer.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Union

from .exceptions import ValidationError

USER = "user"
ASSISTANT = "assistant"
SYSTEM = "system"

ROLES = (USER, ASSISTANT, SYSTEM)


@dataclass(frozen=True)
class Tool:
    """A capability the model may ask the caller to invoke"""
    name: str
    description: str
    input_schema: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.name:
            raise ValidationError("Tool name must be a non-empty string")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Tool':
        return cls(
            name=data.get("name", ""),
            description=data.get("description", ""),
            input_schema=data.get("input_schema") or {},
        )


@dataclass(frozen=True)
class ToolUse:
    """A model-requested invocation of a named tool"""
    id: str
    name: str
    input: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "input": self.input}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ToolUse':
        if not data.get("id") or not data.get("name"):
            raise ValidationError("Tool use requires both an id and a name")
        return cls(
            id=data["id"],
            name=data["name"],
            input=data.get("input") or {},
        )


@dataclass(frozen=True)
class ToolResult:
    """Caller-produced output of an executed tool use"""
    tool_use_id: str
    content: str

    def to_dict(self) -> Dict[str, Any]:
        return {"tool_use_id": self.tool_use_id, "content": self.content}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ToolResult':
        if not data.get("tool_use_id"):
            raise ValidationError("Tool result requires a tool_use_id")
        return cls(tool_use_id=data["tool_use_id"], content=data.get("content", ""))


@dataclass(frozen=True)
class ChatMessage:
    """One conversation turn

    ``tool_uses`` is only set on assistant turns that requested tool
    invocations, so that a continuation history carries the turn being
    resolved.
    """
    role: str
    content: str
    tool_uses: Optional[List[ToolUse]] = None

    def __post_init__(self):
        if self.role not in ROLES:
            raise ValidationError(
                f"Invalid message role: {self.role!r}",
                f"Expected one of: {', '.join(ROLES)}"
            )
        if self.tool_uses and self.role != ASSISTANT:
            raise ValidationError("Only assistant messages may carry tool uses")
        if self.content is None:
            object.__setattr__(self, "content", "")

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_uses:
            data["tool_uses"] = [tool_use.to_dict() for tool_use in self.tool_uses]
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ChatMessage':
        tool_uses = data.get("tool_uses")
        return cls(
            role=data.get("role", ""),
            content=data.get("content") or "",
            tool_uses=[ToolUse.from_dict(item) for item in tool_uses] if tool_uses else None,
        )


@dataclass(frozen=True)
class AIResponse:
    """Normalized backend response"""
    content: str
    tool_uses: Optional[List[ToolUse]] = None
    stop_reason: Optional[str] = None

    def __post_init__(self):
        # An empty list and "no tool uses" are the same thing
        if self.tool_uses is not None and len(self.tool_uses) == 0:
            object.__setattr__(self, "tool_uses", None)

    @property
    def has_tool_uses(self) -> bool:
        return bool(self.tool_uses)

    def to_message(self) -> ChatMessage:
        """Assistant turn to append to history after this response"""
        return ChatMessage(
            role=ASSISTANT,
            content=self.content,
            tool_uses=list(self.tool_uses) if self.tool_uses else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"content": self.content}
        if self.tool_uses:
            data["tool_uses"] = [tool_use.to_dict() for tool_use in self.tool_uses]
        if self.stop_reason is not None:
            data["stop_reason"] = self.stop_reason
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AIResponse':
        tool_uses = data.get("tool_uses")
        return cls(
            content=data.get("content") or "",
            tool_uses=[ToolUse.from_dict(item) for item in tool_uses] if tool_uses else None,
            stop_reason=data.get("stop_reason"),
        )


def coerce_history(items: Optional[Iterable[Union[ChatMessage, Dict[str, Any]]]]) -> List[ChatMessage]:
    """Return a new list of ChatMessage built from messages or plain dicts"""
    if not items:
        return []
    return [item if isinstance(item, ChatMessage) else ChatMessage.from_dict(item)
            for item in items]


def coerce_tools(items: Optional[Iterable[Union[Tool, Dict[str, Any]]]]) -> List[Tool]:
    """Return a new list of Tool built from tools or plain dicts"""
    if not items:
        return []
    return [item if isinstance(item, Tool) else Tool.from_dict(item) for item in items]


def coerce_tool_results(items: Optional[Iterable[Union[ToolResult, Dict[str, Any]]]]) -> List[ToolResult]:
    """Return a new list of ToolResult built from results or plain dicts"""
    if not items:
        return []
    return [item if isinstance(item, ToolResult) else ToolResult.from_dict(item)
            for item in items]


def require_message(message: Any) -> str:
    """Validate an inbound user message"""
    if not isinstance(message, str) or not message.strip():
        raise ValidationError("Message must be a non-empty string")
    return message
