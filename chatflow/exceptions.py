"""
Custom exceptions and logging utilities for chatflow
"""

import logging
import os
from typing import Any, Dict, List, Optional


class ChatFlowError(Exception):
    """Base exception for all chatflow errors"""

    kind = "chatflow_error"

    def __init__(self, message: str, details: Optional[str] = None,
                 provider: Optional[str] = None):
        self.message = message
        self.details = details
        self.provider = provider
        super().__init__(self.message)

    def __str__(self):
        if self.details:
            return f"{self.message}\nDetails: {self.details}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Structured form handed to the outer layer (e.g. an HTTP response body)"""
        return {
            "kind": self.kind,
            "provider": self.provider,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(ChatFlowError):
    """Raised when a required credential or setting is missing or invalid"""

    kind = "configuration_error"

    def __init__(self, message: str, provider: Optional[str] = None,
                 details: Optional[str] = None):
        super().__init__(message, details, provider=provider)


class UnsupportedProviderError(ChatFlowError):
    """Raised when a provider identifier is not one of the known backends"""

    kind = "unsupported_provider"

    def __init__(self, provider: str, supported: List[str]):
        self.supported = list(supported)
        super().__init__(
            f"Unknown AI provider: {provider}. "
            f"Supported providers: {', '.join(self.supported)}",
            provider=provider,
        )


class ProviderRequestError(ChatFlowError):
    """Raised when a backend call fails (network, auth, quota, malformed payload)"""

    kind = "provider_request_error"

    def __init__(self, provider: str, message: str, details: Optional[str] = None):
        super().__init__(f"{provider} request failed: {message}", details, provider=provider)
        self.cause = message


class ToolResultLimitError(ChatFlowError):
    """Raised when more tool results are supplied than a backend accepts per turn"""

    kind = "tool_result_limit"

    def __init__(self, provider: str, limit: int, received: int):
        self.limit = limit
        self.received = received
        super().__init__(
            f"{provider} accepts at most {limit} tool result(s) per turn, got {received}",
            provider=provider,
        )


class CorrelationError(ChatFlowError):
    """Raised when tool results do not match the tool uses of the preceding response"""

    kind = "correlation_error"

    def __init__(self, message: str, tool_use_ids: Optional[List[str]] = None,
                 provider: Optional[str] = None):
        self.tool_use_ids = list(tool_use_ids or [])
        details = None
        if self.tool_use_ids:
            details = f"Tool use ids: {', '.join(self.tool_use_ids)}"
        super().__init__(message, details, provider=provider)


class ValidationError(ChatFlowError):
    """Raised when input validation fails"""

    kind = "validation_error"


class ToolExecutionError(ChatFlowError):
    """Raised when a caller-supplied tool executor fails"""

    kind = "tool_execution_error"

    def __init__(self, tool_name: str, message: str, details: Optional[str] = None):
        self.tool_name = tool_name
        super().__init__(f"Tool '{tool_name}' failed: {message}", details)


def describe_exception(error: BaseException) -> str:
    """Render an exception as 'TypeName: message' without embedding the object"""
    text = str(error).strip()
    name = type(error).__name__
    return f"{name}: {text}" if text else name


def setup_logger(name: str = "chatflow", log_file: Optional[str] = None,
                 level: Optional[int] = None) -> logging.Logger:
    """
    Setup a logger with consistent formatting

    Args:
        name: Logger name
        log_file: Optional file path for logging
        level: Logging level (defaults to CHATFLOW_LOG_LEVEL, then WARNING)

    Returns:
        Configured logger instance
    """
    if level is None:
        level_name = os.getenv("CHATFLOW_LOG_LEVEL", "WARNING").upper()
        level = getattr(logging, level_name, logging.WARNING)

    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Clear existing handlers
    logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        try:
            file_handler = logging.FileHandler(log_file)
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Could not create log file {log_file}: {e}")

    return logger
