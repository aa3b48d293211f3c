"""
Exception Hierarchy

Defines all exceptions used in Toolgate.
Exceptions carry structured context, not just messages.

Design decisions:
- All exceptions inherit from ToolgateError for easy catching
- Error codes enable programmatic handling
- Status codes map errors onto the HTTP surface
- Pre-admission rejections are raised; post-admission failures are
  returned inside an ExecutionOutcome
"""

from typing import Any


class ToolgateError(Exception):
    """
    Base exception for all Toolgate errors.

    Provides structured error information including:
    - Human-readable message
    - Machine-readable error code
    - Additional context for debugging
    """

    error_code: str = "TOOLGATE_ERROR"
    status_code: int = 500

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.error_code
        self.context = context or {}
        self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        """Serialize exception for API responses."""
        return {
            "error": self.code,
            "message": self.message,
            "context": self.context,
        }


# ============================================================
# Configuration Errors
# ============================================================

class ConfigurationError(ToolgateError):
    """Error in configuration or settings."""

    error_code = "CONFIGURATION_ERROR"


# ============================================================
# Tool Errors
# ============================================================

class ToolError(ToolgateError):
    """Base error for tool-related issues."""

    error_code = "TOOL_ERROR"

    def __init__(
        self,
        message: str,
        *,
        tool_name: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.tool_name = tool_name


class ToolNotFoundError(ToolError):
    """Requested tool is not registered."""

    error_code = "TOOL_NOT_FOUND"
    status_code = 404


class ToolValidationError(ToolError):
    """Tool arguments failed schema validation."""

    error_code = "TOOL_VALIDATION_ERROR"
    status_code = 422

    def __init__(
        self,
        message: str,
        *,
        errors: list[str] | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.errors = errors or []
        self.context.setdefault("errors", self.errors)


class ToolPermissionError(ToolError):
    """Caller failed the role or MFA gate."""

    error_code = "TOOL_PERMISSION_DENIED"
    status_code = 403


class RateLimitError(ToolError):
    """Caller exhausted the tool's sliding window quota."""

    error_code = "RATE_LIMIT_EXCEEDED"
    status_code = 429

    def __init__(
        self,
        message: str,
        *,
        retry_after_ms: float,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.retry_after_ms = retry_after_ms
        self.context.setdefault("retry_after_ms", retry_after_ms)


class ToolExecutionError(ToolError):
    """Error raised by, or wrapped around, a tool effect."""

    error_code = "TOOL_EXECUTION_ERROR"


class ToolTimeoutError(ToolExecutionError):
    """Tool effect did not settle within its timeout."""

    error_code = "TOOL_TIMEOUT"
    status_code = 504

    def __init__(
        self,
        message: str,
        *,
        timeout_ms: int,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.timeout_ms = timeout_ms


class ToolCancelledError(ToolExecutionError):
    """Caller went away after the effect was admitted."""

    error_code = "TOOL_CANCELLED"
