"""
FeedRewrite Exceptions
======================

Error hierarchy shared by the plugins. Every error carries a code, a
context dict and a short user-facing message, and serializes with
``to_dict()`` so it can be passed straight to a logger as ``extra``.

Hooks never let these escape: ``Extension.before_insert`` logs them
and hands the entry back to the host unchanged.
"""

from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ErrorCode(str, Enum):
    """Error codes, grouped by prefix."""

    # Configuration (C)
    CONFIG_INVALID = "C001"

    # Rewrite rules (R)
    RULE_INVALID_PATTERN = "R001"
    RULE_REPLACE_FAILED = "R002"
    RULE_EMPTY_PATTERN = "R003"

    # Remote fetches (F)
    FETCH_TIMEOUT = "F002"
    FETCH_NETWORK_ERROR = "F003"
    FETCH_TOO_LARGE = "F005"
    FETCH_INVALID_RESPONSE = "F006"

    # AI conversion (A)
    AI_API_ERROR = "A001"
    AI_INVALID_RESPONSE = "A002"
    AI_TIMEOUT = "A003"
    AI_AUTHENTICATION = "A004"
    AI_RATE_LIMIT = "A005"
    AI_INVALID_CREDENTIALS = "A006"
    AI_CONNECTION_ERROR = "A007"

    # Validation (V)
    VALIDATION_REQUIRED_FIELD = "V001"
    VALIDATION_INVALID_FORMAT = "V002"

    # System (S)
    SYSTEM_PERMISSION_DENIED = "S001"
    SYSTEM_MEMORY_ERROR = "S002"
    SYSTEM_UNEXPECTED = "S999"


class FeedRewriteError(Exception):
    """Base exception for all feedrewrite errors.

    Subclasses set ``default_code`` and ``default_recoverable`` and list in
    ``context_fields`` the keyword arguments that belong in ``context``.
    """

    default_code: Optional[ErrorCode] = None
    default_recoverable = False
    context_fields: Tuple[str, ...] = ()

    def __init__(
        self,
        message: str,
        error_code: Optional[ErrorCode] = None,
        context: Optional[Dict[str, Any]] = None,
        user_message: Optional[str] = None,
        recoverable: Optional[bool] = None,
        **fields: Any,
    ):
        """
        Args:
            message: Technical message for logs
            error_code: Overrides the class default code
            context: Extra details about what failed
            user_message: Short message suitable for a settings page
            recoverable: Overrides the class default
            **fields: Values for the names in ``context_fields``
        """
        unknown = set(fields) - set(self.context_fields)
        if unknown:
            raise TypeError(f"{type(self).__name__} got unexpected fields: {sorted(unknown)}")

        super().__init__(message)
        self.error_code = error_code or self.default_code
        self.context = dict(context or {})
        self.context.update({k: v for k, v in fields.items() if v is not None})
        self.user_message = user_message or self.describe(message)
        self.recoverable = self.default_recoverable if recoverable is None else recoverable

    def describe(self, message: str) -> str:
        return message

    def to_dict(self) -> Dict[str, Any]:
        """Flatten for logging and serialization."""
        return {
            "error_type": type(self).__name__,
            "error_code": self.error_code.value if self.error_code else None,
            "error_message": str(self),
            "user_message": self.user_message,
            "context": self.context,
            "recoverable": self.recoverable,
        }

    def __str__(self) -> str:
        text = super().__str__()
        return f"[{self.error_code.value}] {text}" if self.error_code else text


class ConfigurationError(FeedRewriteError):
    """Settings could not be loaded."""

    default_code = ErrorCode.CONFIG_INVALID
    context_fields = ("config_key",)

    def describe(self, message: str) -> str:
        return f"Configuration error: {message}"


class ValidationError(FeedRewriteError):
    """A form value or URL failed validation."""

    default_code = ErrorCode.VALIDATION_INVALID_FORMAT
    context_fields = ("field_name",)

    def describe(self, message: str) -> str:
        return f"Invalid {self.context.get('field_name', 'input')}: {message}"


class RuleError(FeedRewriteError):
    """A rewrite rule could not be compiled or applied."""

    default_code = ErrorCode.RULE_INVALID_PATTERN
    default_recoverable = True
    context_fields = ("pattern", "rule_index")

    def describe(self, message: str) -> str:
        return f"Rule skipped: {message}"


class InvalidPatternError(RuleError):
    """Pattern failed to compile."""


class ReplaceFailureError(RuleError):
    """Replace operation failed at runtime."""

    default_code = ErrorCode.RULE_REPLACE_FAILED


class FetchError(FeedRewriteError):
    """An image or API document could not be fetched."""

    default_code = ErrorCode.FETCH_NETWORK_ERROR
    default_recoverable = True
    context_fields = ("url",)

    def describe(self, message: str) -> str:
        return f"Fetch failed: {message}"


class AIError(FeedRewriteError):
    """The chat completion endpoint failed or answered badly."""

    default_code = ErrorCode.AI_API_ERROR
    default_recoverable = True
    context_fields = ("endpoint",)

    def describe(self, message: str) -> str:
        return "AI processing temporarily unavailable"


# (exception types, wrapper class, code, user message, recoverable)
_BUILTIN_MAPPINGS = (
    (TimeoutError, FetchError, ErrorCode.FETCH_TIMEOUT, "Network request timed out", True),
    (ConnectionError, FetchError, ErrorCode.FETCH_NETWORK_ERROR, "Network connection failed", True),
    (PermissionError, FeedRewriteError, ErrorCode.SYSTEM_PERMISSION_DENIED, "Access denied", False),
    (MemoryError, FeedRewriteError, ErrorCode.SYSTEM_MEMORY_ERROR, "System resources exhausted", True),
)


def handle_exception(
    exception: Exception,
    logger,
    operation: str,
    context: Optional[Dict[str, Any]] = None,
) -> FeedRewriteError:
    """Log an exception raised by ``operation`` and return it as a FeedRewriteError.

    Errors that already belong to the hierarchy are logged as they are.
    Anything else is wrapped, with the operation name and the original
    exception type added to the context.
    """
    if isinstance(exception, FeedRewriteError):
        logger.error(f"Operation '{operation}' failed", extra=exception.to_dict())
        return exception

    context = {
        **(context or {}),
        "operation": operation,
        "original_exception_type": type(exception).__name__,
    }

    for exc_type, error_cls, code, user_message, recoverable in _BUILTIN_MAPPINGS:
        if isinstance(exception, exc_type):
            error = error_cls(
                f"{type(exception).__name__} during {operation}: {exception}",
                error_code=code,
                context=context,
                user_message=user_message,
                recoverable=recoverable,
            )
            break
    else:
        error = FeedRewriteError(
            f"Unexpected error during {operation}: {exception}",
            error_code=ErrorCode.SYSTEM_UNEXPECTED,
            context=context,
            user_message="An unexpected error occurred",
            recoverable=True,
        )

    logger.error(f"Operation '{operation}' failed", extra=error.to_dict())
    return error

