"""Error Hierarchy — typed, categorized exceptions for all round-engine failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - WARNING severity means "skip and log", never a failed tick
    - to_response() produces the REST envelope used by the FastAPI handlers
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with AuxError base: FastAPI global handler catches all
    - ErrorContext as dataclass: rich observability without coupling to logging framework
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    RESOURCE_NOT_FOUND = "resource_not_found"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    round_id: str | None = None
    group_id: str | None = None
    user_id: str | None = None
    notification_type: str | None = None
    debug_info: dict[str, Any] | None = None
    retry_after_ms: int | None = None


class AuxError(Exception):
    """Base exception for all round-engine errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    @property
    def recoverable(self) -> bool:
        return self.severity in (ErrorSeverity.INFO, ErrorSeverity.WARNING)

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
                "context": {
                    "round_id": self.context.round_id,
                    "group_id": self.context.group_id,
                    "notification_type": self.context.notification_type,
                    "retry_after_ms": self.context.retry_after_ms,
                },
            }
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ResourceNotFoundError(AuxError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


class MissingCredentialError(AuxError):
    """Group admin has no usable Spotify token — playlist creation is skipped."""
    def __init__(self, user_id: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.user_id = user_id
        super().__init__(
            f"User '{user_id}' has no usable Spotify access token",
            "MISSING_CREDENTIAL", ErrorCategory.BUSINESS_RULE,
            ErrorSeverity.WARNING, ctx, 400,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(AuxError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class SpotifyAPIError(AuxError):
    """Spotify Web API or accounts call failed."""
    def __init__(
        self,
        message: str,
        api_error_type: str,
        status_code: int | None = None,
        retry_after_ms: int | None = None,
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.retry_after_ms = retry_after_ms
        super().__init__(
            f"Spotify API error ({api_error_type}): {message}",
            "SPOTIFY_API_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, ctx, 503,
        )
        self.api_error_type = api_error_type
        self.status_code = status_code


class PushDeliveryError(AuxError):
    """Expo push request failed."""
    def __init__(
        self, message: str, status_code: int | None = None,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            f"Push delivery failed: {message}",
            "PUSH_DELIVERY_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, context, 503,
        )
        self.status_code = status_code


class SchedulerError(AuxError):
    """Round scheduler misconfigured."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "SCHEDULER_ERROR", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, context, 500,
        )
