"""Error Hierarchy: typed, categorized exceptions for every game show failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Validation / not-found errors are 4xx; upstream and internal errors are 5xx
    - to_response() produces the REST envelope; to_sse_event() the realtime feed envelope
    - User-facing messages never include upstream or driver details

Design Decisions:
    - Single hierarchy with GameShowError base, caught by one FastAPI handler
    - ErrorContext dataclass carries observability fields without touching logging
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
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    EXTERNAL_API = "external_api"
    DATABASE = "database"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    session_id: str | None = None
    step: str | None = None
    upstream: str | None = None
    debug_info: dict[str, Any] | None = None


class GameShowError(Exception):
    """Base exception for all game show errors."""

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
                    "session_id": self.context.session_id,
                    "step": self.context.step,
                },
            }
        }

    def to_sse_event(self) -> dict:
        """Convert to realtime feed error event."""
        return {
            "type": "error",
            "data": {
                "code": self.code,
                "message": self.message,
                "severity": self.severity.value,
                "recoverable": self.severity in (
                    ErrorSeverity.INFO, ErrorSeverity.WARNING, ErrorSeverity.ERROR,
                ),
            },
        }


# ─── Domain Errors (400-level) ──────────────────────────────────

class ValidationError(GameShowError):
    """Missing, out-of-range or enum-mismatched field. Nothing was written."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class NotFoundError(GameShowError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class FlowStateError(GameShowError):
    """Advance requested from a step with no outgoing transition."""
    def __init__(self, step: str, context: ErrorContext | None = None):
        ctx = context or ErrorContext()
        ctx.step = step
        super().__init__(
            f"Game flow is complete (step '{step}' has no next step)",
            "FLOW_COMPLETE", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, ctx, 409,
        )


class ConnectionClosedError(GameShowError):
    """Host connection was ended while it was being established."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Host connection was ended before it was established",
            "CONNECTION_CLOSED", ErrorCategory.CONFLICT,
            ErrorSeverity.WARNING, context, 409,
        )


# ─── Upstream Errors ────────────────────────────────────────────

class UpstreamError(GameShowError):
    """Conversational-AI or image provider failed. Cause is logged, never returned."""
    def __init__(
        self,
        upstream: str,
        message: str = "Upstream service request failed",
        http_status: int = 500,
        code: str = "UPSTREAM_ERROR",
        context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.upstream = upstream
        super().__init__(
            message, code, ErrorCategory.EXTERNAL_API,
            ErrorSeverity.ERROR, ctx, http_status,
        )
        self.upstream = upstream


class NoResultsError(UpstreamError):
    """Image search returned an empty page."""
    def __init__(self, topic: str, context: ErrorContext | None = None):
        super().__init__(
            "image_search",
            f"No images found for topic: {topic}",
            http_status=404,
            code="NO_RESULTS",
            context=context,
        )
        self.topic = topic


# ─── Internal Errors (500-level) ────────────────────────────────

class InternalError(GameShowError):
    """Unexpected failure. Reported with a generic message."""
    def __init__(
        self,
        message: str = "An unexpected error occurred",
        code: str = "INTERNAL_ERROR",
        category: ErrorCategory = ErrorCategory.INTERNAL,
        context: ErrorContext | None = None,
    ):
        super().__init__(
            message, code, category, ErrorSeverity.CRITICAL, context, 500,
        )


class ConfigurationError(InternalError):
    """Required server-side configuration is absent."""
    def __init__(self, setting: str, context: ErrorContext | None = None):
        super().__init__(
            "Server configuration error", "CONFIGURATION_ERROR",
            ErrorCategory.CONFIGURATION, context,
        )
        self.setting = setting


class PersistenceError(InternalError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}", "DATABASE_ERROR",
            ErrorCategory.DATABASE, context,
        )
        self.operation = operation
