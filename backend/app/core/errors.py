"""Error Hierarchy — typed, categorized exceptions for all admin console failure modes.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Client errors (400-level) are recoverable; infrastructure errors (500-level) are critical
    - to_response() produces the REST envelope
    - No internal details leaked in user-facing messages

Design Decisions:
    - Single hierarchy with ConsoleError base: FastAPI global handler catches all (uniform error shape)
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
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    RESOURCE_NOT_FOUND = "resource_not_found"
    CONFLICT = "conflict"
    DATABASE = "database"
    EXTERNAL_API = "external_api"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    user_id: str | None = None
    resource_id: str | None = None
    user_role: str | None = None
    required_role: str | None = None
    context_time_ms: float | None = None
    debug_info: dict[str, Any] | None = None


class ConsoleError(Exception):
    """Base exception for all admin console errors."""

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
                    "resource_id": self.context.resource_id,
                    "user_role": self.context.user_role,
                    "required_role": self.context.required_role,
                    "context_time_ms": self.context.context_time_ms,
                },
            }
        }


# ─── Client Errors (400-level) ──────────────────────────────────

class InputValidationError(ConsoleError):
    """Request input failed a rule Pydantic cannot express."""
    def __init__(self, message: str, field: str, context: ErrorContext | None = None):
        super().__init__(
            message, "VALIDATION_ERROR", ErrorCategory.VALIDATION,
            ErrorSeverity.ERROR, context, 400,
        )
        self.field = field


class AuthenticationRequiredError(ConsoleError):
    """Procedure needs a signed-in user with a profile."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(
            "Authentication required",
            "UNAUTHORIZED", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class AuthenticationError(ConsoleError):
    """Credentials or access token rejected."""
    def __init__(self, message: str = "Invalid credentials", context: ErrorContext | None = None):
        super().__init__(
            message, "INVALID_CREDENTIALS", ErrorCategory.AUTHENTICATION,
            ErrorSeverity.WARNING, context, 401,
        )


class PermissionDeniedError(ConsoleError):
    """Signed-in user lacks the role the procedure requires."""
    def __init__(
        self, user_role: str, required_role: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.user_role = user_role
        ctx.required_role = required_role
        super().__init__(
            f"Role '{required_role}' required",
            "FORBIDDEN", ErrorCategory.AUTHORIZATION,
            ErrorSeverity.WARNING, ctx, 403,
        )


class ResourceNotFoundError(ConsoleError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        ctx = context or ErrorContext()
        ctx.resource_id = resource_id
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, ctx, 404,
        )


class ConflictError(ConsoleError):
    """Write would collide with an existing record."""
    def __init__(self, message: str, context: ErrorContext | None = None):
        super().__init__(
            message, "CONFLICT", ErrorCategory.CONFLICT,
            ErrorSeverity.ERROR, context, 409,
        )


# ─── Infrastructure Errors (500-level) ──────────────────────────

class DatabaseError(ConsoleError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation


class IdentityServiceError(ConsoleError):
    """Hosted identity service call failed."""
    def __init__(
        self,
        message: str,
        operation: str,
        status_code: int | None = None,
        context: ErrorContext | None = None,
        error_code: str | None = None,
    ):
        super().__init__(
            f"Identity service {operation} failed: {message}",
            "IDENTITY_SERVICE_ERROR", ErrorCategory.EXTERNAL_API,
            ErrorSeverity.CRITICAL, context, 502,
        )
        self.operation = operation
        self.status_code = status_code
        self.detail = message
        self.error_code = error_code
