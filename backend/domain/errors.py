"""
Custom domain exceptions for consistent error handling.

These exceptions are mapped to HTTP status codes and the
{"ok": false, "error": {...}} envelope by the exception handlers in main.py.
Every error carries a stable machine-readable `code`.
"""
from fastapi import HTTPException, status


class DomainError(HTTPException):
    """Base class for all domain-specific errors."""
    code = "domain_error"

    def __init__(self, message: str, status_code: int = status.HTTP_400_BAD_REQUEST, details: dict | None = None):
        super().__init__(status_code=status_code, detail=message)
        self.message = message
        self.details = details or {}


class NotFoundError(DomainError):
    """Resource not found, or not visible to the caller (404)."""
    code = "not_found"

    def __init__(self, resource_type: str, identifier: str, details: dict | None = None):
        message = f"{resource_type} not found: {identifier}"
        super().__init__(message, status_code=status.HTTP_404_NOT_FOUND, details=details)


class InvalidTransitionError(DomainError):
    """Requested status is not reachable from the current one (409)."""
    code = "invalid_transition"

    def __init__(self, current: str, requested: str, message: str | None = None, details: dict | None = None):
        message = message or f"Cannot transition from {current} to {requested}"
        details = {"current_status": current, "requested_status": requested, **(details or {})}
        super().__init__(message, status_code=status.HTTP_409_CONFLICT, details=details)
        self.current = current
        self.requested = requested


class PreconditionFailedError(DomainError):
    """Business precondition not met (400)."""
    code = "precondition_failed"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_400_BAD_REQUEST, details=details)


class ValidationError(DomainError):
    """Malformed input (422)."""
    code = "validation_failed"

    def __init__(self, message: str, field: str | None = None, details: dict | None = None):
        if field:
            message = f"Validation error on {field}: {message}"
        super().__init__(message, status_code=422, details=details)


class UnauthorizedError(DomainError):
    """Caller may not act on this resource (403)."""
    code = "unauthorized"

    def __init__(self, message: str = "Unauthorized", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_403_FORBIDDEN, details=details)


class UnauthenticatedError(DomainError):
    """Missing or invalid credentials (401)."""
    code = "unauthenticated"

    def __init__(self, message: str = "Authentication required", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_401_UNAUTHORIZED, details=details)


class DependencyFailureError(DomainError):
    """Order store unavailable or timed out; the operation was aborted (503)."""
    code = "dependency_failure"

    def __init__(self, message: str = "Order store unavailable", details: dict | None = None):
        super().__init__(message, status_code=status.HTTP_503_SERVICE_UNAVAILABLE, details=details)


class SideEffectFailure(Exception):
    """
    Notification, email or event-bus delivery failed after commit.

    Never propagated to the caller of a transition; logged by services/side_effects.py.
    """

    def __init__(self, effect: str, order_id: int | None, reason: str):
        super().__init__(f"{effect} failed for order {order_id}: {reason}")
        self.effect = effect
        self.order_id = order_id
        self.reason = reason
