"""
Custom Exceptions

Centralized exception definitions. Every one of them is an HTTPException,
so FastAPI routes them through the envelope handlers in main.py and the
client always receives `{"success": false, "message": ..., "errors"?: ...}`.
"""
from typing import Any, Dict, List, Optional
from fastapi import HTTPException, status


class ValidationFailed(HTTPException):
    """Raised when request input fails validation (field-level detail)."""

    def __init__(self, detail: str = "Validation failed", errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail
        )
        self.errors = errors or []


class AuthenticationError(HTTPException):
    """Missing, malformed, expired or wrong-class credentials."""

    def __init__(self, detail: str = "Invalid or expired token"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class PermissionDenied(HTTPException):
    """Raised when the actor's role does not allow the operation."""

    def __init__(self, detail: str = "Insufficient permissions"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )


class NotFoundError(HTTPException):
    """
    Raised when a row is missing or owned by another tenant.

    Both cases produce the same response so other tenants' ids never
    leak through status codes.
    """

    def __init__(self, resource: str = "Resource"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found"
        )


class ConflictError(HTTPException):
    """Raised on duplicate email, duplicate license plate, repeated bootstrap."""

    def __init__(self, detail: str = "Resource already exists"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail
        )


class BusinessRuleError(HTTPException):
    """
    Raised when a well-formed request breaks a state rule,
    e.g. editing a completed inspection or resolving an issue twice.
    """

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail
        )


class RateLimitExceeded(HTTPException):
    """Per-IP request budget for the current window is spent."""

    def __init__(self, retry_after: int = 60):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests, please try again later.",
            headers={"Retry-After": str(retry_after)}
        )
