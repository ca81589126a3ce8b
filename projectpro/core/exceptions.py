"""
Custom Exceptions

Centralized exception definitions for better error handling.
FastAPI automatically converts these to appropriate HTTP responses.
"""
from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """
    Raised when a tenant-scoped row cannot be found.

    Rows that exist in another tenant also raise this, so callers
    cannot tell foreign ids from missing ones.
    """

    def __init__(self, entity: str, entity_id: str = ""):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{entity} not found: {entity_id}" if entity_id else f"{entity} not found"
        )


class UserNotFoundError(NotFoundError):
    def __init__(self, user_id: str = ""):
        super().__init__("User", user_id)


class ProjectNotFoundError(NotFoundError):
    def __init__(self, project_id: str = ""):
        super().__init__("Project", project_id)


class TaskNotFoundError(NotFoundError):
    def __init__(self, task_id: str = ""):
        super().__init__("Task", task_id)


class AuthenticationError(HTTPException):
    """Raised when authentication fails."""

    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class TenantIsolationError(HTTPException):
    """
    Raised when a tenant isolation violation is detected.

    This is a CRITICAL security error and should be logged/alerted on.
    """

    def __init__(self, detail: str = "Tenant isolation violation"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )


class PermissionDenied(HTTPException):
    """Raised when the caller's tenant role is too low for an action."""

    def __init__(self, detail: str = "Permission denied"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail
        )


class InvalidInputError(HTTPException):
    """Raised when input validation fails."""

    def __init__(self, detail: str = "Invalid input"):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail
        )


class ConflictError(HTTPException):
    """Raised when a write collides with existing state (duplicates, blocked transitions)."""

    def __init__(self, detail: str = "Conflict"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail
        )


class PlanLimitExceeded(HTTPException):
    """Raised when an action would exceed the tenant's subscription plan."""

    def __init__(self, resource: str, limit: int):
        super().__init__(
            status_code=status.HTTP_402_PAYMENT_REQUIRED,
            detail=f"Plan limit reached: at most {limit} {resource}. Upgrade your plan to add more."
        )
