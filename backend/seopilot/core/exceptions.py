"""
Custom exceptions for SEOpilot.

HTTP exceptions are raised by the API layer; domain errors are raised by the
services and only for configuration mistakes or caller errors. Everything
else is reported as a warning record instead of raised.
"""
from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """Resource not found exception."""

    def __init__(self, resource: str = "Resource"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{resource} not found"
        )


class BadRequestError(HTTPException):
    """Bad request exception."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail
        )


class ConflictError(HTTPException):
    """Conflict exception (e.g., impact already measured)."""

    def __init__(self, detail: str):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail
        )


class SEOpilotError(Exception):
    """Base class for domain errors."""


class HandlerNotRegisteredError(SEOpilotError):
    """A framework was requested from a registry with no handler and no fallback."""

    def __init__(self, framework: str):
        self.framework = framework
        super().__init__(f"No handler registered for framework '{framework}' and no fallback configured")


class ImpactAlreadyMeasuredError(SEOpilotError):
    """Impact for a change is computed once and never overwritten."""

    def __init__(self, change_id: str):
        self.change_id = change_id
        super().__init__(f"Impact for change {change_id} has already been measured")
