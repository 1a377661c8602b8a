"""
Core utilities for SEOpilot.
"""
from seopilot.core.exceptions import (
    BadRequestError,
    ConflictError,
    HandlerNotRegisteredError,
    ImpactAlreadyMeasuredError,
    NotFoundError,
    SEOpilotError,
)

__all__ = [
    "BadRequestError",
    "ConflictError",
    "HandlerNotRegisteredError",
    "ImpactAlreadyMeasuredError",
    "NotFoundError",
    "SEOpilotError",
]
