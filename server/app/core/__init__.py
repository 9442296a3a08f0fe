"""Core application modules."""

from app.core.security import create_access_token, decode_access_token
from app.core.state_machine import (
    InvalidTransitionError,
    JobStatus,
    allowed_transitions,
    is_terminal,
    validate_transition,
)

__all__ = [
    "create_access_token",
    "decode_access_token",
    "InvalidTransitionError",
    "JobStatus",
    "allowed_transitions",
    "is_terminal",
    "validate_transition",
]
