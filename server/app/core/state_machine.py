"""Job state machine for managing valid state transitions."""

from app.models.job import JobStatus


class InvalidTransitionError(ValueError):
    """Raised when a caller tries to apply a transition the matrix forbids."""


# Valid state transition matrix. Cancellation is the only edge that skips ahead;
# everything else moves one step forward.
VALID_TRANSITIONS: dict[str, set[str]] = {
    JobStatus.OPEN.value: {JobStatus.ACCEPTED.value, JobStatus.CANCELLED.value},
    JobStatus.ACCEPTED.value: {JobStatus.IN_PROGRESS.value, JobStatus.CANCELLED.value},
    JobStatus.IN_PROGRESS.value: {JobStatus.IN_REVIEW.value, JobStatus.CANCELLED.value},
    JobStatus.IN_REVIEW.value: {JobStatus.COMPLETED.value, JobStatus.CANCELLED.value},
    JobStatus.COMPLETED.value: set(),  # Terminal state
    JobStatus.CANCELLED.value: set(),  # Terminal state
}


def _status_value(status: JobStatus | str) -> str:
    return status.value if isinstance(status, JobStatus) else status


def allowed_transitions(status: JobStatus | str) -> set[str]:
    """Return the statuses reachable from ``status`` in one step."""
    return set(VALID_TRANSITIONS.get(_status_value(status), set()))


def is_terminal(status: JobStatus | str) -> bool:
    value = _status_value(status)
    return value in VALID_TRANSITIONS and not VALID_TRANSITIONS[value]


def validate_transition(
    current_status: JobStatus | str, next_status: JobStatus | str
) -> tuple[bool, str | None]:
    """
    Validate if a state transition is allowed.

    A transition to the same status is rejected rather than treated as a no-op,
    and nothing leaves a terminal status.

    Returns:
        Tuple of (is_valid, error_message)
    """
    current = _status_value(current_status)
    target = _status_value(next_status)

    if current not in VALID_TRANSITIONS:
        return False, f"Unknown current status: {current}"

    if target not in VALID_TRANSITIONS:
        return False, f"Unknown next status: {target}"

    if current == target:
        return False, f"Job is already {current}"

    allowed_next = VALID_TRANSITIONS[current]
    if not allowed_next:
        return False, f"Cannot transition from {current} to {target}: {current} is terminal"

    if target not in allowed_next:
        return (
            False,
            f"Cannot transition from {current} to {target}. "
            f"Allowed transitions: {', '.join(sorted(allowed_next))}",
        )

    return True, None


def ensure_transition(current_status: JobStatus | str, next_status: JobStatus | str) -> None:
    """Raise ``InvalidTransitionError`` unless the transition is allowed."""
    is_valid, error = validate_transition(current_status, next_status)
    if not is_valid:
        raise InvalidTransitionError(error)
