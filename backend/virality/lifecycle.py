"""Analysis status state machine.

``pending -> processing -> completed | failed``. ``completed`` and ``failed``
are terminal. The same check runs in the client before a PATCH is issued and
in the store adapter before a row is written.
"""
from typing import Optional, Union

from virality.errors import LifecycleError
from virality.models.analysis import AnalysisStatus

StatusLike = Union[AnalysisStatus, str]

ALLOWED_TRANSITIONS = {
    AnalysisStatus.PENDING: {AnalysisStatus.PROCESSING},
    AnalysisStatus.PROCESSING: {AnalysisStatus.COMPLETED, AnalysisStatus.FAILED},
    AnalysisStatus.COMPLETED: set(),
    AnalysisStatus.FAILED: set(),
}

TERMINAL_STATUSES = frozenset({AnalysisStatus.COMPLETED, AnalysisStatus.FAILED})

MIN_SCORE = 0
MAX_SCORE = 100


def coerce_status(value: StatusLike) -> AnalysisStatus:
    try:
        return AnalysisStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in AnalysisStatus)
        raise LifecycleError(f"Unknown status '{value}', expected one of: {allowed}")


def is_terminal(status: StatusLike) -> bool:
    return coerce_status(status) in TERMINAL_STATUSES


def can_transition(current: StatusLike, target: StatusLike) -> bool:
    return coerce_status(target) in ALLOWED_TRANSITIONS[coerce_status(current)]


def validate_update(
    current: StatusLike,
    status: Optional[StatusLike] = None,
    overall_virality_score: Optional[int] = None,
) -> Optional[AnalysisStatus]:
    """Check a partial update against the current status.

    Returns the target status. Raises ``LifecycleError`` naming the violated
    rule otherwise.
    """
    current_status = coerce_status(current)
    target = coerce_status(status) if status is not None else None

    if current_status in TERMINAL_STATUSES:
        raise LifecycleError(
            f"Analysis is {current_status.value}; terminal analyses cannot be updated"
        )
    if target is None and overall_virality_score is None:
        raise LifecycleError("Update must set status and/or overall_virality_score")
    if target is None:
        raise LifecycleError(
            "overall_virality_score can only be set together with status 'completed'"
        )
    if target == current_status:
        raise LifecycleError(f"Analysis is already {current_status.value}")
    if target not in ALLOWED_TRANSITIONS[current_status]:
        raise LifecycleError(
            f"Illegal status transition {current_status.value} -> {target.value}"
        )

    if target == AnalysisStatus.COMPLETED:
        if overall_virality_score is None:
            raise LifecycleError("overall_virality_score is required when completing an analysis")
    elif overall_virality_score is not None:
        raise LifecycleError(
            "overall_virality_score can only be set together with status 'completed'"
        )

    if overall_virality_score is not None:
        validate_score(overall_virality_score)
    return target


def validate_score(score) -> int:
    # bool is an int subclass
    if isinstance(score, bool) or not isinstance(score, int):
        raise LifecycleError("overall_virality_score must be an integer")
    if not (MIN_SCORE <= score <= MAX_SCORE):
        raise LifecycleError(
            f"overall_virality_score must be between {MIN_SCORE} and {MAX_SCORE}"
        )
    return score
