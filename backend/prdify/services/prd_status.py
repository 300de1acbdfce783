"""PRD status state machine.

The lifecycle is strictly linear::

    planning -> planning_review -> prd_review -> completed

Every mutating operation names a :class:`Trigger`. A trigger is legal only
from its single source status; :func:`require_status` enforces that and
returns the status the PRD moves to. Guards never auto-correct: a failed
guard always raises :class:`PrdConflictError`.
"""
from enum import Enum
from typing import Dict, NamedTuple

from prdify.core.exceptions import PrdConflictError
from prdify.models.prd import PrdStatus


class Trigger(str, Enum):
    GENERATE_QUESTIONS = "generate_questions"
    SUBMIT_ANSWERS = "submit_answers"
    CONTINUE_PLANNING = "continue_planning"
    GENERATE_SUMMARY = "generate_summary"
    UPDATE_SUMMARY = "update_summary"
    GENERATE_DOCUMENT = "generate_document"
    UPDATE_DOCUMENT = "update_document"
    COMPLETE = "complete"


class Transition(NamedTuple):
    source: PrdStatus
    target: PrdStatus
    conflict_message: str


TRANSITIONS: Dict[Trigger, Transition] = {
    Trigger.GENERATE_QUESTIONS: Transition(
        PrdStatus.planning, PrdStatus.planning,
        "PRD must be in planning status to generate questions",
    ),
    Trigger.SUBMIT_ANSWERS: Transition(
        PrdStatus.planning, PrdStatus.planning,
        "PRD must be in planning status to submit answers",
    ),
    Trigger.CONTINUE_PLANNING: Transition(
        PrdStatus.planning, PrdStatus.planning,
        "PRD must be in planning status to continue planning",
    ),
    Trigger.GENERATE_SUMMARY: Transition(
        PrdStatus.planning, PrdStatus.planning_review,
        "PRD must be in planning status to generate summary",
    ),
    Trigger.UPDATE_SUMMARY: Transition(
        PrdStatus.planning_review, PrdStatus.planning_review,
        "PRD must be in planning_review status to update summary",
    ),
    Trigger.GENERATE_DOCUMENT: Transition(
        PrdStatus.planning_review, PrdStatus.prd_review,
        "PRD must be in planning_review status to generate document",
    ),
    Trigger.UPDATE_DOCUMENT: Transition(
        PrdStatus.prd_review, PrdStatus.prd_review,
        "PRD must be in prd_review status to update document",
    ),
    Trigger.COMPLETE: Transition(
        PrdStatus.prd_review, PrdStatus.completed,
        "PRD must be in prd_review status to be completed",
    ),
}

_ORDER = [PrdStatus.planning, PrdStatus.planning_review, PrdStatus.prd_review, PrdStatus.completed]


def require_status(prd, trigger: Trigger) -> PrdStatus:
    """Return the target status of ``trigger`` or raise if ``prd`` is not in its source status"""
    transition = TRANSITIONS[trigger]
    current = PrdStatus(prd.status)
    if current != transition.source:
        raise PrdConflictError(
            transition.conflict_message,
            expected_status=transition.source,
            actual_status=current,
        )
    return transition.target


def can_transition(source: PrdStatus, target: PrdStatus) -> bool:
    """True for a self-loop or a single step forward"""
    return _ORDER.index(target) - _ORDER.index(source) in (0, 1)


def is_terminal(status: PrdStatus) -> bool:
    return status == PrdStatus.completed


for _trigger, _transition in TRANSITIONS.items():
    if not can_transition(_transition.source, _transition.target):
        raise ValueError(
            f"Illegal transition for {_trigger.value}: "
            f"{_transition.source.value} -> {_transition.target.value}"
        )
