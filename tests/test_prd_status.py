"""Tests for the PRD status state machine."""

import pytest

from prdify.core.exceptions import ErrorKind, PrdConflictError
from prdify.models import PRD, PrdStatus
from prdify.services.prd_status import TRANSITIONS, Trigger, can_transition, is_terminal, require_status


def prd_in(status: PrdStatus) -> PRD:
    return PRD(status=status)


class TestRequireStatus:
    @pytest.mark.parametrize(
        "trigger, source, target",
        [
            (Trigger.GENERATE_SUMMARY, PrdStatus.planning, PrdStatus.planning_review),
            (Trigger.GENERATE_DOCUMENT, PrdStatus.planning_review, PrdStatus.prd_review),
            (Trigger.UPDATE_DOCUMENT, PrdStatus.prd_review, PrdStatus.prd_review),
            (Trigger.COMPLETE, PrdStatus.prd_review, PrdStatus.completed),
        ],
    )
    def test_legal_transition_returns_target(self, trigger, source, target) -> None:
        assert require_status(prd_in(source), trigger) == target

    @pytest.mark.parametrize("trigger", list(Trigger))
    def test_every_other_status_conflicts(self, trigger) -> None:
        source = TRANSITIONS[trigger].source
        for status in PrdStatus:
            if status == source:
                continue
            with pytest.raises(PrdConflictError) as exc_info:
                require_status(prd_in(status), trigger)
            assert exc_info.value.kind == ErrorKind.CONFLICT
            assert exc_info.value.details["expected_status"] == source.value
            assert exc_info.value.details["actual_status"] == status.value

    def test_generate_document_message_names_required_status(self) -> None:
        with pytest.raises(PrdConflictError) as exc_info:
            require_status(prd_in(PrdStatus.planning), Trigger.GENERATE_DOCUMENT)
        assert str(exc_info.value) == "PRD must be in planning_review status to generate document"

    def test_update_document_message_names_required_status(self) -> None:
        with pytest.raises(PrdConflictError) as exc_info:
            require_status(prd_in(PrdStatus.completed), Trigger.UPDATE_DOCUMENT)
        assert str(exc_info.value) == "PRD must be in prd_review status to update document"


class TestTransitionTable:
    def test_table_only_moves_forward_one_step(self) -> None:
        for transition in TRANSITIONS.values():
            assert can_transition(transition.source, transition.target)

    def test_no_backward_or_skipping_transitions(self) -> None:
        assert not can_transition(PrdStatus.planning_review, PrdStatus.planning)
        assert not can_transition(PrdStatus.planning, PrdStatus.prd_review)
        assert not can_transition(PrdStatus.completed, PrdStatus.prd_review)

    def test_completed_is_terminal(self) -> None:
        assert is_terminal(PrdStatus.completed)
        assert not any(t.source == PrdStatus.completed for t in TRANSITIONS.values())
