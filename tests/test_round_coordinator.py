"""Tests for round partitioning and the round-complete predicate."""

import pytest

from prdify.core.exceptions import PrdConflictError
from prdify.models import PrdQuestion
from prdify.services.round_coordinator import is_answered, partition_questions, require_round_complete


def question(round_number: int, answer=None, text: str = "Q") -> PrdQuestion:
    return PrdQuestion(round_number=round_number, question=text, answer=answer)


class TestIsAnswered:
    @pytest.mark.parametrize("answer", [None, "", " ", "   ", "\t", "\n", " \t\n\r "])
    def test_blank_answers_are_unanswered(self, answer) -> None:
        assert is_answered(question(1, answer)) is False

    def test_text_with_surrounding_whitespace_is_answered(self) -> None:
        assert is_answered(question(1, "  Answer  ")) is True


class TestPartitionQuestions:
    def test_mixed_round_splits_answered_and_unanswered(self) -> None:
        """One answered and one open question: round is not complete."""
        q1 = question(1, "Answer 1")
        q2 = question(1, None)
        partition = partition_questions([q1, q2], current_round=1)
        assert partition.answered == [q1]
        assert partition.unanswered == [q2]
        assert partition.round_complete is False

    def test_current_round_is_partitioned_exactly(self) -> None:
        questions = [question(2, a) for a in ["yes", None, "  ", "no", "\t"]]
        partition = partition_questions(questions, current_round=2)
        current = [q for q in partition.answered if q.round_number == 2] + partition.unanswered
        assert sorted(map(id, current)) == sorted(map(id, questions))
        assert not set(map(id, partition.answered)) & set(map(id, partition.unanswered))

    def test_earlier_rounds_are_history(self) -> None:
        old_open = question(1, None)
        current = question(2, "done")
        partition = partition_questions([old_open, current], current_round=2)
        assert partition.answered == [old_open, current]
        assert partition.unanswered == []
        assert partition.round_complete is True

    def test_all_answered_round_is_complete(self) -> None:
        partition = partition_questions([question(1, "a"), question(1, "b")], current_round=1)
        assert partition.round_complete is True

    def test_empty_round_is_never_complete(self) -> None:
        partition = partition_questions([], current_round=1)
        assert partition.unanswered == []
        assert partition.round_complete is False

    def test_round_with_only_history_is_not_complete(self) -> None:
        """Answered questions from earlier rounds do not complete an empty current round."""
        partition = partition_questions([question(1, "a")], current_round=2)
        assert partition.unanswered == []
        assert partition.round_complete is False


class TestRequireRoundComplete:
    def test_passes_for_complete_round(self) -> None:
        require_round_complete(partition_questions([question(1, "a")], 1), "continue planning")

    def test_empty_round_conflict(self) -> None:
        with pytest.raises(PrdConflictError, match="has no questions"):
            require_round_complete(partition_questions([], 1), "generate summary")

    def test_unanswered_round_conflict(self) -> None:
        with pytest.raises(PrdConflictError, match="unanswered questions") as exc_info:
            require_round_complete(partition_questions([question(1, " ")], 1), "continue planning")
        assert exc_info.value.details["unanswered"] == 1
