"""Round bookkeeping for the planning dialogue.

Questions of the PRD's current round are split into answered and
unanswered ones; questions from earlier rounds are answered history.
A round is complete only when it has at least one question and every
question in it carries a non-blank answer.
"""
from dataclasses import dataclass, field
from typing import Iterable, List

from prdify.core.exceptions import PrdConflictError
from prdify.models.prd_question import PrdQuestion
from prdify.services.text import has_text


def is_answered(question: PrdQuestion) -> bool:
    return has_text(question.answer)


@dataclass
class RoundPartition:
    current_round: int
    answered: List[PrdQuestion] = field(default_factory=list)
    unanswered: List[PrdQuestion] = field(default_factory=list)
    current_round_answered: int = 0

    @property
    def round_complete(self) -> bool:
        return not self.unanswered and self.current_round_answered > 0

    @property
    def current_round_size(self) -> int:
        return self.current_round_answered + len(self.unanswered)


def partition_questions(questions: Iterable[PrdQuestion], current_round: int) -> RoundPartition:
    """Split questions into answered history and the unanswered current form"""
    partition = RoundPartition(current_round=current_round)
    for question in questions:
        if question.round_number != current_round:
            partition.answered.append(question)
        elif is_answered(question):
            partition.answered.append(question)
            partition.current_round_answered += 1
        else:
            partition.unanswered.append(question)
    return partition


def require_round_complete(partition: RoundPartition, action: str) -> None:
    """Raise a conflict naming why ``action`` cannot run on this round"""
    if partition.round_complete:
        return
    if partition.current_round_size == 0:
        raise PrdConflictError(
            f"Cannot {action}: round {partition.current_round} has no questions",
            round_number=partition.current_round,
        )
    raise PrdConflictError(
        f"Cannot {action}: round {partition.current_round} has unanswered questions",
        round_number=partition.current_round,
        unanswered=len(partition.unanswered),
    )
