from pydantic import BaseModel, Field, StringConstraints
from datetime import datetime
from typing import Annotated, List, Optional
from uuid import UUID

from prdify.schemas.prd import Pagination

ANSWER_MAX_LENGTH = 5000


class PrdQuestion(BaseModel):
    id: UUID
    prd_id: UUID
    round_number: int
    question: str
    answer: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AnswerItem(BaseModel):
    question_id: UUID
    text: Annotated[str, StringConstraints(min_length=1, max_length=ANSWER_MAX_LENGTH)]


class SubmitAnswers(BaseModel):
    answers: List[AnswerItem] = Field(min_length=1)


class PaginatedQuestions(BaseModel):
    questions: List[PrdQuestion]
    pagination: Pagination


class QuestionRound(BaseModel):
    round_number: int
    questions: List[PrdQuestion]


class PlanningState(BaseModel):
    current_round_number: int
    answered: List[PrdQuestion]
    unanswered: List[PrdQuestion]
    round_complete: bool
