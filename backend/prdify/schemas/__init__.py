from .prd import (
    PRD, PRDCreate, PRDUpdate, PRDListItem, PRDListQuery, PaginatedPRDs, Pagination,
    SummaryUpdate, SummaryResponse, DocumentUpdate, DocumentResponse
)
from .prd_question import (
    PrdQuestion, AnswerItem, SubmitAnswers, PaginatedQuestions, QuestionRound, PlanningState
)

__all__ = [
    "PRD", "PRDCreate", "PRDUpdate", "PRDListItem", "PRDListQuery", "PaginatedPRDs", "Pagination",
    "SummaryUpdate", "SummaryResponse", "DocumentUpdate", "DocumentResponse",
    "PrdQuestion", "AnswerItem", "SubmitAnswers", "PaginatedQuestions", "QuestionRound", "PlanningState"
]
