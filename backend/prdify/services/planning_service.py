"""Planning-phase operations: question rounds, answers and the summary.

Each operation follows the same fetch, guard, act, persist sequence. The
AI provider is only asked for new text; round numbers and statuses are
owned here.
"""
import math
from typing import Dict, List, Union
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from prdify.core.config import settings
from prdify.core.exceptions import (
    PrdConflictError, PrdGenerationError, PrdNotFoundError, PrdUpdateError, PrdValidationError
)
from prdify.core.logging import planning_logger
from prdify.crud import prd_question as question_crud
from prdify.models.prd import PRD, PrdStatus
from prdify.models.prd_question import PrdQuestion
from prdify.schemas.prd import Pagination
from prdify.schemas.prd_question import AnswerItem, PaginatedQuestions, PlanningState, QuestionRound
from prdify.schemas.prd_question import PrdQuestion as PrdQuestionSchema
from prdify.services.llm_provider import StructuredCompletionProvider
from prdify.services.prd_service import fetch_prd, log_transition, write_prd
from prdify.services.prd_status import Trigger, require_status
from prdify.services.prompts import (
    PRD_QUESTIONS_SCHEMA, PRD_SUMMARY_SCHEMA, build_questions_prompts, build_summary_prompts
)
from prdify.services.round_coordinator import (
    RoundPartition, is_answered, partition_questions, require_round_complete
)
from prdify.services.text import has_text

QUESTIONS_TEMPERATURE = 0.7
SUMMARY_TEMPERATURE = 0.5


def _load_questions(db: Session, prd_id: UUID, round_number=None) -> List[PrdQuestion]:
    try:
        return question_crud.get_prd_questions(db, prd_id, round_number=round_number)
    except SQLAlchemyError as e:
        raise PrdUpdateError(f"Failed to fetch PRD questions: {e}", cause=str(e)) from e


def load_partition(db: Session, prd: PRD) -> RoundPartition:
    return partition_questions(_load_questions(db, prd.id), prd.current_round_number)


async def _ask_for_questions(llm: StructuredCompletionProvider, prd: PRD, history: List[PrdQuestion]) -> List[str]:
    system_prompt, user_prompt = build_questions_prompts(prd, history, settings.questions_per_round)
    try:
        response = await llm.complete(
            system_prompt,
            user_prompt,
            PRD_QUESTIONS_SCHEMA,
            params={"temperature": QUESTIONS_TEMPERATURE},
            operation="generate_questions",
        )
    except Exception as e:
        raise PrdGenerationError(f"Failed to generate PRD questions: {e}", cause=str(e)) from e

    texts = [text.strip() for text in response["questions"] if isinstance(text, str) and text.strip()]
    if not texts:
        raise PrdGenerationError("Failed to generate PRD questions: provider returned no questions")
    return texts


async def generate_round_questions(
    db: Session,
    prd_id: UUID,
    user_id: str,
    llm: StructuredCompletionProvider,
) -> List[PrdQuestion]:
    """Fill the current round when it has no questions yet (round 1 after creation)"""
    prd = fetch_prd(db, prd_id, user_id)
    require_status(prd, Trigger.GENERATE_QUESTIONS)
    partition = load_partition(db, prd)
    if partition.current_round_size > 0:
        raise PrdConflictError(
            "Current round already has questions",
            round_number=prd.current_round_number,
        )

    texts = await _ask_for_questions(llm, prd, partition.answered)
    try:
        questions = question_crud.create_questions(db, prd_id, prd.current_round_number, texts)
    except SQLAlchemyError as e:
        raise PrdUpdateError(f"Failed to save PRD questions: {e}", cause=str(e)) from e

    planning_logger.info(
        "Round questions generated",
        prd_id=str(prd_id),
        round_number=prd.current_round_number,
        count=len(questions),
    )
    return questions


def submit_answers(db: Session, prd_id: UUID, user_id: str, answers: List[AnswerItem]) -> List[PrdQuestion]:
    """Store trimmed answers for questions of the current round"""
    prd = fetch_prd(db, prd_id, user_id)
    require_status(prd, Trigger.SUBMIT_ANSWERS)

    questions = _load_questions(db, prd_id)
    own_ids = {question.id for question in questions}
    current_ids = {question.id for question in questions if question.round_number == prd.current_round_number}

    foreign = [answer.question_id for answer in answers if answer.question_id not in own_ids]
    if foreign:
        try:
            existing = question_crud.get_existing_question_ids(db, foreign)
        except SQLAlchemyError as e:
            raise PrdUpdateError(f"Failed to fetch PRD questions: {e}", cause=str(e)) from e
        missing = [str(question_id) for question_id in foreign if question_id not in existing]
        if missing:
            raise PrdNotFoundError(
                f"PRD questions not found: {', '.join(missing)}",
                question_ids=missing,
            )

    invalid = [str(answer.question_id) for answer in answers if answer.question_id not in current_ids]
    if invalid:
        raise PrdValidationError(
            f"Questions not found in the current round of this PRD: {', '.join(invalid)}",
            question_ids=invalid,
            round_number=prd.current_round_number,
        )

    updates: Dict[UUID, str] = {answer.question_id: answer.text.strip() for answer in answers}
    try:
        question_crud.update_question_answers(db, prd_id, updates)
    except SQLAlchemyError as e:
        raise PrdUpdateError(f"Failed to update PRD questions: {e}", cause=str(e)) from e

    planning_logger.info(
        "Answers submitted",
        prd_id=str(prd_id),
        round_number=prd.current_round_number,
        count=len(updates),
    )
    return _load_questions(db, prd_id, prd.current_round_number)


async def continue_planning(
    db: Session,
    prd_id: UUID,
    user_id: str,
    llm: StructuredCompletionProvider,
) -> List[PrdQuestion]:
    """Open the next round once every question of the current one is answered"""
    prd = fetch_prd(db, prd_id, user_id)
    require_status(prd, Trigger.CONTINUE_PLANNING)
    partition = load_partition(db, prd)
    require_round_complete(partition, "continue planning")

    next_round = prd.current_round_number + 1
    texts = await _ask_for_questions(llm, prd, partition.answered)
    try:
        questions = question_crud.open_round(db, prd_id, next_round, texts)
    except SQLAlchemyError as e:
        raise PrdUpdateError(f"Failed to open planning round: {e}", cause=str(e)) from e

    planning_logger.info("Planning round opened", prd_id=str(prd_id), round_number=next_round, count=len(questions))
    return questions


async def request_summary(
    db: Session,
    prd_id: UUID,
    user_id: str,
    llm: StructuredCompletionProvider,
) -> str:
    """Summarize the planning session and move the PRD to ``planning_review``"""
    prd = fetch_prd(db, prd_id, user_id)
    target = require_status(prd, Trigger.GENERATE_SUMMARY)
    partition = load_partition(db, prd)
    require_round_complete(partition, "generate summary")

    answered = [question for question in partition.answered if is_answered(question)]
    system_prompt, user_prompt = build_summary_prompts(prd, answered)
    try:
        response = await llm.complete(
            system_prompt,
            user_prompt,
            PRD_SUMMARY_SCHEMA,
            params={"temperature": SUMMARY_TEMPERATURE},
            operation="generate_summary",
        )
    except Exception as e:
        raise PrdGenerationError(f"Failed to generate PRD summary: {e}", cause=str(e)) from e

    summary = response["summary"]
    if not has_text(summary):
        raise PrdGenerationError("Failed to generate PRD summary: provider returned an empty summary")
    summary = summary.strip()
    write_prd(db, prd_id, {"summary": summary, "status": target}, "update PRD with summary")
    log_transition(prd_id, PrdStatus.planning, target)
    return summary


def update_summary(db: Session, prd_id: UUID, user_id: str, summary: str) -> str:
    """Edit the summary while it is under review"""
    prd = fetch_prd(db, prd_id, user_id)
    require_status(prd, Trigger.UPDATE_SUMMARY)
    write_prd(db, prd_id, {"summary": summary}, "update PRD summary")
    return summary


def get_planning_state(db: Session, prd_id: UUID, user_id: str) -> PlanningState:
    prd = fetch_prd(db, prd_id, user_id)
    partition = load_partition(db, prd)
    return PlanningState(
        current_round_number=prd.current_round_number,
        answered=[PrdQuestionSchema.model_validate(q) for q in partition.answered],
        unanswered=[PrdQuestionSchema.model_validate(q) for q in partition.unanswered],
        round_complete=partition.round_complete,
    )


def get_round(db: Session, prd_id: UUID, user_id: str, round_number: Union[int, str]) -> QuestionRound:
    """Questions of one round; ``"latest"`` resolves to the current round"""
    prd = fetch_prd(db, prd_id, user_id)
    if round_number == "latest":
        round_number = prd.current_round_number
    elif round_number > prd.current_round_number:
        raise PrdNotFoundError(f"Round {round_number} not found", round_number=round_number)

    questions = _load_questions(db, prd_id, round_number)
    return QuestionRound(
        round_number=round_number,
        questions=[PrdQuestionSchema.model_validate(q) for q in questions],
    )


def get_questions(
    db: Session,
    prd_id: UUID,
    user_id: str,
    page: int = 1,
    limit: int = 20,
    round_number=None,
) -> PaginatedQuestions:
    fetch_prd(db, prd_id, user_id)
    try:
        total = question_crud.count_prd_questions(db, prd_id, round_number)
        questions = question_crud.get_prd_questions(
            db, prd_id, round_number=round_number, skip=(page - 1) * limit, limit=limit
        )
    except SQLAlchemyError as e:
        raise PrdUpdateError(f"Failed to fetch PRD questions: {e}", cause=str(e)) from e

    return PaginatedQuestions(
        questions=[PrdQuestionSchema.model_validate(q) for q in questions],
        pagination=Pagination(page=page, limit=limit, total_items=total, total_pages=math.ceil(total / limit)),
    )
