from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from prdify.database.connection import get_db
from prdify.core.exceptions import PrdError, PrdValidationError
from prdify.core.logging import get_logger
from prdify.core.security import get_current_user_id
from prdify.routers.deps import get_llm_provider
from prdify.schemas.prd import SummaryResponse, SummaryUpdate
from prdify.schemas.prd_question import (
    PaginatedQuestions, PlanningState, PrdQuestion, QuestionRound, SubmitAnswers
)
from prdify.services import planning_service
from prdify.services.llm_provider import StructuredCompletionProvider

logger = get_logger(__name__)
router = APIRouter(prefix="/prds/{prd_id}", tags=["planning"])


def parse_round(value: str):
    """Accept ``latest`` or a positive round number"""
    if value == "latest":
        return value
    try:
        number = int(value)
    except ValueError:
        number = 0
    if number < 1:
        raise PrdValidationError("Round number must be a positive integer or 'latest'")
    return number


@router.get("/questions", response_model=PaginatedQuestions)
async def get_questions(
    prd_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    round_number: Optional[int] = Query(None, ge=1),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get a page of the PRD's questions"""
    return planning_service.get_questions(db, prd_id, user_id, page=page, limit=limit, round_number=round_number)


@router.patch("/questions", response_model=List[PrdQuestion])
async def submit_answers(
    prd_id: UUID,
    command: SubmitAnswers,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Submit answers for questions of the current round"""
    return planning_service.submit_answers(db, prd_id, user_id, command.answers)


@router.post("/questions/generate", response_model=List[PrdQuestion], status_code=status.HTTP_201_CREATED)
async def generate_questions(
    prd_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    llm: StructuredCompletionProvider = Depends(get_llm_provider)
):
    """Generate the questions of an empty current round"""
    try:
        return await planning_service.generate_round_questions(db, prd_id, user_id, llm)
    except PrdError:
        raise
    except Exception as e:
        logger.error("Failed to generate questions", prd_id=str(prd_id), error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate questions"
        )


@router.post("/rounds/next", response_model=List[PrdQuestion], status_code=status.HTTP_201_CREATED)
async def continue_planning(
    prd_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    llm: StructuredCompletionProvider = Depends(get_llm_provider)
):
    """Open the next planning round"""
    try:
        return await planning_service.continue_planning(db, prd_id, user_id, llm)
    except PrdError:
        raise
    except Exception as e:
        logger.error("Failed to continue planning", prd_id=str(prd_id), error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to continue planning"
        )


@router.get("/rounds/{round_number}", response_model=QuestionRound)
async def get_round(
    prd_id: UUID,
    round_number: str,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get the questions of one round, or of the latest one"""
    return planning_service.get_round(db, prd_id, user_id, parse_round(round_number))


@router.get("/planning", response_model=PlanningState)
async def get_planning_state(
    prd_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Answered history, the open form and whether the round is complete"""
    return planning_service.get_planning_state(db, prd_id, user_id)


@router.post("/summary", response_model=SummaryResponse, status_code=status.HTTP_201_CREATED)
async def generate_summary(
    prd_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    llm: StructuredCompletionProvider = Depends(get_llm_provider)
):
    """Summarize the planning session and move to planning review"""
    try:
        summary = await planning_service.request_summary(db, prd_id, user_id, llm)
        return {"summary": summary}
    except PrdError:
        raise
    except Exception as e:
        logger.error("Failed to generate summary", prd_id=str(prd_id), error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate PRD summary"
        )


@router.patch("/summary", response_model=SummaryResponse)
async def update_summary(
    prd_id: UUID,
    command: SummaryUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Edit the summary during planning review"""
    summary = planning_service.update_summary(db, prd_id, user_id, command.summary)
    return {"summary": summary}
