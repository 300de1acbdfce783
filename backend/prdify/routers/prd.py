from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session
from typing import Literal
from uuid import UUID

from prdify.database.connection import get_db
from prdify.core.exceptions import PrdError
from prdify.core.logging import get_logger
from prdify.core.security import get_current_user_id
from prdify.schemas.prd import PRD, PRDCreate, PRDUpdate, PRDListQuery, PaginatedPRDs
from prdify.services import prd_service

logger = get_logger(__name__)
router = APIRouter(prefix="/prds", tags=["prds"])


@router.post("", response_model=PRD, status_code=status.HTTP_201_CREATED)
async def create_prd(
    prd: PRDCreate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Create a new PRD in the planning stage"""
    try:
        logger.info("Creating PRD", user_id=user_id)
        return prd_service.create_prd(db, prd, user_id)
    except PrdError:
        raise
    except Exception as e:
        logger.error("Failed to create PRD", user_id=user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create PRD"
        )


@router.get("", response_model=PaginatedPRDs)
async def get_prds(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    sort_by: Literal["name", "status", "created_at", "updated_at"] = Query("updated_at"),
    order: Literal["asc", "desc"] = Query("desc"),
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get a page of PRDs for the current user"""
    query = PRDListQuery(page=page, limit=limit, sort_by=sort_by, order=order)
    try:
        return prd_service.list_prds(db, user_id, query)
    except PrdError:
        raise
    except Exception as e:
        logger.error("Failed to get PRDs", user_id=user_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to retrieve PRDs"
        )


@router.get("/{prd_id}", response_model=PRD)
async def get_prd(
    prd_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Get a specific PRD by ID"""
    return prd_service.fetch_prd(db, prd_id, user_id)


@router.patch("/{prd_id}", response_model=PRD)
async def update_prd(
    prd_id: UUID,
    prd_update: PRDUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Rename a PRD"""
    if prd_update.name is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one field must be provided"
        )
    logger.info("Renaming PRD", prd_id=str(prd_id), user_id=user_id)
    return prd_service.rename_prd(db, prd_id, user_id, prd_update.name)


@router.delete("/{prd_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_prd(
    prd_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Delete a PRD together with its questions"""
    prd_service.delete_prd(db, prd_id, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{prd_id}/complete", response_model=PRD)
async def complete_prd(
    prd_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Finalize a reviewed PRD"""
    return prd_service.complete_prd(db, prd_id, user_id)


@router.get("/{prd_id}/export")
async def export_prd(
    prd_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Download a completed PRD as a markdown file"""
    filename, content = prd_service.export_markdown(db, prd_id, user_id)
    return Response(
        content=content,
        media_type="text/markdown; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
