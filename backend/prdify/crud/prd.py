from sqlalchemy.orm import Session
from sqlalchemy import asc, desc, func
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID
from prdify.models.prd import PRD, PrdStatus
from prdify.schemas.prd import PRDCreate

SORT_COLUMNS = {
    "name": PRD.name,
    "status": PRD.status,
    "created_at": PRD.created_at,
    "updated_at": PRD.updated_at,
}


def create_prd(db: Session, prd: PRDCreate, user_id: str) -> PRD:
    """Create a new PRD for a user, starting in planning round 1"""
    db_prd = PRD(
        user_id=user_id,
        name=prd.name,
        main_problem=prd.main_problem,
        in_scope=prd.in_scope,
        out_of_scope=prd.out_of_scope,
        success_criteria=prd.success_criteria,
        status=PrdStatus.planning,
        summary=None,
        content=None,
        current_round_number=1,
    )
    db.add(db_prd)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(db_prd)
    return db_prd


def get_prd(db: Session, prd_id: UUID, user_id: str) -> Optional[PRD]:
    """Get a specific PRD by ID for a user"""
    return db.query(PRD).filter(
        PRD.id == prd_id,
        PRD.user_id == user_id
    ).first()


def get_user_prds(
    db: Session,
    user_id: str,
    skip: int = 0,
    limit: int = 10,
    sort_by: str = "updated_at",
    order: str = "desc",
) -> Tuple[List[PRD], int]:
    """Get a page of PRDs for a user together with the total count"""
    direction = asc if order == "asc" else desc
    query = db.query(PRD).filter(PRD.user_id == user_id)
    total = query.with_entities(func.count(PRD.id)).scalar() or 0
    prds = (
        query.order_by(direction(SORT_COLUMNS[sort_by]), PRD.id)
        .offset(skip)
        .limit(limit)
        .all()
    )
    return prds, total


def update_prd_fields(db: Session, prd_id: UUID, fields: Dict[str, Any]) -> None:
    """Apply one partial update to a PRD row and refresh ``updated_at``"""
    values = dict(fields)
    values["updated_at"] = func.now()
    try:
        db.query(PRD).filter(PRD.id == prd_id).update(values, synchronize_session=False)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.expire_all()


def delete_prd(db: Session, prd_id: UUID, user_id: str) -> bool:
    """Delete a PRD for a user; its questions cascade"""
    db_prd = get_prd(db, prd_id, user_id)
    if not db_prd:
        return False

    db.delete(db_prd)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    return True
