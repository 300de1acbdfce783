import math
import re
from typing import Tuple
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from prdify.core.exceptions import PrdConflictError, PrdNotFoundError, PrdUpdateError
from prdify.core.logging import prd_logger
from prdify.core.monitoring import record_transition
from prdify.crud import prd as prd_crud
from prdify.models.prd import PRD, PrdStatus
from prdify.schemas.prd import PaginatedPRDs, Pagination, PRDCreate, PRDListItem, PRDListQuery
from prdify.services.prd_status import Trigger, is_terminal, require_status
from prdify.services.text import has_text

NAME_CONFLICT_MESSAGE = "PRD name must be unique per user"


def fetch_prd(db: Session, prd_id: UUID, user_id: str) -> PRD:
    """Load a PRD owned by ``user_id``; existence is checked before any guard"""
    try:
        prd = prd_crud.get_prd(db, prd_id, user_id)
    except SQLAlchemyError as e:
        raise PrdUpdateError(f"Failed to fetch PRD: {e}", cause=str(e)) from e
    if prd is None:
        raise PrdNotFoundError()
    return prd


def write_prd(db: Session, prd_id: UUID, fields: dict, action: str) -> None:
    """Persist one partial update, translating store failures"""
    try:
        prd_crud.update_prd_fields(db, prd_id, fields)
    except SQLAlchemyError as e:
        prd_logger.error("PRD write failed", prd_id=str(prd_id), action=action, error=str(e))
        raise PrdUpdateError(f"Failed to {action}: {e}", cause=str(e)) from e


def log_transition(prd_id: UUID, from_status: PrdStatus, to_status: PrdStatus) -> None:
    if from_status == to_status:
        return
    record_transition(from_status.value, to_status.value)
    prd_logger.info(
        "PRD status changed",
        prd_id=str(prd_id),
        from_status=from_status.value,
        to_status=to_status.value,
    )


def create_prd(db: Session, command: PRDCreate, user_id: str) -> PRD:
    try:
        prd = prd_crud.create_prd(db, command, user_id)
    except IntegrityError as e:
        raise PrdConflictError(NAME_CONFLICT_MESSAGE, name=command.name) from e
    except SQLAlchemyError as e:
        raise PrdUpdateError(f"Failed to create PRD: {e}", cause=str(e)) from e
    prd_logger.info("PRD created", prd_id=str(prd.id), user_id=user_id)
    return prd


def list_prds(db: Session, user_id: str, query: PRDListQuery) -> PaginatedPRDs:
    skip = (query.page - 1) * query.limit
    try:
        prds, total = prd_crud.get_user_prds(
            db, user_id, skip=skip, limit=query.limit, sort_by=query.sort_by, order=query.order
        )
    except SQLAlchemyError as e:
        raise PrdUpdateError(f"Failed to fetch PRDs: {e}", cause=str(e)) from e
    return PaginatedPRDs(
        data=[PRDListItem.model_validate(prd) for prd in prds],
        pagination=Pagination(
            page=query.page,
            limit=query.limit,
            total_items=total,
            total_pages=math.ceil(total / query.limit),
        ),
    )


def rename_prd(db: Session, prd_id: UUID, user_id: str, name: str) -> PRD:
    fetch_prd(db, prd_id, user_id)
    try:
        prd_crud.update_prd_fields(db, prd_id, {"name": name})
    except IntegrityError as e:
        db.rollback()
        raise PrdConflictError(NAME_CONFLICT_MESSAGE, name=name) from e
    except SQLAlchemyError as e:
        raise PrdUpdateError(f"Failed to rename PRD: {e}", cause=str(e)) from e
    return fetch_prd(db, prd_id, user_id)


def delete_prd(db: Session, prd_id: UUID, user_id: str) -> None:
    try:
        deleted = prd_crud.delete_prd(db, prd_id, user_id)
    except SQLAlchemyError as e:
        raise PrdUpdateError(f"Failed to delete PRD: {e}", cause=str(e)) from e
    if not deleted:
        raise PrdNotFoundError()
    prd_logger.info("PRD deleted", prd_id=str(prd_id), user_id=user_id)


def complete_prd(db: Session, prd_id: UUID, user_id: str) -> PRD:
    """Finalize a reviewed PRD; a completed PRD is locked"""
    prd = fetch_prd(db, prd_id, user_id)
    target = require_status(prd, Trigger.COMPLETE)
    if not has_text(prd.content):
        raise PrdConflictError("Cannot complete PRD: document content is empty")

    write_prd(db, prd_id, {"status": target}, "complete PRD")
    log_transition(prd_id, PrdStatus.prd_review, target)
    return fetch_prd(db, prd_id, user_id)


def sanitize_filename(name: str) -> str:
    filename = re.sub(r"[^\w\s\-.]", "-", name.strip())
    filename = re.sub(r"\s+", "-", filename)
    filename = re.sub(r"-+", "-", filename)
    return filename.strip("-")


def export_markdown(db: Session, prd_id: UUID, user_id: str) -> Tuple[str, str]:
    """Return ``(filename, content)`` for a completed PRD"""
    prd = fetch_prd(db, prd_id, user_id)
    if not is_terminal(PrdStatus(prd.status)):
        raise PrdConflictError(
            "PRD must be completed before exporting",
            expected_status=PrdStatus.completed,
            actual_status=prd.status,
        )
    if not has_text(prd.content):
        raise PrdConflictError("PRD content is empty and cannot be exported")
    return f"{sanitize_filename(prd.name) or 'prd'}.md", prd.content
