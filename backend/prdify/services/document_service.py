from uuid import UUID

from sqlalchemy.orm import Session

from prdify.core.exceptions import PrdConflictError, PrdGenerationError
from prdify.core.logging import prd_logger
from prdify.models.prd import PrdStatus
from prdify.services.llm_provider import StructuredCompletionProvider
from prdify.services.prd_service import fetch_prd, log_transition, write_prd
from prdify.services.prd_status import Trigger, require_status
from prdify.services.prompts import PRD_DOCUMENT_SCHEMA, build_document_prompts
from prdify.services.text import has_text

DOCUMENT_TEMPERATURE = 0.7


async def generate_document(
    db: Session,
    prd_id: UUID,
    user_id: str,
    llm: StructuredCompletionProvider,
) -> str:
    """Generate the PRD document from the approved summary.

    Moves the PRD from ``planning_review`` to ``prd_review``. The content
    and the new status are written together in a single update.

    Raises:
        PrdNotFoundError: the PRD does not exist for this user.
        PrdConflictError: wrong status, or the PRD has no summary.
        PrdGenerationError: the completion provider failed.
        PrdUpdateError: the store rejected the write.
    """
    prd = fetch_prd(db, prd_id, user_id)
    target = require_status(prd, Trigger.GENERATE_DOCUMENT)
    if not has_text(prd.summary):
        raise PrdConflictError("Cannot generate document: PRD has no summary")

    system_prompt, user_prompt = build_document_prompts(prd)
    try:
        response = await llm.complete(
            system_prompt,
            user_prompt,
            PRD_DOCUMENT_SCHEMA,
            params={"temperature": DOCUMENT_TEMPERATURE},
            operation="generate_document",
        )
    except Exception as e:
        raise PrdGenerationError(f"Failed to generate PRD document: {e}", cause=str(e)) from e

    content = response["document"]
    if not has_text(content):
        raise PrdGenerationError("Failed to generate PRD document: provider returned an empty document")
    content = content.strip()
    write_prd(db, prd_id, {"content": content, "status": target}, "update PRD document")
    log_transition(prd_id, PrdStatus.planning_review, target)
    return content


def update_document(db: Session, prd_id: UUID, user_id: str, content: str) -> str:
    """Overwrite the document of a PRD under review; the status is left untouched"""
    prd = fetch_prd(db, prd_id, user_id)
    require_status(prd, Trigger.UPDATE_DOCUMENT)

    write_prd(db, prd_id, {"content": content}, "update PRD document")
    prd_logger.info("PRD document updated", prd_id=str(prd_id), length=len(content))
    return content
