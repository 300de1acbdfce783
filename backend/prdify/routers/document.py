from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from uuid import UUID

from prdify.database.connection import get_db
from prdify.core.exceptions import PrdError
from prdify.core.logging import get_logger
from prdify.core.security import get_current_user_id
from prdify.routers.deps import get_llm_provider
from prdify.schemas.prd import DocumentResponse, DocumentUpdate
from prdify.services import document_service
from prdify.services.llm_provider import StructuredCompletionProvider

logger = get_logger(__name__)
router = APIRouter(prefix="/prds/{prd_id}/document", tags=["document"])


@router.post("", response_model=DocumentResponse, status_code=status.HTTP_201_CREATED)
async def generate_document(
    prd_id: UUID,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    llm: StructuredCompletionProvider = Depends(get_llm_provider)
):
    """Generate the PRD document from the approved summary"""
    try:
        logger.info("Generating PRD document", prd_id=str(prd_id), user_id=user_id)
        content = await document_service.generate_document(db, prd_id, user_id, llm)
        return {"content": content}
    except PrdError:
        raise
    except Exception as e:
        logger.error("Failed to generate PRD document", prd_id=str(prd_id), error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate PRD document"
        )


@router.patch("", response_model=DocumentResponse)
async def update_document(
    prd_id: UUID,
    command: DocumentUpdate,
    user_id: str = Depends(get_current_user_id),
    db: Session = Depends(get_db)
):
    """Edit the generated document during review"""
    content = document_service.update_document(db, prd_id, user_id, command.content)
    return {"content": content}
