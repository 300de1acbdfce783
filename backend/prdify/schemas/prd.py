from pydantic import BaseModel, Field, StringConstraints
from datetime import datetime
from typing import Annotated, List, Literal, Optional
from uuid import UUID

from prdify.models.prd import PrdStatus

NAME_MAX_LENGTH = 200
SCOPE_MAX_LENGTH = 5000
SUCCESS_CRITERIA_MAX_LENGTH = 2000
SUMMARY_MAX_LENGTH = 10000
DOCUMENT_CONTENT_MAX_LENGTH = 50000


def _trimmed_text(max_length: int):
    return Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=max_length)]


NameText = _trimmed_text(NAME_MAX_LENGTH)
SummaryText = _trimmed_text(SUMMARY_MAX_LENGTH)
DocumentText = _trimmed_text(DOCUMENT_CONTENT_MAX_LENGTH)
ScopeText = _trimmed_text(SCOPE_MAX_LENGTH)
CriteriaText = _trimmed_text(SUCCESS_CRITERIA_MAX_LENGTH)


class PRDBase(BaseModel):
    name: NameText
    main_problem: ScopeText
    in_scope: ScopeText
    out_of_scope: ScopeText
    success_criteria: CriteriaText


class PRDCreate(PRDBase):
    pass


class PRDUpdate(BaseModel):
    name: Optional[NameText] = None


class PRD(BaseModel):
    id: UUID
    user_id: str
    name: str
    main_problem: str
    in_scope: str
    out_of_scope: str
    success_criteria: str
    status: PrdStatus
    summary: Optional[str] = None
    content: Optional[str] = None
    current_round_number: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class PRDListItem(BaseModel):
    id: UUID
    name: str
    status: PrdStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class Pagination(BaseModel):
    page: int
    limit: int
    total_items: int
    total_pages: int


class PaginatedPRDs(BaseModel):
    data: List[PRDListItem]
    pagination: Pagination


class PRDListQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
    sort_by: Literal["name", "status", "created_at", "updated_at"] = "updated_at"
    order: Literal["asc", "desc"] = "desc"


class SummaryUpdate(BaseModel):
    summary: SummaryText


class SummaryResponse(BaseModel):
    summary: str


class DocumentUpdate(BaseModel):
    content: DocumentText


class DocumentResponse(BaseModel):
    content: str
