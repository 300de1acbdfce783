import enum
import uuid

from sqlalchemy import Column, Integer, String, DateTime, Text, Enum, Uuid, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from prdify.database.connection import Base


class PrdStatus(str, enum.Enum):
    planning = "planning"
    planning_review = "planning_review"
    prd_review = "prd_review"
    completed = "completed"


class PRD(Base):
    __tablename__ = "prds"
    __table_args__ = (
        UniqueConstraint("user_id", "name", name="unique_user_prd_name"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String(255), nullable=False, index=True)  # Issued by the identity provider
    name = Column(String(200), nullable=False)
    main_problem = Column(Text, nullable=False)
    in_scope = Column(Text, nullable=False)
    out_of_scope = Column(Text, nullable=False)
    success_criteria = Column(Text, nullable=False)
    status = Column(Enum(PrdStatus, name="prd_status"), nullable=False, default=PrdStatus.planning)
    summary = Column(Text, nullable=True)  # Filled when leaving planning
    content = Column(Text, nullable=True)  # Markdown document, filled when entering prd_review
    current_round_number = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    questions = relationship(
        "PrdQuestion",
        back_populates="prd",
        cascade="all, delete-orphan",
    )
