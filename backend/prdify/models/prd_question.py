import uuid

from sqlalchemy import Column, Integer, DateTime, ForeignKey, Text, Uuid, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from prdify.database.connection import Base


class PrdQuestion(Base):
    __tablename__ = "prd_questions"
    __table_args__ = (
        Index("idx_prd_questions_prd_round", "prd_id", "round_number"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    prd_id = Column(Uuid, ForeignKey("prds.id", ondelete="CASCADE"), nullable=False, index=True)
    round_number = Column(Integer, nullable=False)
    position = Column(Integer, nullable=False, default=0)  # Order within the round
    question = Column(Text, nullable=False)
    answer = Column(Text, nullable=True)  # NULL while awaiting a response
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    prd = relationship("PRD", back_populates="questions")
