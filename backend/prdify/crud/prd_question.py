from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import Dict, Iterable, List, Optional, Set
from uuid import UUID
from prdify.models.prd import PRD
from prdify.models.prd_question import PrdQuestion


def get_prd_questions(
    db: Session,
    prd_id: UUID,
    round_number: Optional[int] = None,
    skip: int = 0,
    limit: Optional[int] = None,
) -> List[PrdQuestion]:
    """Get questions for a PRD ordered by round, then position in the round"""
    query = db.query(PrdQuestion).filter(PrdQuestion.prd_id == prd_id)
    if round_number is not None:
        query = query.filter(PrdQuestion.round_number == round_number)
    query = query.order_by(PrdQuestion.round_number.asc(), PrdQuestion.position.asc()).offset(skip)
    if limit is not None:
        query = query.limit(limit)
    return query.all()


def count_prd_questions(db: Session, prd_id: UUID, round_number: Optional[int] = None) -> int:
    """Count questions for a PRD, optionally within one round"""
    query = db.query(func.count(PrdQuestion.id)).filter(PrdQuestion.prd_id == prd_id)
    if round_number is not None:
        query = query.filter(PrdQuestion.round_number == round_number)
    return query.scalar() or 0


def _build_questions(prd_id: UUID, round_number: int, texts: Iterable[str]) -> List[PrdQuestion]:
    return [
        PrdQuestion(prd_id=prd_id, round_number=round_number, position=index, question=text, answer=None)
        for index, text in enumerate(texts)
    ]


def create_questions(db: Session, prd_id: UUID, round_number: int, texts: Iterable[str]) -> List[PrdQuestion]:
    """Insert a batch of unanswered questions for one round"""
    questions = _build_questions(prd_id, round_number, texts)
    db.add_all(questions)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    for question in questions:
        db.refresh(question)
    return questions


def open_round(db: Session, prd_id: UUID, round_number: int, texts: Iterable[str]) -> List[PrdQuestion]:
    """Insert the questions of a new round and make it the current round in one commit"""
    questions = _build_questions(prd_id, round_number, texts)
    db.add_all(questions)
    db.query(PRD).filter(PRD.id == prd_id).update(
        {"current_round_number": round_number, "updated_at": func.now()},
        synchronize_session=False,
    )
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.expire_all()
    for question in questions:
        db.refresh(question)
    return questions


def update_question_answers(db: Session, prd_id: UUID, answers: Dict[UUID, str]) -> None:
    """Write answers onto question rows belonging to ``prd_id``"""
    try:
        for question_id, text in answers.items():
            db.query(PrdQuestion).filter(
                PrdQuestion.id == question_id,
                PrdQuestion.prd_id == prd_id,
            ).update({"answer": text, "updated_at": func.now()}, synchronize_session=False)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.expire_all()


def get_existing_question_ids(db: Session, question_ids: Iterable[UUID]) -> Set[UUID]:
    """Return which of ``question_ids`` exist, regardless of owning PRD"""
    ids = list(question_ids)
    if not ids:
        return set()
    rows = db.query(PrdQuestion.id).filter(PrdQuestion.id.in_(ids)).all()
    return {row[0] for row in rows}
