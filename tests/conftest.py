"""Shared fixtures: in-memory database, fake completion provider, API client."""

import os

os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret"
os.environ.pop("REDIS_URL", None)

from typing import Any, Dict, List, Optional  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from prdify.core.security import create_access_token  # noqa: E402
from prdify.database.connection import Base, SessionLocal, create_tables, engine, get_db  # noqa: E402
from prdify.main import app  # noqa: E402
from prdify.models import PRD, PrdQuestion, PrdStatus  # noqa: E402

USER_ID = "user-1"
OTHER_USER_ID = "user-2"


class FakeCompletionProvider:
    """Records calls and returns queued results, or raises ``error``."""

    is_configured = True

    def __init__(self) -> None:
        self.results: List[Dict[str, Any]] = []
        self.calls: List[Dict[str, Any]] = []
        self.error: Optional[Exception] = None

    def queue(self, result: Dict[str, Any]) -> None:
        self.results.append(result)

    async def complete(self, system_prompt, user_prompt, json_schema, params=None, operation="completion"):
        self.calls.append(
            {
                "system_prompt": system_prompt,
                "user_prompt": user_prompt,
                "json_schema": json_schema,
                "params": params,
                "operation": operation,
            }
        )
        if self.error is not None:
            raise self.error
        return self.results.pop(0)


@pytest.fixture
def db():
    create_tables(engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def llm() -> FakeCompletionProvider:
    return FakeCompletionProvider()


@pytest.fixture
def client(db, llm):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.state.llm_provider = llm
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
    app.state.llm_provider = None


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(USER_ID)}"}


def make_prd(
    db,
    user_id: str = USER_ID,
    name: str = "Task tracker",
    status: PrdStatus = PrdStatus.planning,
    summary: Optional[str] = None,
    content: Optional[str] = None,
    current_round_number: int = 1,
) -> PRD:
    prd = PRD(
        user_id=user_id,
        name=name,
        main_problem="Teams lose track of tasks",
        in_scope="Task lists and reminders",
        out_of_scope="Billing",
        success_criteria="Weekly active teams",
        status=status,
        summary=summary,
        content=content,
        current_round_number=current_round_number,
    )
    db.add(prd)
    db.commit()
    db.refresh(prd)
    return prd


def add_questions(db, prd: PRD, round_number: int, answers: List[Optional[str]]) -> List[PrdQuestion]:
    questions = [
        PrdQuestion(
            prd_id=prd.id,
            round_number=round_number,
            position=index,
            question=f"Question {round_number}.{index + 1}",
            answer=answer,
        )
        for index, answer in enumerate(answers)
    ]
    db.add_all(questions)
    db.commit()
    for question in questions:
        db.refresh(question)
    return questions
