"""End-to-end tests of the HTTP surface."""

import uuid

import pytest

from conftest import OTHER_USER_ID, add_questions, make_prd
from prdify.models import PrdStatus
from prdify.services.llm_provider import LLMApiError

NEW_PRD = {
    "name": "Task tracker",
    "main_problem": "Teams lose track of tasks",
    "in_scope": "Task lists and reminders",
    "out_of_scope": "Billing",
    "success_criteria": "Weekly active teams",
}


def test_full_lifecycle(client, llm, auth_headers) -> None:
    response = client.post("/prds", json=NEW_PRD, headers=auth_headers)
    assert response.status_code == 201
    prd = response.json()
    assert prd["status"] == "planning"
    assert prd["current_round_number"] == 1
    base = f"/prds/{prd['id']}"

    llm.queue({"questions": ["Who are the users?", "What is the MVP?"]})
    response = client.post(f"{base}/questions/generate", headers=auth_headers)
    assert response.status_code == 201
    questions = response.json()
    assert [q["round_number"] for q in questions] == [1, 1]

    answers = [{"question_id": q["id"], "text": f" Answer {i} "} for i, q in enumerate(questions)]
    response = client.patch(f"{base}/questions", json={"answers": answers}, headers=auth_headers)
    assert response.status_code == 200
    assert [q["answer"] for q in response.json()] == ["Answer 0", "Answer 1"]

    state = client.get(f"{base}/planning", headers=auth_headers).json()
    assert state["round_complete"] is True
    assert state["unanswered"] == []

    llm.queue({"summary": "## Summary"})
    response = client.post(f"{base}/summary", headers=auth_headers)
    assert response.status_code == 201
    assert response.json() == {"summary": "## Summary"}

    response = client.patch(f"{base}/summary", json={"summary": "Edited summary"}, headers=auth_headers)
    assert response.status_code == 200

    llm.queue({"document": "# Doc"})
    response = client.post(f"{base}/document", headers=auth_headers)
    assert response.status_code == 201
    assert response.json() == {"content": "# Doc"}
    assert "Edited summary" in llm.calls[-1]["user_prompt"]

    response = client.patch(f"{base}/document", json={"content": "# Doc v2"}, headers=auth_headers)
    assert response.status_code == 200

    response = client.post(f"{base}/complete", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "completed"

    response = client.get(f"{base}/export", headers=auth_headers)
    assert response.status_code == 200
    assert response.text == "# Doc v2"
    assert response.headers["content-type"].startswith("text/markdown")
    assert response.headers["content-disposition"] == 'attachment; filename="Task-tracker.md"'


def test_next_round_via_api(client, llm, auth_headers, db) -> None:
    prd = make_prd(db)
    add_questions(db, prd, 1, ["A"])
    llm.queue({"questions": ["Follow-up?"]})

    response = client.post(f"/prds/{prd.id}/rounds/next", headers=auth_headers)
    assert response.status_code == 201

    latest = client.get(f"/prds/{prd.id}/rounds/latest", headers=auth_headers).json()
    assert latest["round_number"] == 2
    assert [q["question"] for q in latest["questions"]] == ["Follow-up?"]


def test_requires_bearer_token(client) -> None:
    response = client.get("/prds")
    assert response.status_code in (401, 403)


def test_invalid_token_is_rejected(client) -> None:
    response = client.get("/prds", headers={"Authorization": "Bearer not-a-token"})
    assert response.status_code == 401


def test_other_users_prd_is_not_found(client, auth_headers, db) -> None:
    prd = make_prd(db, user_id=OTHER_USER_ID)

    response = client.get(f"/prds/{prd.id}", headers=auth_headers)

    assert response.status_code == 404
    assert response.json() == {"error": "PRD not found", "kind": "not_found"}


def test_missing_prd_is_not_found(client, auth_headers) -> None:
    response = client.post(f"/prds/{uuid.uuid4()}/document", headers=auth_headers)
    assert response.status_code == 404


def test_status_conflict_body(client, llm, auth_headers, db) -> None:
    prd = make_prd(db)

    response = client.post(f"/prds/{prd.id}/document", headers=auth_headers)

    assert response.status_code == 409
    assert response.json() == {
        "error": "PRD must be in planning_review status to generate document",
        "kind": "conflict",
        "details": {"expected_status": "planning_review", "actual_status": "planning"},
    }
    assert llm.calls == []


def test_duplicate_name_conflicts(client, auth_headers) -> None:
    assert client.post("/prds", json=NEW_PRD, headers=auth_headers).status_code == 201

    response = client.post("/prds", json=NEW_PRD, headers=auth_headers)

    assert response.status_code == 409
    assert response.json()["error"] == "PRD name must be unique per user"


@pytest.mark.parametrize("round_number", ["0", "abc", "-1"])
def test_invalid_round_is_bad_request(client, auth_headers, db, round_number) -> None:
    prd = make_prd(db)

    response = client.get(f"/prds/{prd.id}/rounds/{round_number}", headers=auth_headers)

    assert response.status_code == 400
    assert response.json()["kind"] == "validation"


def test_answer_outside_current_round_is_bad_request(client, auth_headers, db) -> None:
    prd = make_prd(db, current_round_number=2)
    (old,) = add_questions(db, prd, 1, ["A"])
    add_questions(db, prd, 2, [None])

    response = client.patch(
        f"/prds/{prd.id}/questions",
        json={"answers": [{"question_id": str(old.id), "text": "changed"}]},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["details"]["question_ids"] == [str(old.id)]


def test_generation_failure_hides_provider_details(client, llm, auth_headers, db) -> None:
    prd = make_prd(db, status=PrdStatus.planning_review, summary="S")
    llm.error = LLMApiError("upstream said: invalid api key sk-123", 401)

    response = client.post(f"/prds/{prd.id}/document", headers=auth_headers)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to generate content", "kind": "generation"}


def test_blank_name_is_rejected(client, auth_headers) -> None:
    response = client.post("/prds", json={**NEW_PRD, "name": "   "}, headers=auth_headers)
    assert response.status_code == 422


def test_list_prds(client, auth_headers, db) -> None:
    make_prd(db, name="One")
    make_prd(db, name="Two")
    make_prd(db, user_id=OTHER_USER_ID, name="Foreign")

    body = client.get("/prds", params={"sort_by": "name", "order": "asc"}, headers=auth_headers).json()

    assert [item["name"] for item in body["data"]] == ["One", "Two"]
    assert body["pagination"]["total_items"] == 2


def test_delete_prd(client, auth_headers, db) -> None:
    prd = make_prd(db)

    assert client.delete(f"/prds/{prd.id}", headers=auth_headers).status_code == 204
    assert client.get(f"/prds/{prd.id}", headers=auth_headers).status_code == 404


def test_health(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["services"]["openai"]["status"] == "configured"
