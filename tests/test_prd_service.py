"""Tests for PRD records: creation, listing, renaming, completion and export."""

import uuid

import pytest

from conftest import OTHER_USER_ID, USER_ID, add_questions, make_prd
from prdify.core.exceptions import PrdConflictError, PrdNotFoundError
from prdify.crud import prd_question as question_crud
from prdify.models import PrdStatus
from prdify.schemas.prd import PRDCreate, PRDListQuery
from prdify.services import prd_service


def command(name="Task tracker"):
    return PRDCreate(
        name=f"  {name} ",
        main_problem="Teams lose track of tasks",
        in_scope="Task lists",
        out_of_scope="Billing",
        success_criteria="Weekly active teams",
    )


class TestCreate:
    def test_starts_in_planning_round_one(self, db) -> None:
        prd = prd_service.create_prd(db, command(), USER_ID)

        assert prd.name == "Task tracker"
        assert prd.status == PrdStatus.planning
        assert prd.current_round_number == 1
        assert prd.summary is None
        assert prd.content is None

    def test_duplicate_name_for_same_user_conflicts(self, db) -> None:
        prd_service.create_prd(db, command(), USER_ID)

        with pytest.raises(PrdConflictError, match="PRD name must be unique per user"):
            prd_service.create_prd(db, command(), USER_ID)

    def test_same_name_allowed_for_other_user(self, db) -> None:
        prd_service.create_prd(db, command(), USER_ID)
        other = prd_service.create_prd(db, command(), OTHER_USER_ID)
        assert other.user_id == OTHER_USER_ID


class TestListAndFetch:
    def test_lists_only_own_prds_with_pagination(self, db) -> None:
        for index in range(3):
            make_prd(db, name=f"PRD {index}")
        make_prd(db, user_id=OTHER_USER_ID, name="Foreign")

        page = prd_service.list_prds(db, USER_ID, PRDListQuery(page=2, limit=2, sort_by="name", order="asc"))

        assert [item.name for item in page.data] == ["PRD 2"]
        assert page.pagination.total_items == 3
        assert page.pagination.total_pages == 2

    def test_fetch_hides_other_users_prd(self, db) -> None:
        prd = make_prd(db, user_id=OTHER_USER_ID)
        with pytest.raises(PrdNotFoundError, match="PRD not found"):
            prd_service.fetch_prd(db, prd.id, USER_ID)


class TestRenameAndDelete:
    def test_rename(self, db) -> None:
        prd = make_prd(db)
        renamed = prd_service.rename_prd(db, prd.id, USER_ID, "Renamed")
        assert renamed.name == "Renamed"

    def test_rename_to_taken_name_conflicts(self, db) -> None:
        make_prd(db, name="Taken")
        prd = make_prd(db, name="Mine")

        with pytest.raises(PrdConflictError):
            prd_service.rename_prd(db, prd.id, USER_ID, "Taken")

        assert prd_service.fetch_prd(db, prd.id, USER_ID).name == "Mine"

    def test_delete_removes_questions(self, db) -> None:
        prd = make_prd(db)
        add_questions(db, prd, 1, ["A", None])

        prd_service.delete_prd(db, prd.id, USER_ID)

        with pytest.raises(PrdNotFoundError):
            prd_service.fetch_prd(db, prd.id, USER_ID)
        assert question_crud.count_prd_questions(db, prd.id) == 0

    def test_delete_missing_is_not_found(self, db) -> None:
        with pytest.raises(PrdNotFoundError):
            prd_service.delete_prd(db, uuid.uuid4(), USER_ID)


class TestComplete:
    def test_completes_reviewed_prd(self, db) -> None:
        prd = make_prd(db, status=PrdStatus.prd_review, summary="S", content="# Doc")

        completed = prd_service.complete_prd(db, prd.id, USER_ID)

        assert completed.status == PrdStatus.completed
        assert completed.content == "# Doc"

    def test_empty_document_cannot_be_completed(self, db) -> None:
        prd = make_prd(db, status=PrdStatus.prd_review, summary="S", content="  ")
        with pytest.raises(PrdConflictError):
            prd_service.complete_prd(db, prd.id, USER_ID)

    @pytest.mark.parametrize("status", [PrdStatus.planning, PrdStatus.planning_review, PrdStatus.completed])
    def test_requires_prd_review(self, db, status) -> None:
        prd = make_prd(db, status=status, content="# Doc")
        with pytest.raises(PrdConflictError):
            prd_service.complete_prd(db, prd.id, USER_ID)


class TestExport:
    @pytest.mark.parametrize(
        "name, expected",
        [
            ("Task tracker", "Task-tracker"),
            ("  My/App: v2  ", "My-App-v2"),
            ("a  --  b", "a-b"),
        ],
    )
    def test_sanitize_filename(self, name, expected) -> None:
        assert prd_service.sanitize_filename(name) == expected

    def test_exports_completed_prd(self, db) -> None:
        prd = make_prd(db, status=PrdStatus.completed, summary="S", content="# Doc")

        filename, content = prd_service.export_markdown(db, prd.id, USER_ID)

        assert filename == "Task-tracker.md"
        assert content == "# Doc"

    def test_unfinished_prd_cannot_be_exported(self, db) -> None:
        prd = make_prd(db, status=PrdStatus.prd_review, content="# Doc")

        with pytest.raises(PrdConflictError) as exc_info:
            prd_service.export_markdown(db, prd.id, USER_ID)

        assert exc_info.value.details == {"expected_status": "completed", "actual_status": "prd_review"}
