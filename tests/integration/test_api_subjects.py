"""Integration tests for the Subjects API endpoints.

Endpoints tested
----------------
GET    /subjects               — list active subjects with their tree
POST   /subjects               — create one subject per exam board
GET    /subjects/{subject_id}  — single subject
PATCH  /subjects/{subject_id}  — inline edit
DELETE /subjects/{subject_id}  — soft delete

Tests use the ``test_client`` fixture with a mocked DB session.
No real database is used.
"""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock, MagicMock

from tests.fixtures.sample_hierarchy import make_subject


def _execute_result(*, one=None, many=()):
    result = MagicMock()
    result.scalars.return_value.unique.return_value.one_or_none.return_value = one
    result.scalars.return_value.unique.return_value.all.return_value = list(many)
    return result


# ---------------------------------------------------------------------------
# GET /subjects
# ---------------------------------------------------------------------------


def test_list_subjects_returns_full_tree(test_client, mock_db_session, sample_subject):
    """GET /subjects returns each subject nested down to its topics."""
    mock_db_session.execute = AsyncMock(return_value=_execute_result(many=[sample_subject]))

    response = test_client.get("/subjects")

    assert response.status_code == 200, f"GET /subjects failed: {response.text}"
    data = response.json()
    assert data["total"] == 1
    subject = data["subjects"][0]
    assert subject["name"] == "Biology"
    assert [t["title"] for t in subject["terms"]] == ["Term 1", "Term 2", "Term 3"]
    assert len(subject["terms"][0]["weeks"]) == 13
    topics = subject["terms"][0]["weeks"][0]["chapters"][0]["content"]
    assert [t["type"] for t in topics] == ["video", "pdf", "quiz"]


def test_list_subjects_store_failure_returns_502(test_client, mock_db_session):
    from sqlalchemy.exc import OperationalError

    mock_db_session.execute = AsyncMock(side_effect=OperationalError("SELECT", {}, Exception("down")))

    response = test_client.get("/subjects")

    assert response.status_code == 502
    body = response.json()
    assert body["error"] == "store_error"
    assert body["message"].startswith("Failed to fetch subjects")


# ---------------------------------------------------------------------------
# POST /subjects
# ---------------------------------------------------------------------------


def test_create_subject_for_two_boards(test_client, mock_db_session):
    """One independent subject, each with its own 3x13 tree, per exam board."""

    def _reread(stmt):
        added = mock_db_session.add.call_args.args[0]
        return _execute_result(one=make_subject(added.name, added.level, added.exam_board))

    mock_db_session.execute = AsyncMock(side_effect=_reread)

    response = test_client.post(
        "/subjects",
        json={"name": "Chemistry", "level": "A-Level", "exam_boards": ["ZIMSEC", "Cambridge"]},
    )

    assert response.status_code == 201, f"POST /subjects failed: {response.text}"
    data = response.json()
    assert [s["exam_board"] for s in data] == ["ZIMSEC", "Cambridge"]
    assert all(len(s["terms"]) == 3 for s in data)
    assert mock_db_session.add.call_count == 2
    added = [c.args[0] for c in mock_db_session.add.call_args_list]
    assert all(len(term.weeks) == 13 for subject in added for term in subject.terms)


def test_create_subject_requires_an_exam_board(test_client, mock_db_session):
    response = test_client.post(
        "/subjects", json={"name": "Chemistry", "level": "A-Level", "exam_boards": []}
    )

    assert response.status_code == 422
    mock_db_session.add.assert_not_called()


def test_create_subject_rejects_unknown_level(test_client):
    response = test_client.post(
        "/subjects", json={"name": "Chemistry", "level": "Grade 12", "exam_boards": ["ZIMSEC"]}
    )

    assert response.status_code == 422


# ---------------------------------------------------------------------------
# Single subject
# ---------------------------------------------------------------------------


def test_get_unknown_subject_returns_404(test_client, mock_db_session):
    mock_db_session.execute = AsyncMock(return_value=_execute_result(one=None))
    subject_id = uuid.uuid4()

    response = test_client.get(f"/subjects/{subject_id}")

    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "subject_not_found"
    assert body["id"] == str(subject_id)


def test_patch_subject_changes_level(test_client, mock_db_session, sample_subject):
    mock_db_session.get = AsyncMock(return_value=sample_subject)
    mock_db_session.execute = AsyncMock(return_value=_execute_result(one=sample_subject))

    response = test_client.patch(f"/subjects/{sample_subject.id}", json={"level": "A-Level"})

    assert response.status_code == 200, response.text
    assert response.json()["level"] == "A-Level"
    assert sample_subject.level == "A-Level"


def test_delete_subject_is_soft(test_client, mock_db_session, sample_subject):
    mock_db_session.get = AsyncMock(return_value=sample_subject)

    response = test_client.delete(f"/subjects/{sample_subject.id}")

    assert response.status_code == 204
    assert sample_subject.is_active is False
    mock_db_session.delete.assert_not_awaited()


# ---------------------------------------------------------------------------
# Access gate
# ---------------------------------------------------------------------------


def test_anonymous_caller_gets_401(test_client):
    from curriculum_admin.api.dependencies import require_admin
    from curriculum_admin.main import app

    app.dependency_overrides.pop(require_admin)

    response = test_client.get("/subjects")

    assert response.status_code == 401
    assert response.json()["error"] == "authentication_failed"
    assert response.headers["WWW-Authenticate"] == "Bearer"
