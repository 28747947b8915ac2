"""Unit tests for SchoolRepository against a mocked AsyncSession."""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock

import pytest

from curriculum_admin.exceptions import EntityNotFoundError
from curriculum_admin.models import Profile, School, Subject, UserEnrollment
from curriculum_admin.services.school_repository import SchoolRepository
from tests.fixtures.sample_hierarchy import make_profile, make_subject


async def test_create_school_keeps_known_fields(mock_db_session):
    school = await SchoolRepository(mock_db_session).create_school(
        {"name": "Harare High", "principal_name": "Mrs Chirwa", "motto": "ignored"}
    )

    assert isinstance(school, School)
    assert school.name == "Harare High"
    assert school.principal_name == "Mrs Chirwa"
    assert not hasattr(school, "motto")
    mock_db_session.add.assert_called_once_with(school)


async def test_delete_school_is_soft(mock_db_session):
    school = School(id=uuid.uuid4(), name="Harare High", is_active=True)
    mock_db_session.get.return_value = school

    await SchoolRepository(mock_db_session).delete_school(school.id)

    assert school.is_active is False
    mock_db_session.delete.assert_not_awaited()


async def test_update_unknown_school_raises(mock_db_session):
    with pytest.raises(EntityNotFoundError, match="School with id="):
        await SchoolRepository(mock_db_session).update_school(uuid.uuid4(), {"name": "X"})


# ---------------------------------------------------------------------------
# Enrollments
# ---------------------------------------------------------------------------


@pytest.fixture
def people(mock_db_session):
    profile = make_profile("student", email="chipo@school.test")
    subject = make_subject()
    rows = {Profile: profile, Subject: subject}
    mock_db_session.get = AsyncMock(side_effect=lambda model, ident: rows.get(model))
    return profile, subject


async def test_enroll_creates_active_row(mock_db_session, people):
    profile, subject = people

    enrollment = await SchoolRepository(mock_db_session).enroll(profile.id, subject.id)

    assert enrollment.user_id == profile.id
    assert enrollment.subject_id == subject.id
    assert enrollment.is_active is True
    mock_db_session.add.assert_called_once_with(enrollment)


async def test_re_enrolling_reactivates_existing_row(mock_db_session, people):
    profile, subject = people
    existing = UserEnrollment(id=uuid.uuid4(), user_id=profile.id, subject_id=subject.id, is_active=False)
    mock_db_session.scalar.return_value = existing

    enrollment = await SchoolRepository(mock_db_session).enroll(profile.id, subject.id)

    assert enrollment is existing
    assert existing.is_active is True
    mock_db_session.add.assert_not_called()


async def test_enroll_requires_existing_subject(mock_db_session):
    profile = make_profile("student")
    mock_db_session.get = AsyncMock(
        side_effect=lambda model, ident: profile if model is Profile else None
    )

    with pytest.raises(EntityNotFoundError) as exc_info:
        await SchoolRepository(mock_db_session).enroll(profile.id, uuid.uuid4())

    assert exc_info.value.kind == "subject"
