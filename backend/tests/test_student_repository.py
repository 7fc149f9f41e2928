"""
Registrar Backend — Student Repository Tests
==============================================

What:  Tests for the five persistence operations and their error translation.
How:   Most tests run against a real SQLite database (see conftest.engine);
       driver failures are simulated with a mocked session.
"""

from datetime import date, datetime, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from registrar.database import build_session_factory
from registrar.exceptions import (
    ErrorKind,
    NotFoundError,
    StorageError,
    UniqueViolationError,
)
from registrar.models.student import Student
from registrar.services.student_repository import StudentRepository


def make_student(**overrides) -> Student:
    values = {
        "name": "Grace Hopper",
        "email": "grace.hopper@university.edu",
        "age": 22,
        "department": "Computer Science",
    }
    values.update(overrides)
    return Student(**values)


class TestCreate:

    @pytest.mark.asyncio
    async def test_create_assigns_id_and_defaults(self, repository):
        student = await repository.create(make_student())

        assert student.id is not None
        assert student.created_at is not None
        assert student.updated_at is not None
        assert student.enrolled_at == datetime.now(timezone.utc).date()
        assert student.deleted_at is None

    @pytest.mark.asyncio
    async def test_create_keeps_supplied_enrollment_date(self, repository):
        student = await repository.create(make_student(enrolled_at=date(2023, 9, 1)))
        stored = await repository.get_by_id(student.id)
        assert stored.enrolled_at == date(2023, 9, 1)

    @pytest.mark.asyncio
    async def test_duplicate_email_is_unique_violation(self, repository):
        await repository.create(make_student())

        with pytest.raises(UniqueViolationError) as exc_info:
            await repository.create(make_student(name="Someone Else"))

        assert exc_info.value.kind is ErrorKind.STORAGE
        assert "unique" in exc_info.value.details.lower()

    @pytest.mark.asyncio
    async def test_age_check_constraint_is_storage_error(self, repository):
        with pytest.raises(StorageError) as exc_info:
            await repository.create(make_student(age=15))

        assert not isinstance(exc_info.value, UniqueViolationError)

    @pytest.mark.asyncio
    async def test_email_of_deleted_student_can_be_reused(self, repository):
        first = await repository.create(make_student())
        await repository.soft_delete(first.id)

        second = await repository.create(make_student(name="Grace Again"))
        assert second.id != first.id


class TestRead:

    @pytest.mark.asyncio
    async def test_get_by_id_missing(self, repository):
        with pytest.raises(NotFoundError) as exc_info:
            await repository.get_by_id(12345)

        assert exc_info.value.kind is ErrorKind.NOT_FOUND
        assert exc_info.value.message == "Student not found"

    @pytest.mark.asyncio
    async def test_list_all_empty(self, repository):
        assert await repository.list_all() == []

    @pytest.mark.asyncio
    async def test_list_all_excludes_soft_deleted(self, repository):
        kept = await repository.create(make_student())
        gone = await repository.create(make_student(email="gone@university.edu"))
        await repository.soft_delete(gone.id)

        ids = [s.id for s in await repository.list_all()]
        assert ids == [kept.id]


class TestUpdate:

    @pytest.mark.asyncio
    async def test_update_overwrites_all_fields(self, repository):
        original = await repository.create(make_student())

        replacement = make_student(
            id=original.id,
            name="Grace B. Hopper",
            age=23,
            department=None,
            enrolled_at=original.enrolled_at,
            created_at=original.created_at,
        )
        returned = await repository.update(replacement)

        assert returned is replacement
        assert returned.updated_at >= original.updated_at

        stored = await repository.get_by_id(original.id)
        assert stored.name == "Grace B. Hopper"
        assert stored.age == 23
        assert stored.department is None

    @pytest.mark.asyncio
    async def test_update_missing_row(self, repository):
        with pytest.raises(NotFoundError):
            await repository.update(make_student(
                id=999,
                enrolled_at=date(2024, 1, 1),
                created_at=datetime.now(timezone.utc),
            ))

    @pytest.mark.asyncio
    async def test_update_into_taken_email(self, repository):
        await repository.create(make_student())
        other = await repository.create(make_student(email="other@university.edu"))

        with pytest.raises(UniqueViolationError):
            await repository.update(make_student(
                id=other.id,
                enrolled_at=other.enrolled_at,
                created_at=other.created_at,
            ))


class TestSoftDelete:

    @pytest.mark.asyncio
    async def test_soft_delete_hides_but_keeps_row(self, repository, engine):
        student = await repository.create(make_student())

        assert await repository.soft_delete(student.id) is True

        with pytest.raises(NotFoundError):
            await repository.get_by_id(student.id)

        async with build_session_factory(engine)() as session:
            result = await session.execute(select(Student).where(Student.id == student.id))
            row = result.scalar_one()
        assert row.deleted_at is not None

    @pytest.mark.asyncio
    async def test_soft_delete_is_idempotent(self, repository):
        student = await repository.create(make_student())

        assert await repository.soft_delete(student.id) is True
        assert await repository.soft_delete(student.id) is False
        assert await repository.soft_delete(424242) is False


class TestStorageFailures:
    """Driver errors surface as StorageError with the driver message."""

    @pytest.mark.asyncio
    async def test_operational_error_is_translated(self, mock_db_session):
        session, factory = mock_db_session
        session.execute.side_effect = OperationalError(
            "SELECT", {}, ConnectionRefusedError("connection refused")
        )
        repo = StudentRepository(factory)

        with pytest.raises(StorageError) as exc_info:
            await repo.list_all()

        assert "connection refused" in exc_info.value.details
        session.rollback.assert_awaited_once()
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_not_found_is_not_wrapped(self, mock_db_session):
        session, factory = mock_db_session
        mock_result = MagicMock()
        mock_result.scalar_one_or_none.return_value = None
        session.execute.return_value = mock_result
        repo = StudentRepository(factory)

        with pytest.raises(NotFoundError):
            await repo.get_by_id(1)

        session.commit.assert_awaited_once()
