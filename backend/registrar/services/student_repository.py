"""
Registrar Backend — Student Repository (Persistence Gateway)
==============================================================

What:  The five database operations on the `students` table.
How:   Each operation opens its own session from the injected factory, runs
       in its own transaction and commits before returning. Every read and
       write path carries an explicit `deleted_at IS NULL` predicate.
Who:   Constructed by the application factory; called by the student routes.

Error Translation:
    no active row                  → NotFoundError        (kind NOT_FOUND)
    active-email unique collision  → UniqueViolationError (kind STORAGE)
    any other driver/ORM failure   → StorageError         (kind STORAGE)

    The driver message is kept in `details` so the handler can pass it on.

The repository never checks existence on behalf of the caller: update()
and soft_delete() are meant to be preceded by get_by_id(), and the window
between the two calls is not transactional.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from registrar.exceptions import NotFoundError, StorageError, UniqueViolationError
from registrar.models.student import Student, utcnow

logger = logging.getLogger(__name__)

# SQLSTATE for unique_violation on PostgreSQL
_PG_UNIQUE_VIOLATION = "23505"


def _is_unique_violation(exc: IntegrityError) -> bool:
    orig = exc.orig
    if getattr(orig, "sqlstate", None) == _PG_UNIQUE_VIOLATION:
        return True
    if getattr(orig, "pgcode", None) == _PG_UNIQUE_VIOLATION:
        return True
    # SQLite: "UNIQUE constraint failed: students.email"
    return "unique" in str(orig).lower()


class StudentRepository:
    """
    Database access for Student records.

    Args:
        session_factory: async_sessionmaker bound to the application's engine
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
        """
        Yields a session, committing on success and translating failures.

        Kind-tagged application errors raised inside the block propagate as-is.
        """
        try:
            async with self._session_factory() as session:
                try:
                    yield session
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise
        except IntegrityError as e:
            if _is_unique_violation(e):
                logger.warning("Unique violation during %s: %s", operation, e.orig)
                raise UniqueViolationError(
                    message="A student with this email already exists",
                    details=str(e.orig),
                ) from e
            logger.error("Integrity error during %s: %s", operation, e.orig)
            raise StorageError(details=str(e.orig)) from e
        except (SQLAlchemyError, OSError) as e:
            logger.error("Database error during %s: %s", operation, str(e))
            raise StorageError(details=str(e)) from e

    async def create(self, student: Student) -> Student:
        """
        Inserts a new student.

        Returns:
            The same instance with id, timestamps and enrolled_at populated.
        """
        async with self._session("create") as session:
            session.add(student)
            await session.flush()  # Assigns the primary key
        logger.info("Student %s created", student.id)
        return student

    async def get_by_id(self, student_id: int) -> Student:
        """
        Query plan:
            SELECT ... FROM students WHERE id = :id AND deleted_at IS NULL

        Raises:
            NotFoundError: no row, or the row is soft-deleted
        """
        async with self._session("get_by_id") as session:
            result = await session.execute(
                select(Student).where(
                    Student.id == student_id,
                    Student.deleted_at.is_(None),
                )
            )
            student = result.scalar_one_or_none()

        if student is None:
            raise NotFoundError(resource="Student", resource_id=student_id)
        return student

    async def list_all(self) -> List[Student]:
        """Returns every active student; order is whatever the database yields."""
        async with self._session("list_all") as session:
            result = await session.execute(
                select(Student).where(Student.deleted_at.is_(None))
            )
            return list(result.scalars().all())

    async def update(self, student: Student) -> Student:
        """
        Overwrites every client-writable column of the active row `student.id`.

        Fields left as None on `student` are written as NULL (or rejected by
        the database when the column is NOT NULL); callers copy the values
        they want to keep from the stored record first.

        Returns:
            `student` itself with `updated_at` refreshed, not a re-fetched row.

        Raises:
            NotFoundError: the row vanished or was soft-deleted meanwhile
        """
        now = utcnow()
        async with self._session("update") as session:
            result = await session.execute(
                update(Student)
                .where(
                    Student.id == student.id,
                    Student.deleted_at.is_(None),
                )
                .values(
                    name=student.name,
                    email=student.email,
                    age=student.age,
                    department=student.department,
                    enrolled_at=student.enrolled_at,
                    created_at=student.created_at,
                    updated_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            affected = result.rowcount

        if affected == 0:
            raise NotFoundError(resource="Student", resource_id=student.id)

        student.updated_at = now
        logger.info("Student %s updated", student.id)
        return student

    async def soft_delete(self, student_id: int) -> bool:
        """
        Stamps deleted_at on the active row.

        Returns:
            True if a row was marked, False if it was missing or already deleted.
        """
        async with self._session("soft_delete") as session:
            result = await session.execute(
                update(Student)
                .where(
                    Student.id == student_id,
                    Student.deleted_at.is_(None),
                )
                .values(deleted_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            marked = result.rowcount > 0

        if marked:
            logger.info("Student %s soft-deleted", student_id)
        return marked
