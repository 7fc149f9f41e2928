"""
Registrar Backend — Student SQLAlchemy Model
==============================================

What:  ORM model representing the `students` table.
How:   Inherits from the shared DeclarativeBase; `create_schema()` and Alembic
       both read this for the table definition.
Who:   Used by StudentRepository for all persistence and by the handlers as
       the in-memory record that flows back to the client.

Table Design:
    - id: integer surrogate key (BIGINT on PostgreSQL)
    - name / email / department: bounded VARCHARs
    - age: CHECK (age >= 16), mirrored by the request validator
    - enrolled_at: calendar DATE, defaults to today (UTC)
    - created_at / updated_at: UTC timestamps maintained by the repository
    - deleted_at: soft-delete marker; NULL means active

    Email uniqueness is a partial unique index over active rows only, so the
    address of a soft-deleted student can be registered again.
"""

from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Date,
    DateTime,
    Index,
    Integer,
    String,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from registrar.database import Base

NAME_MAX_LENGTH = 100
EMAIL_MAX_LENGTH = 100
DEPARTMENT_MAX_LENGTH = 50
MINIMUM_AGE = 16
# Upper bound of the 32-bit INTEGER age column
MAXIMUM_AGE_VALUE = 2**31 - 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def utc_today() -> date:
    return utcnow().date()


class Student(Base):
    """
    A student record.

    Lifecycle:
        1. Inserted by StudentRepository.create() after validation passes
        2. Overwritten field-by-field by StudentRepository.update()
        3. Marked with deleted_at by StudentRepository.soft_delete(); the row
           is kept but every read path filters it out
    """

    __tablename__ = "students"

    # SQLite only auto-increments INTEGER PRIMARY KEY columns.
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    name: Mapped[str] = mapped_column(String(NAME_MAX_LENGTH), nullable=False)

    email: Mapped[str] = mapped_column(String(EMAIL_MAX_LENGTH), nullable=False)

    age: Mapped[int] = mapped_column(Integer, nullable=False)

    department: Mapped[Optional[str]] = mapped_column(
        String(DEPARTMENT_MAX_LENGTH),
        nullable=True,
        default=None,
    )

    enrolled_at: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        default=utc_today,
        server_default=text("CURRENT_DATE"),
    )

    # ── Timestamps ────────────────────────────────────────────────────────
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        server_default=text("CURRENT_TIMESTAMP"),
    )

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
    )

    __table_args__ = (
        CheckConstraint(f"age >= {MINIMUM_AGE}", name="ck_students_age_minimum"),
        Index(
            "uq_students_email_active",
            "email",
            unique=True,
            postgresql_where=text("deleted_at IS NULL"),
            sqlite_where=text("deleted_at IS NULL"),
        ),
        Index("idx_students_deleted_at", "deleted_at"),
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self) -> str:
        return f"<Student(id={self.id}, email='{self.email}', deleted={self.is_deleted})>"
