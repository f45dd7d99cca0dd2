"""SQLModel data models.

This module defines the application's database tables using SQLModel.
The four academic entities share a soft-delete `status` column; the three
association tables are plain pairs of foreign keys. `User` and
`AccessToken` form the credential store.
"""

from enum import Enum
from typing import Optional
from sqlmodel import SQLModel, Field
from datetime import datetime, timezone

# largest value an INTEGER primary key can hold
MAX_ID = 2**63 - 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EntityStatus(str, Enum):
    """Soft-delete lifecycle flag: rows are deactivated, never removed."""
    ACTIVE = "A"
    INACTIVE = "I"


class User(SQLModel, table=True):
    """A registered API user.

    Fields:
    - `email`: unique login name
    - `password_hash`: hashed password string (never store plaintext)
    """
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(max_length=255)
    email: str = Field(index=True, nullable=False, unique=True, max_length=255)
    password_hash: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class AccessToken(SQLModel, table=True):
    """An issued bearer token.

    Only the sha256 of the secret part is stored. A token is usable while
    `revoked_at` is empty and `expires_at` lies in the future.
    """
    __tablename__ = "access_tokens"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    name: str = Field(default="auth_token", max_length=100)
    token_hash: str = Field(max_length=64)
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime
    last_used_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None


class Entity(SQLModel):
    """Columns shared by every soft-deletable academic entity."""
    id: Optional[int] = Field(default=None, primary_key=True)
    status: EntityStatus = Field(default=EntityStatus.ACTIVE, index=True)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class Student(Entity, table=True):
    __tablename__ = "students"

    first_name: str = Field(max_length=80)
    last_name: str = Field(max_length=80)
    document_id: str = Field(max_length=15, index=True)


class Teacher(Entity, table=True):
    __tablename__ = "teachers"

    first_name: str = Field(max_length=80)
    last_name: str = Field(max_length=80)
    document_id: str = Field(max_length=15, index=True)
    academic_title: str = Field(max_length=80)


class Course(Entity, table=True):
    __tablename__ = "courses"

    name: str = Field(max_length=100, index=True)


class Subject(Entity, table=True):
    __tablename__ = "subjects"

    name: str = Field(max_length=80, index=True)


# The association tables carry no unique constraint on their key pair;
# duplicates are rejected by a read before each write.

class TeacherSubject(SQLModel, table=True):
    """A teacher assigned to teach a subject."""
    __tablename__ = "teacher_subjects"

    id: Optional[int] = Field(default=None, primary_key=True)
    teacher_id: int = Field(foreign_key="teachers.id", index=True)
    subject_id: int = Field(foreign_key="subjects.id", index=True)
    created_at: datetime = Field(default_factory=utcnow)


class StudentCourse(SQLModel, table=True):
    """A student enrolled in a course."""
    __tablename__ = "student_courses"

    id: Optional[int] = Field(default=None, primary_key=True)
    student_id: int = Field(foreign_key="students.id", index=True)
    course_id: int = Field(foreign_key="courses.id", index=True)
    created_at: datetime = Field(default_factory=utcnow)


class SubjectCourse(SQLModel, table=True):
    """A subject taught as part of a course."""
    __tablename__ = "subject_courses"

    id: Optional[int] = Field(default=None, primary_key=True)
    subject_id: int = Field(foreign_key="subjects.id", index=True)
    course_id: int = Field(foreign_key="courses.id", index=True)
    created_at: datetime = Field(default_factory=utcnow)
