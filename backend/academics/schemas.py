"""Pydantic request schemas used by the API.

Schemas enforce types, required fields and maximum lengths; rules that
need the database (uniqueness, foreign-key existence) or the password
policy are checked by the services. `*Create` schemas require every
field. `*Update` fields may be omitted so PUT can apply a partial update,
but an explicit null is rejected like any other invalid value. Ids are
bounded to the range an INTEGER key can hold.
"""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from .models import MAX_ID, EntityStatus


class LoginIn(BaseModel):
    """Payload for the login endpoint."""
    email: EmailStr
    password: str = Field(min_length=1)


class RegisterIn(BaseModel):
    """Payload for account registration."""
    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    password: str
    password_confirmation: Optional[str] = None


class PasswordChangeIn(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str
    new_password_confirmation: Optional[str] = None


class StudentCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=80)
    last_name: str = Field(min_length=1, max_length=80)
    document_id: str = Field(min_length=1, max_length=15)
    status: EntityStatus


class StudentUpdate(BaseModel):
    first_name: str = Field(default=None, min_length=1, max_length=80)
    last_name: str = Field(default=None, min_length=1, max_length=80)
    document_id: str = Field(default=None, min_length=1, max_length=15)
    status: EntityStatus = None


class TeacherCreate(BaseModel):
    first_name: str = Field(min_length=1, max_length=80)
    last_name: str = Field(min_length=1, max_length=80)
    document_id: str = Field(min_length=1, max_length=15)
    academic_title: str = Field(min_length=1, max_length=80)
    status: EntityStatus


class TeacherUpdate(BaseModel):
    first_name: str = Field(default=None, min_length=1, max_length=80)
    last_name: str = Field(default=None, min_length=1, max_length=80)
    document_id: str = Field(default=None, min_length=1, max_length=15)
    academic_title: str = Field(default=None, min_length=1, max_length=80)
    status: EntityStatus = None


class CourseCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    status: EntityStatus


class CourseUpdate(BaseModel):
    name: str = Field(default=None, min_length=1, max_length=100)
    status: EntityStatus = None


class SubjectCreate(BaseModel):
    name: str = Field(min_length=1, max_length=80)
    status: EntityStatus


class SubjectUpdate(BaseModel):
    name: str = Field(default=None, min_length=1, max_length=80)
    status: EntityStatus = None


class TeacherSubjectIn(BaseModel):
    teacher_id: int = Field(ge=1, le=MAX_ID)
    subject_id: int = Field(ge=1, le=MAX_ID)


class TeacherSubjectUpdate(BaseModel):
    teacher_id: int = Field(default=None, ge=1, le=MAX_ID)
    subject_id: int = Field(default=None, ge=1, le=MAX_ID)


class StudentCourseIn(BaseModel):
    student_id: int = Field(ge=1, le=MAX_ID)
    course_id: int = Field(ge=1, le=MAX_ID)


class StudentCourseUpdate(BaseModel):
    student_id: int = Field(default=None, ge=1, le=MAX_ID)
    course_id: int = Field(default=None, ge=1, le=MAX_ID)


class SubjectCourseIn(BaseModel):
    subject_id: int = Field(ge=1, le=MAX_ID)
    course_id: int = Field(ge=1, le=MAX_ID)


class SubjectCourseUpdate(BaseModel):
    subject_id: int = Field(default=None, ge=1, le=MAX_ID)
    course_id: int = Field(default=None, ge=1, le=MAX_ID)
