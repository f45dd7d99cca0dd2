"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories and
validation rules. Services are intentionally thin: they enforce the rules
that need the database, raise `errors.ApiError` subclasses on failure and
persist through repositories. Database failures are rolled back and
re-raised as `ServerError`.
"""

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel

from . import models, repositories
from .config import settings
from .errors import Conflict, InvalidCredentials, NotFound, ServerError, Unauthorized, ValidationFailed
from .models import MAX_ID, EntityStatus, utcnow
from .passwords import hash_password, registration_problems, strong_problems, verify_password

logger = logging.getLogger("academics.services")

TIMESTAMPS = {"created_at", "updated_at"}


def persist(session: Session, what: str, fn: Callable, *args):
    """Run a repository write, turning database failures into `ServerError`."""
    try:
        return fn(*args)
    except SQLAlchemyError as exc:
        session.rollback()
        logger.exception("persistence_failed while %s", what)
        raise ServerError.from_exception(f"Unexpected error while {what}", exc) from exc


def _as_utc(value: datetime) -> datetime:
    # SQLite hands datetimes back without tzinfo
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _sha256(secret: str) -> str:
    return hashlib.sha256(secret.encode("utf-8")).hexdigest()


def public_user(user: models.User) -> dict:
    return user.model_dump(exclude={"password_hash"})


class TokenService:
    """Issue, validate and revoke opaque bearer tokens.

    Plain tokens look like `<id>|<secret>`; only the sha256 of the secret
    is stored, so a leaked table cannot be replayed.
    """
    def __init__(self, session: Session):
        self.session = session
        self.token_repo = repositories.TokenRepository(session)

    def issue(self, user: models.User, name: str = "auth_token") -> str:
        secret = secrets.token_urlsafe(30)
        token = models.AccessToken(
            user_id=user.id,
            name=name,
            token_hash=_sha256(secret),
            expires_at=utcnow() + timedelta(hours=settings.TOKEN_EXPIRE_HOURS),
        )
        token = persist(self.session, "issuing the access token", self.token_repo.create, token)
        return f"{token.id}|{secret}"

    def validate(self, plain: str) -> models.AccessToken:
        """Return the live token row for `plain` or raise `Unauthorized`."""
        token_id, sep, secret = plain.partition("|")
        if not sep or not secret or not (token_id.isascii() and token_id.isdigit()):
            raise Unauthorized("Invalid token")
        if not 1 <= int(token_id) <= MAX_ID:
            raise Unauthorized("Invalid token")
        token = self.token_repo.get(int(token_id))
        if token is None or not hmac.compare_digest(token.token_hash, _sha256(secret)):
            raise Unauthorized("Invalid token")
        if token.revoked_at is not None:
            raise Unauthorized("Token has been revoked")
        now = utcnow()
        if _as_utc(token.expires_at) <= now:
            raise Unauthorized("Token has expired")
        persist(self.session, "recording token use", self.token_repo.touch, token, now)
        return token

    def revoke(self, token: models.AccessToken) -> None:
        persist(self.session, "revoking the access token", self.token_repo.revoke, token)

    def revoke_all(self, user: models.User) -> int:
        return persist(self.session, "revoking access tokens", self.token_repo.revoke_all_for_user, user.id)


class AuthService:
    """Account operations: register, login, logout and password change."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)
        self.tokens = TokenService(session)

    def register(self, name: str, email: str, password: str, confirmation: Optional[str]) -> Tuple[models.User, str]:
        """Create a user with a hashed password and issue its first token."""
        errors: Dict[str, List[str]] = {}
        if self.user_repo.get_by_email(email):
            errors["email"] = ["The email has already been taken."]
        problems = registration_problems(password)
        if confirmation != password:
            problems.append("The password confirmation does not match.")
        if problems:
            errors["password"] = problems
        if errors:
            raise ValidationFailed(errors=errors)
        user = models.User(name=name, email=email, password_hash=hash_password(password))
        user = persist(self.session, "registering the user", self.user_repo.create, user)
        logger.info("user_registered user_id=%s", user.id)
        return user, self.tokens.issue(user)

    def login(self, email: str, password: str) -> Tuple[models.User, str]:
        """Verify credentials and return the user with a fresh token."""
        user = self.user_repo.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.info("login_failed email=%s", email)
            raise InvalidCredentials()
        return user, self.tokens.issue(user)

    def logout(self, token: models.AccessToken) -> None:
        """Revoke only the token used for the current request."""
        self.tokens.revoke(token)
        logger.info("logout user_id=%s token_id=%s", token.user_id, token.id)

    def change_password(self, user: models.User, current: str, new: str, confirmation: Optional[str]) -> str:
        """Replace the password, revoke every token and return a new one."""
        if not verify_password(current, user.password_hash):
            raise Unauthorized("The current password is invalid")
        problems = strong_problems(new)
        if confirmation != new:
            problems.append("The new password confirmation does not match.")
        if problems:
            raise ValidationFailed(errors={"new_password": problems})
        user.password_hash = hash_password(new)
        persist(self.session, "updating the password", self.user_repo.save, user)
        revoked = self.tokens.revoke_all(user)
        logger.info("password_changed user_id=%s revoked_tokens=%s", user.id, revoked)
        return self.tokens.issue(user, name="api-token")


class EntityService:
    """CRUD with soft delete for one academic entity.

    Subclasses name the repository, a human label used in messages, and the
    fields echoed back after create and delete.
    """
    repository_cls: Type[repositories.EntityRepository]
    label: str
    plural: str
    echo_fields: Tuple[str, ...]

    def __init__(self, session: Session):
        self.session = session
        self.repo = self.repository_cls(session)

    @property
    def title(self) -> str:
        return self.label.capitalize()

    def list(self) -> List[models.Entity]:
        rows = self.repo.list_active()
        if not rows:
            raise NotFound(f"No active {self.plural} found")
        return rows

    def get(self, entity_id: int) -> models.Entity:
        entity = self.repo.get_active(entity_id)
        if entity is None:
            raise NotFound(f"{self.title} not found or inactive")
        return entity

    def create(self, payload: BaseModel) -> models.Entity:
        data = payload.model_dump()
        self._check_unique(data)
        entity = self.repo.model(**data)
        return persist(self.session, f"creating the {self.label}", self.repo.create, entity)

    def update(self, entity_id: int, payload: BaseModel) -> models.Entity:
        """Apply the fields present in `payload` to an Active record."""
        entity = self.get(entity_id)
        changes = payload.model_dump(exclude_unset=True)
        self._check_unique(changes, exclude_id=entity.id)
        for field, value in changes.items():
            setattr(entity, field, value)
        return persist(self.session, f"updating the {self.label}", self.repo.save, entity)

    def deactivate(self, entity_id: int) -> models.Entity:
        entity = self.repo.get_active(entity_id)
        if entity is None:
            raise NotFound(f"{self.title} not found or already inactive")
        entity.status = EntityStatus.INACTIVE
        return persist(self.session, f"deleting the {self.label}", self.repo.save, entity)

    def echo(self, entity: models.Entity, stamp: str) -> dict:
        """Minimal response body: the echo fields plus one timestamp."""
        out = {field: getattr(entity, field) for field in self.echo_fields}
        out[stamp] = getattr(entity, stamp)
        return out

    @staticmethod
    def public(entity: models.Entity) -> dict:
        return entity.model_dump(exclude=TIMESTAMPS)

    def _check_unique(self, data: dict, exclude_id: Optional[int] = None) -> None:
        field = self.repo.unique_field
        if field in data and self.repo.is_taken(data[field], exclude_id=exclude_id):
            label = field.replace("_", " ")
            raise ValidationFailed(errors={field: [f"The {label} has already been taken."]})


class StudentService(EntityService):
    repository_cls = repositories.StudentRepository
    label = "student"
    plural = "students"
    echo_fields = ("first_name", "last_name")


class TeacherService(EntityService):
    repository_cls = repositories.TeacherRepository
    label = "teacher"
    plural = "teachers"
    echo_fields = ("first_name", "last_name")


class CourseService(EntityService):
    repository_cls = repositories.CourseRepository
    label = "course"
    plural = "courses"
    echo_fields = ("name",)


class SubjectService(EntityService):
    repository_cls = repositories.SubjectRepository
    label = "subject"
    plural = "subjects"
    echo_fields = ("name",)


def display_name(entity: models.Entity) -> str:
    if hasattr(entity, "first_name"):
        return f"{entity.first_name} {entity.last_name}"
    return entity.name


def _side(key: str) -> str:
    """`teacher_id` -> `teacher`."""
    return key[:-3] if key.endswith("_id") else key


class AssociationService:
    """Create, list, update and hard-delete rows of one join table."""
    repository_cls: Type[repositories.AssociationRepository]
    description: str
    duplicate_message: str

    def __init__(self, session: Session):
        self.session = session
        self.repo = self.repository_cls(session)

    @property
    def keys(self) -> Tuple[str, str]:
        return self.repo.left[0], self.repo.right[0]

    def list(self) -> List[dict]:
        """Return associations joined with both sides, both sides Active."""
        rows = self.repo.list_active()
        if not rows:
            raise NotFound(f"No {self.description} found")
        left_key, right_key = self.keys
        return [
            {
                **association.model_dump(),
                _side(left_key): EntityService.public(left),
                _side(right_key): EntityService.public(right),
            }
            for association, left, right in rows
        ]

    def create(self, payload: BaseModel) -> SQLModel:
        data = payload.model_dump()
        self._check_references(data)
        left_key, right_key = self.keys
        if self.repo.find_pair(data[left_key], data[right_key]):
            raise Conflict(self.duplicate_message)
        association = self.repo.model(**data)
        return persist(self.session, "creating the assignment", self.repo.create, association)

    def show_for_parent(self, parent_id: int) -> dict:
        """Return the parent's name and its Active related records."""
        parent_key, _ = self.repo.parent
        child_key, _ = self.repo.child
        parent_label, child_label = _side(parent_key), _side(child_key)
        parent = self.repo.active_parent(parent_id)
        if parent is None:
            raise NotFound(f"{parent_label.capitalize()} not found or inactive")
        rows = self.repo.related_active(parent_id)
        if not rows:
            raise NotFound(f"No {child_label}s found for this {parent_label}")
        return {
            parent_label: display_name(parent),
            f"{child_label}s": [
                {**association.model_dump(), child_label: EntityService.public(child)}
                for association, child in rows
            ],
        }

    def update(self, association_id: int, payload: BaseModel) -> SQLModel:
        """Apply the present keys; the resulting pair must stay unique."""
        association = self.repo.get(association_id)
        if association is None:
            raise NotFound("Assignment not found")
        changes = payload.model_dump(exclude_unset=True)
        self._check_references(changes)
        left_key, right_key = self.keys
        left_id = changes.get(left_key, getattr(association, left_key))
        right_id = changes.get(right_key, getattr(association, right_key))
        if self.repo.find_pair(left_id, right_id, exclude_id=association.id):
            raise Conflict(self.duplicate_message)
        for field, value in changes.items():
            setattr(association, field, value)
        return persist(self.session, "updating the assignment", self.repo.save, association)

    def delete(self, association_id: int) -> dict:
        association = self.repo.get(association_id)
        if association is None:
            raise NotFound("Assignment not found")
        persist(self.session, "deleting the assignment", self.repo.delete, association)
        return {"id": association_id, "deleted_at": utcnow()}

    def _check_references(self, data: dict) -> None:
        errors = {}
        for key, model in (self.repo.left, self.repo.right):
            if key in data and not self.repo.entity_exists(model, data[key]):
                errors[key] = [f"The selected {key} is invalid."]
        if errors:
            raise ValidationFailed(errors=errors)


class TeacherSubjectService(AssociationService):
    repository_cls = repositories.TeacherSubjectRepository
    description = "teacher-subject assignments"
    duplicate_message = "The teacher is already assigned to this subject"


class StudentCourseService(AssociationService):
    repository_cls = repositories.StudentCourseRepository
    description = "student-course enrollments"
    duplicate_message = "The student is already enrolled in this course"


class SubjectCourseService(AssociationService):
    repository_cls = repositories.SubjectCourseRepository
    description = "subject-course assignments"
    duplicate_message = "The subject is already assigned to this course"
