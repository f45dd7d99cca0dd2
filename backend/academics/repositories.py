"""Repository classes encapsulating database operations.

Each repository is small and focused on a single table. The four academic
entities share `EntityRepository`, which knows how to filter on the
soft-delete status; the three join tables share `AssociationRepository`.
Repositories return SQLModel objects and perform commits/refreshes where
appropriate. Transaction failures propagate to the services.
"""

from datetime import datetime
from typing import List, Optional, Tuple, Type
from sqlmodel import Session, SQLModel, select
from . import models
from .models import EntityStatus, utcnow


class UserRepository:
    """CRUD operations for `User` objects."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, user: models.User) -> models.User:
        """Persist a new user and return the managed instance."""
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def save(self, user: models.User) -> models.User:
        user.updated_at = utcnow()
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def get_by_email(self, email: str) -> Optional[models.User]:
        """Return a `User` by email or `None` if not found."""
        stmt = select(models.User).where(models.User.email == email)
        return self.session.exec(stmt).first()

    def get(self, user_id: int) -> Optional[models.User]:
        """Get a `User` by primary key."""
        return self.session.get(models.User, user_id)


class TokenRepository:
    """Storage for issued `AccessToken` rows."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, token: models.AccessToken) -> models.AccessToken:
        self.session.add(token)
        self.session.commit()
        self.session.refresh(token)
        return token

    def get(self, token_id: int) -> Optional[models.AccessToken]:
        return self.session.get(models.AccessToken, token_id)

    def touch(self, token: models.AccessToken, when: datetime) -> None:
        token.last_used_at = when
        self.session.add(token)
        self.session.commit()

    def revoke(self, token: models.AccessToken) -> None:
        token.revoked_at = utcnow()
        self.session.add(token)
        self.session.commit()

    def revoke_all_for_user(self, user_id: int) -> int:
        """Revoke every live token of `user_id`; return how many were revoked."""
        stmt = select(models.AccessToken).where(
            models.AccessToken.user_id == user_id,
            models.AccessToken.revoked_at.is_(None),
        )
        tokens = self.session.exec(stmt).all()
        now = utcnow()
        for token in tokens:
            token.revoked_at = now
            self.session.add(token)
        self.session.commit()
        return len(tokens)


class EntityRepository:
    """Filtered reads and writes for one soft-deletable entity table.

    Subclasses set `model`, the columns used to sort listings and the
    column whose value must be unique across the table.
    """
    model: Type[models.Entity]
    order_by: Tuple[str, ...] = ("id",)
    unique_field: str

    def __init__(self, session: Session):
        self.session = session

    def list_active(self) -> List[models.Entity]:
        """Return every Active row in listing order."""
        stmt = (
            select(self.model)
            .where(self.model.status == EntityStatus.ACTIVE)
            .order_by(*(getattr(self.model, col) for col in self.order_by))
        )
        return self.session.exec(stmt).all()

    def get(self, entity_id: int) -> Optional[models.Entity]:
        return self.session.get(self.model, entity_id)

    def get_active(self, entity_id: int) -> Optional[models.Entity]:
        """Return the row only while it is Active."""
        stmt = select(self.model).where(
            self.model.id == entity_id,
            self.model.status == EntityStatus.ACTIVE,
        )
        return self.session.exec(stmt).first()

    def is_taken(self, value: str, exclude_id: Optional[int] = None) -> bool:
        """Return True if another row (any status) already uses `value`."""
        column = getattr(self.model, self.unique_field)
        stmt = select(self.model.id).where(column == value)
        if exclude_id is not None:
            stmt = stmt.where(self.model.id != exclude_id)
        return self.session.exec(stmt).first() is not None

    def create(self, entity: models.Entity) -> models.Entity:
        self.session.add(entity)
        self.session.commit()
        self.session.refresh(entity)
        return entity

    def save(self, entity: models.Entity) -> models.Entity:
        """Persist changes and stamp `updated_at`."""
        entity.updated_at = utcnow()
        self.session.add(entity)
        self.session.commit()
        self.session.refresh(entity)
        return entity


class StudentRepository(EntityRepository):
    model = models.Student
    order_by = ("last_name", "first_name")
    unique_field = "document_id"


class TeacherRepository(EntityRepository):
    model = models.Teacher
    order_by = ("last_name", "first_name")
    unique_field = "document_id"


class CourseRepository(EntityRepository):
    model = models.Course
    order_by = ("name",)
    unique_field = "name"


class SubjectRepository(EntityRepository):
    model = models.Subject
    order_by = ("name",)
    unique_field = "name"


class AssociationRepository:
    """Reads and writes for one many-to-many join table.

    `left` and `right` are `(foreign key column, entity model)` pairs.
    `parent_key` names the side used to look up related rows by parent id;
    the other side is the one returned.
    """
    model: Type[SQLModel]
    left: Tuple[str, Type[models.Entity]]
    right: Tuple[str, Type[models.Entity]]
    parent_key: str

    def __init__(self, session: Session):
        self.session = session

    @property
    def parent(self) -> Tuple[str, Type[models.Entity]]:
        return self.left if self.left[0] == self.parent_key else self.right

    @property
    def child(self) -> Tuple[str, Type[models.Entity]]:
        return self.right if self.left[0] == self.parent_key else self.left

    def list_active(self) -> List[tuple]:
        """Return `(association, left, right)` rows where both sides are Active."""
        left_key, left_model = self.left
        right_key, right_model = self.right
        stmt = (
            select(self.model, left_model, right_model)
            .join(left_model, left_model.id == getattr(self.model, left_key))
            .join(right_model, right_model.id == getattr(self.model, right_key))
            .where(left_model.status == EntityStatus.ACTIVE, right_model.status == EntityStatus.ACTIVE)
            .order_by(self.model.id)
        )
        return self.session.exec(stmt).all()

    def related_active(self, parent_id: int) -> List[tuple]:
        """Return `(association, child)` rows of `parent_id` whose child is Active."""
        child_key, child_model = self.child
        stmt = (
            select(self.model, child_model)
            .join(child_model, child_model.id == getattr(self.model, child_key))
            .where(getattr(self.model, self.parent_key) == parent_id, child_model.status == EntityStatus.ACTIVE)
            .order_by(self.model.id)
        )
        return self.session.exec(stmt).all()

    def find_pair(self, left_id: int, right_id: int, exclude_id: Optional[int] = None) -> Optional[SQLModel]:
        """Return an association linking `left_id` and `right_id`, if one exists."""
        stmt = select(self.model).where(
            getattr(self.model, self.left[0]) == left_id,
            getattr(self.model, self.right[0]) == right_id,
        )
        if exclude_id is not None:
            stmt = stmt.where(self.model.id != exclude_id)
        return self.session.exec(stmt).first()

    def entity_exists(self, model: Type[models.Entity], entity_id: int) -> bool:
        """Return True if `entity_id` exists in `model`'s table, whatever its status."""
        return self.session.get(model, entity_id) is not None

    def active_parent(self, parent_id: int) -> Optional[models.Entity]:
        _, parent_model = self.parent
        entity = self.session.get(parent_model, parent_id)
        if entity is None or entity.status != EntityStatus.ACTIVE:
            return None
        return entity

    def get(self, association_id: int) -> Optional[SQLModel]:
        return self.session.get(self.model, association_id)

    def create(self, association: SQLModel) -> SQLModel:
        self.session.add(association)
        self.session.commit()
        self.session.refresh(association)
        return association

    def save(self, association: SQLModel) -> SQLModel:
        self.session.add(association)
        self.session.commit()
        self.session.refresh(association)
        return association

    def delete(self, association: SQLModel) -> None:
        self.session.delete(association)
        self.session.commit()


class TeacherSubjectRepository(AssociationRepository):
    model = models.TeacherSubject
    left = ("teacher_id", models.Teacher)
    right = ("subject_id", models.Subject)
    parent_key = "teacher_id"


class StudentCourseRepository(AssociationRepository):
    model = models.StudentCourse
    left = ("student_id", models.Student)
    right = ("course_id", models.Course)
    parent_key = "course_id"


class SubjectCourseRepository(AssociationRepository):
    model = models.SubjectCourse
    left = ("subject_id", models.Subject)
    right = ("course_id", models.Course)
    parent_key = "course_id"
