"""HTTP controllers for the academic resources.

Every entity resource and every association resource exposes the same
five operations, so their routers are built by two small factories.
Controllers are intentionally thin: they delegate to a service and wrap
the result in the response envelope. All routes require a bearer token.
PATCH is registered explicitly so that it answers 405 (after
authentication) instead of falling through to the generic router error.
"""

from typing import Annotated, Type

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel
from sqlmodel import Session

from . import schemas, services
from .auth import get_current_user
from .database import get_session
from .errors import MethodNotAllowed
from .models import MAX_ID
from .responses import created, ok

RecordId = Annotated[int, Path(ge=1, le=MAX_ID)]


def entity_router(path: str, service_cls: Type[services.EntityService],
                  create_schema: Type[BaseModel], update_schema: Type[BaseModel]) -> APIRouter:
    router = APIRouter(prefix=path, tags=[service_cls.plural], dependencies=[Depends(get_current_user)])
    title = service_cls.label.capitalize()

    @router.get("")
    def list_records(db: Session = Depends(get_session)):
        """List Active records; an empty table answers 404."""
        svc = service_cls(db)
        rows = [svc.public(e) for e in svc.list()]
        return ok(f"{service_cls.plural.capitalize()} retrieved successfully", rows)

    @router.post("", status_code=201)
    def create_record(payload: create_schema, db: Session = Depends(get_session)):
        svc = service_cls(db)
        entity = svc.create(payload)
        return created(f"{title} created successfully", svc.echo(entity, "created_at"))

    @router.get("/{record_id}")
    def show_record(record_id: RecordId, db: Session = Depends(get_session)):
        svc = service_cls(db)
        return ok(f"{title} retrieved successfully", svc.public(svc.get(record_id)))

    @router.put("/{record_id}")
    def update_record(record_id: RecordId, payload: update_schema, db: Session = Depends(get_session)):
        """Partial update of an Active record; present fields are re-validated."""
        entity = service_cls(db).update(record_id, payload)
        return ok(f"{title} updated successfully", entity)

    @router.patch("/{record_id}")
    def patch_record(record_id: str):
        raise MethodNotAllowed()

    @router.delete("/{record_id}")
    def delete_record(record_id: RecordId, db: Session = Depends(get_session)):
        """Soft delete: the record is marked Inactive."""
        svc = service_cls(db)
        entity = svc.deactivate(record_id)
        return ok(f"{title} deleted successfully", svc.echo(entity, "updated_at"))

    return router


def association_router(path: str, service_cls: Type[services.AssociationService],
                       create_schema: Type[BaseModel], update_schema: Type[BaseModel]) -> APIRouter:
    router = APIRouter(prefix=path, tags=[service_cls.description], dependencies=[Depends(get_current_user)])

    @router.get("")
    def list_assignments(db: Session = Depends(get_session)):
        rows = service_cls(db).list()
        return ok("Assignments retrieved successfully", rows)

    @router.post("", status_code=201)
    def create_assignment(payload: create_schema, db: Session = Depends(get_session)):
        association = service_cls(db).create(payload)
        return created("Assignment created successfully", association)

    @router.get("/{parent_id}")
    def show_for_parent(parent_id: RecordId, db: Session = Depends(get_session)):
        """Related Active records of one parent entity."""
        data = service_cls(db).show_for_parent(parent_id)
        return ok("Related records retrieved successfully", data)

    @router.put("/{assignment_id}")
    def update_assignment(assignment_id: RecordId, payload: update_schema, db: Session = Depends(get_session)):
        association = service_cls(db).update(assignment_id, payload)
        return ok("Assignment updated successfully", association)

    @router.patch("/{assignment_id}")
    def patch_assignment(assignment_id: str):
        raise MethodNotAllowed()

    @router.delete("/{assignment_id}")
    def delete_assignment(assignment_id: RecordId, db: Session = Depends(get_session)):
        """Hard delete of the association row."""
        data = service_cls(db).delete(assignment_id)
        return ok("Assignment deleted successfully", data)

    return router


routers = [
    entity_router("/estudiantes", services.StudentService, schemas.StudentCreate, schemas.StudentUpdate),
    entity_router("/docentes", services.TeacherService, schemas.TeacherCreate, schemas.TeacherUpdate),
    entity_router("/cursos", services.CourseService, schemas.CourseCreate, schemas.CourseUpdate),
    entity_router("/materias", services.SubjectService, schemas.SubjectCreate, schemas.SubjectUpdate),
    association_router("/docentes-materias", services.TeacherSubjectService,
                       schemas.TeacherSubjectIn, schemas.TeacherSubjectUpdate),
    association_router("/estudiantes-cursos", services.StudentCourseService,
                       schemas.StudentCourseIn, schemas.StudentCourseUpdate),
    association_router("/materias-cursos", services.SubjectCourseService,
                       schemas.SubjectCourseIn, schemas.SubjectCourseUpdate),
]
