"""Read-only catalogs of the entities the planning core reasons about.

The core only depends on the protocols; the ``Sql*`` classes back them with the ORM and
hand out pydantic snapshots so callers never hold live rows across an operation.
"""

from __future__ import annotations

from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from schoolplan.models.room import Room
from schoolplan.models.school_class import SchoolClass
from schoolplan.models.subject import Subject
from schoolplan.models.teacher import Teacher
from schoolplan.schemas.room import RoomOut
from schoolplan.schemas.school_class import SchoolClassOut
from schoolplan.schemas.subject import SubjectOut
from schoolplan.schemas.teacher import TeacherOut


class ClassCatalog(Protocol):
    def get(self, class_id: str) -> SchoolClassOut | None: ...

    def list(self, institution_id: str) -> list[SchoolClassOut]: ...


class RoomCatalog(Protocol):
    def get(self, room_id: str) -> RoomOut | None: ...

    def list(self, institution_id: str) -> list[RoomOut]: ...


class SubjectCatalog(Protocol):
    def get(self, subject_id: str) -> SubjectOut | None: ...

    def list(self, institution_id: str) -> list[SubjectOut]: ...


class TeacherCatalog(Protocol):
    def get(self, teacher_id: str) -> TeacherOut | None: ...

    def list(self, institution_id: str) -> list[TeacherOut]: ...


class SqlClassCatalog:
    def __init__(self, db: Session):
        self.db = db

    def get(self, class_id: str) -> SchoolClassOut | None:
        row = self.db.get(SchoolClass, class_id)
        return SchoolClassOut.model_validate(row) if row is not None else None

    def list(self, institution_id: str) -> list[SchoolClassOut]:
        rows = self.db.execute(
            select(SchoolClass).where(SchoolClass.institution_id == institution_id).order_by(SchoolClass.name)
        ).scalars()
        return [SchoolClassOut.model_validate(row) for row in rows]


class SqlRoomCatalog:
    def __init__(self, db: Session):
        self.db = db

    def get(self, room_id: str) -> RoomOut | None:
        row = self.db.get(Room, room_id)
        return RoomOut.model_validate(row) if row is not None else None

    def list(self, institution_id: str) -> list[RoomOut]:
        rows = self.db.execute(
            select(Room).where(Room.institution_id == institution_id).order_by(Room.name)
        ).scalars()
        return [RoomOut.model_validate(row) for row in rows]


class SqlSubjectCatalog:
    def __init__(self, db: Session):
        self.db = db

    def get(self, subject_id: str) -> SubjectOut | None:
        row = self.db.get(Subject, subject_id)
        return SubjectOut.model_validate(row) if row is not None else None

    def list(self, institution_id: str) -> list[SubjectOut]:
        rows = self.db.execute(
            select(Subject).where(Subject.institution_id == institution_id).order_by(Subject.name)
        ).scalars()
        return [SubjectOut.model_validate(row) for row in rows]


class SqlTeacherCatalog:
    def __init__(self, db: Session):
        self.db = db

    def get(self, teacher_id: str) -> TeacherOut | None:
        row = self.db.get(Teacher, teacher_id)
        return TeacherOut.model_validate(row) if row is not None else None

    def list(self, institution_id: str) -> list[TeacherOut]:
        rows = self.db.execute(
            select(Teacher).where(Teacher.institution_id == institution_id).order_by(Teacher.name)
        ).scalars()
        return [TeacherOut.model_validate(row) for row in rows]
