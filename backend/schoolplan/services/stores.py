"""Writable stores for assignments and schedule entries.

Stores never commit: the calling service owns the unit of work so a validation failure
part-way through an operation leaves nothing behind.
"""

from __future__ import annotations

from typing import Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from schoolplan.core.exceptions import ConcurrentScheduleUpdateError
from schoolplan.models.assignment import AssignmentMode, TeacherAssignment
from schoolplan.models.schedule_entry import ScheduleDayVersion, ScheduleEntry
from schoolplan.schemas.assignment import AssignmentOut
from schoolplan.schemas.schedule import ScheduleEntryOut


class AssignmentStore(Protocol):
    def save(self, assignment: AssignmentOut) -> AssignmentOut: ...

    def get(self, assignment_id: str) -> AssignmentOut | None: ...

    def find(self, teacher_id: str, class_id: str, subject_id: str | None) -> AssignmentOut | None: ...

    def list_by_teacher(self, teacher_id: str) -> list[AssignmentOut]: ...

    def list_by_class(self, class_id: str) -> list[AssignmentOut]: ...

    def delete(self, assignment_id: str) -> bool: ...


class ScheduleStore(Protocol):
    def read_day_version(self, institution_id: str, day_of_week: int) -> int: ...

    def bump_day_version(self, institution_id: str, day_of_week: int, seen_version: int) -> None: ...

    def list_by_day(self, institution_id: str, day_of_week: int) -> list[ScheduleEntryOut]: ...

    def list_all(self, institution_id: str) -> list[ScheduleEntryOut]: ...

    def first_room_for_class(self, class_id: str) -> str | None: ...

    def get(self, entry_id: str) -> ScheduleEntryOut | None: ...

    def save(self, entry: ScheduleEntryOut) -> ScheduleEntryOut: ...

    def delete(self, entry_id: str) -> bool: ...


class SqlAssignmentStore:
    def __init__(self, db: Session):
        self.db = db

    def save(self, assignment: AssignmentOut) -> AssignmentOut:
        row = self.db.get(TeacherAssignment, assignment.id)
        if row is None:
            row = TeacherAssignment(id=assignment.id)
            self.db.add(row)
        for key, value in assignment.model_dump(exclude={"id"}).items():
            setattr(row, key, value)
        self.db.flush()
        return AssignmentOut.model_validate(row)

    def get(self, assignment_id: str) -> AssignmentOut | None:
        row = self.db.get(TeacherAssignment, assignment_id)
        return AssignmentOut.model_validate(row) if row is not None else None

    def find(self, teacher_id: str, class_id: str, subject_id: str | None) -> AssignmentOut | None:
        query = select(TeacherAssignment).where(
            TeacherAssignment.teacher_id == teacher_id,
            TeacherAssignment.class_id == class_id,
        )
        if subject_id is None:
            query = query.where(
                TeacherAssignment.subject_id.is_(None),
                TeacherAssignment.mode == AssignmentMode.all_subjects,
            )
        else:
            query = query.where(TeacherAssignment.subject_id == subject_id)
        row = self.db.execute(query.order_by(TeacherAssignment.created_at)).scalars().first()
        return AssignmentOut.model_validate(row) if row is not None else None

    def list_by_teacher(self, teacher_id: str) -> list[AssignmentOut]:
        rows = self.db.execute(
            select(TeacherAssignment)
            .where(TeacherAssignment.teacher_id == teacher_id)
            .order_by(TeacherAssignment.created_at)
        ).scalars()
        return [AssignmentOut.model_validate(row) for row in rows]

    def list_by_class(self, class_id: str) -> list[AssignmentOut]:
        rows = self.db.execute(
            select(TeacherAssignment)
            .where(TeacherAssignment.class_id == class_id)
            .order_by(TeacherAssignment.created_at)
        ).scalars()
        return [AssignmentOut.model_validate(row) for row in rows]

    def delete(self, assignment_id: str) -> bool:
        row = self.db.get(TeacherAssignment, assignment_id)
        if row is None:
            return False
        self.db.delete(row)
        self.db.flush()
        return True


class SqlScheduleStore:
    def __init__(self, db: Session):
        self.db = db

    def read_day_version(self, institution_id: str, day_of_week: int) -> int:
        # FOR UPDATE serialises concurrent bookers on PostgreSQL; other dialects rely on
        # the conditional bump in bump_day_version.
        row = self.db.execute(
            select(ScheduleDayVersion)
            .where(
                ScheduleDayVersion.institution_id == institution_id,
                ScheduleDayVersion.day_of_week == day_of_week,
            )
            .with_for_update()
        ).scalar_one_or_none()
        if row is not None:
            return row.version

        row = ScheduleDayVersion(institution_id=institution_id, day_of_week=day_of_week, version=0)
        self.db.add(row)
        try:
            self.db.flush()
        except IntegrityError as exc:
            raise ConcurrentScheduleUpdateError(institution_id, day_of_week) from exc
        return 0

    def bump_day_version(self, institution_id: str, day_of_week: int, seen_version: int) -> None:
        result = self.db.execute(
            update(ScheduleDayVersion)
            .where(
                ScheduleDayVersion.institution_id == institution_id,
                ScheduleDayVersion.day_of_week == day_of_week,
                ScheduleDayVersion.version == seen_version,
            )
            .values(version=seen_version + 1)
        )
        if result.rowcount != 1:
            raise ConcurrentScheduleUpdateError(institution_id, day_of_week)

    def list_by_day(self, institution_id: str, day_of_week: int) -> list[ScheduleEntryOut]:
        rows = self.db.execute(
            select(ScheduleEntry)
            .where(ScheduleEntry.institution_id == institution_id, ScheduleEntry.day_of_week == day_of_week)
            .order_by(ScheduleEntry.start_time, ScheduleEntry.created_at)
        ).scalars()
        return [ScheduleEntryOut.model_validate(row) for row in rows]

    def list_all(self, institution_id: str) -> list[ScheduleEntryOut]:
        rows = self.db.execute(
            select(ScheduleEntry)
            .where(ScheduleEntry.institution_id == institution_id)
            .order_by(ScheduleEntry.day_of_week, ScheduleEntry.start_time, ScheduleEntry.created_at)
        ).scalars()
        return [ScheduleEntryOut.model_validate(row) for row in rows]

    def first_room_for_class(self, class_id: str) -> str | None:
        return self.db.execute(
            select(ScheduleEntry.room_id)
            .where(ScheduleEntry.class_id == class_id)
            .order_by(ScheduleEntry.created_at, ScheduleEntry.id)
            .limit(1)
        ).scalar_one_or_none()

    def get(self, entry_id: str) -> ScheduleEntryOut | None:
        row = self.db.get(ScheduleEntry, entry_id)
        return ScheduleEntryOut.model_validate(row) if row is not None else None

    def save(self, entry: ScheduleEntryOut) -> ScheduleEntryOut:
        row = self.db.get(ScheduleEntry, entry.id)
        if row is None:
            row = ScheduleEntry(id=entry.id)
            self.db.add(row)
        for key, value in entry.model_dump(exclude={"id"}).items():
            setattr(row, key, value)
        self.db.flush()
        return ScheduleEntryOut.model_validate(row)

    def delete(self, entry_id: str) -> bool:
        row = self.db.get(ScheduleEntry, entry_id)
        if row is None:
            return False
        self.db.delete(row)
        self.db.flush()
        return True
