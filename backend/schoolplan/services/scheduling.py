"""Books, moves and removes timetable entries.

Each write reads the day's entries and its version token, runs the conflict check and
writes the entry in one transaction. The token is bumped with a compare-and-write, so two
operators racing for the same slot cannot both see "no conflict" and both commit.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from schoolplan.core.exceptions import AppError, SchedulingConflictError, UnknownReferenceError
from schoolplan.models.school_class import SchoolClass
from schoolplan.models.teacher import Teacher
from schoolplan.schemas.schedule import (
    DAY_NAMES,
    Conflict,
    ConflictReport,
    ScheduleEntryCreate,
    ScheduleEntryOut,
)
from schoolplan.services.audit import log_activity
from schoolplan.services.catalogs import (
    ClassCatalog,
    RoomCatalog,
    SqlClassCatalog,
    SqlRoomCatalog,
    SqlSubjectCatalog,
    SqlTeacherCatalog,
    SubjectCatalog,
    TeacherCatalog,
)
from schoolplan.services.conflict_service import ConflictService, check_conflict, validate_time_range
from schoolplan.services.stores import ScheduleStore, SqlScheduleStore

logger = logging.getLogger(__name__)


class ScheduleService:
    def __init__(
        self,
        db: Session,
        *,
        classes: ClassCatalog | None = None,
        subjects: SubjectCatalog | None = None,
        teachers: TeacherCatalog | None = None,
        rooms: RoomCatalog | None = None,
        store: ScheduleStore | None = None,
    ):
        self.db = db
        self.classes = classes or SqlClassCatalog(db)
        self.subjects = subjects or SqlSubjectCatalog(db)
        self.teachers = teachers or SqlTeacherCatalog(db)
        self.rooms = rooms or SqlRoomCatalog(db)
        self.store = store or SqlScheduleStore(db)

    def _check_references(self, institution_id: str, payload: ScheduleEntryCreate) -> None:
        lookups = (
            ("Class", self.classes, payload.class_id),
            ("Subject", self.subjects, payload.subject_id),
            ("Teacher", self.teachers, payload.teacher_id),
            ("Room", self.rooms, payload.room_id),
        )
        for resource_type, catalog, resource_id in lookups:
            item = catalog.get(resource_id)
            if item is None or item.institution_id != institution_id:
                raise UnknownReferenceError(resource_type, resource_id)

    def _book(
        self,
        institution_id: str,
        entry: ScheduleEntryOut,
        *,
        previous: ScheduleEntryOut | None,
        action: str,
        actor: str | None,
    ) -> ScheduleEntryOut:
        days = sorted({entry.day_of_week} | ({previous.day_of_week} if previous else set()))
        try:
            versions = {day: self.store.read_day_version(institution_id, day) for day in days}
            existing = self.store.list_by_day(institution_id, entry.day_of_week)
            result = check_conflict(entry, existing, entry_id=entry.id)
            if isinstance(result, Conflict):
                logger.warning(
                    "Rejected %s on %s %s-%s: %s already booked by entry %s",
                    action,
                    DAY_NAMES[entry.day_of_week],
                    entry.start_time,
                    entry.end_time,
                    result.kind.value,
                    result.with_entry.id,
                )
                raise SchedulingConflictError(result.kind.value, result.with_entry.model_dump(mode="json"))

            saved = self.store.save(entry)
            for day, seen in versions.items():
                self.store.bump_day_version(institution_id, day, seen)
            log_activity(
                self.db,
                institution_id=institution_id,
                actor=actor,
                action=action,
                entity_type="schedule_entry",
                entity_id=saved.id,
                details=saved.model_dump(mode="json"),
            )
            self.db.commit()
        except (AppError, SQLAlchemyError):
            self.db.rollback()
            raise
        return saved

    def propose_entry(
        self, institution_id: str, payload: ScheduleEntryCreate, *, actor: str | None = None
    ) -> ScheduleEntryOut:
        validate_time_range(payload)
        self._check_references(institution_id, payload)
        entry = ScheduleEntryOut(id=str(uuid.uuid4()), institution_id=institution_id, **payload.model_dump())
        saved = self._book(institution_id, entry, previous=None, action="schedule_entry.created", actor=actor)
        logger.info(
            "Booked entry %s: class %s, room %s, %s %s-%s",
            saved.id,
            saved.class_id,
            saved.room_id,
            DAY_NAMES[saved.day_of_week],
            saved.start_time,
            saved.end_time,
        )
        return saved

    def reschedule_entry(
        self, institution_id: str, entry_id: str, payload: ScheduleEntryCreate, *, actor: str | None = None
    ) -> ScheduleEntryOut:
        previous = self.get_entry(institution_id, entry_id)
        validate_time_range(payload)
        self._check_references(institution_id, payload)
        entry = ScheduleEntryOut(id=previous.id, institution_id=institution_id, **payload.model_dump())
        saved = self._book(institution_id, entry, previous=previous, action="schedule_entry.updated", actor=actor)
        logger.info("Moved entry %s to %s %s-%s", saved.id, DAY_NAMES[saved.day_of_week], saved.start_time, saved.end_time)
        return saved

    def remove_entry(self, institution_id: str, entry_id: str, *, actor: str | None = None) -> None:
        entry = self.get_entry(institution_id, entry_id)
        try:
            seen = self.store.read_day_version(institution_id, entry.day_of_week)
            self.store.delete(entry.id)
            self.store.bump_day_version(institution_id, entry.day_of_week, seen)
            log_activity(
                self.db,
                institution_id=institution_id,
                actor=actor,
                action="schedule_entry.deleted",
                entity_type="schedule_entry",
                entity_id=entry.id,
                details=entry.model_dump(mode="json"),
            )
            self.db.commit()
        except (AppError, SQLAlchemyError):
            self.db.rollback()
            raise
        logger.info("Removed entry %s", entry.id)

    def delete_owner(
        self,
        institution_id: str,
        owner: SchoolClass | Teacher,
        *,
        entity_type: str,
        actor: str | None = None,
    ) -> None:
        """Delete a class or teacher together with its entries.

        The entries go with the ORM cascade; every day they occupied gets its version token
        bumped, as if each entry had been removed one by one.
        """
        owner_id = owner.id
        days = sorted({entry.day_of_week for entry in owner.schedule_entries})
        try:
            seen = {day: self.store.read_day_version(institution_id, day) for day in days}
            log_activity(
                self.db,
                institution_id=institution_id,
                actor=actor,
                action=f"{entity_type}.deleted",
                entity_type=entity_type,
                entity_id=owner_id,
                details={"name": owner.name, "days": days},
            )
            self.db.delete(owner)
            self.db.flush()
            for day, version in seen.items():
                self.store.bump_day_version(institution_id, day, version)
            self.db.commit()
        except (AppError, SQLAlchemyError):
            self.db.rollback()
            raise
        logger.info("Deleted %s %s and its entries on %d day(s)", entity_type, owner_id, len(days))

    def get_entry(self, institution_id: str, entry_id: str) -> ScheduleEntryOut:
        entry = self.store.get(entry_id)
        if entry is None or entry.institution_id != institution_id:
            raise UnknownReferenceError("ScheduleEntry", entry_id)
        return entry

    def list_entries(self, institution_id: str, day_of_week: int | None = None) -> list[ScheduleEntryOut]:
        if day_of_week is None:
            return self.store.list_all(institution_id)
        return self.store.list_by_day(institution_id, day_of_week)

    def audit_conflicts(self, institution_id: str, day_of_week: int | None = None) -> ConflictReport:
        service = ConflictService(
            institution_id,
            self.list_entries(institution_id, day_of_week),
            class_names={item.id: item.name for item in self.classes.list(institution_id)},
            teacher_names={item.id: item.name for item in self.teachers.list(institution_id)},
            room_names={item.id: item.name for item in self.rooms.list(institution_id)},
        )
        return service.detect_conflicts()
