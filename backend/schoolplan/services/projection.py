from __future__ import annotations

import logging
from dataclasses import dataclass, field

from schoolplan.schemas.room import RoomOut
from schoolplan.schemas.schedule import DAY_NAMES, DisplayEntry, ScheduleEntryOut, parse_time_to_minutes
from schoolplan.schemas.school_class import SchoolClassOut
from schoolplan.schemas.subject import SubjectOut
from schoolplan.schemas.teacher import TeacherOut
from schoolplan.services.catalogs import ClassCatalog, RoomCatalog, SubjectCatalog, TeacherCatalog

logger = logging.getLogger(__name__)

UNKNOWN_CLASS = "unknown class"
UNKNOWN_SUBJECT = "unknown subject"
UNKNOWN_TEACHER = "unknown teacher"
UNKNOWN_ROOM = "unknown room"
UNKNOWN_DAY = "unknown day"


@dataclass(frozen=True)
class CatalogSnapshot:
    classes: dict[str, SchoolClassOut] = field(default_factory=dict)
    subjects: dict[str, SubjectOut] = field(default_factory=dict)
    teachers: dict[str, TeacherOut] = field(default_factory=dict)
    rooms: dict[str, RoomOut] = field(default_factory=dict)

    @classmethod
    def load(
        cls,
        institution_id: str,
        *,
        classes: ClassCatalog,
        subjects: SubjectCatalog,
        teachers: TeacherCatalog,
        rooms: RoomCatalog,
    ) -> "CatalogSnapshot":
        return cls(
            classes={item.id: item for item in classes.list(institution_id)},
            subjects={item.id: item for item in subjects.list(institution_id)},
            teachers={item.id: item for item in teachers.list(institution_id)},
            rooms={item.id: item for item in rooms.list(institution_id)},
        )


def format_duration(minutes: int) -> str:
    hours, rest = divmod(minutes, 60)
    if hours and rest:
        return f"{hours}h{rest}min"
    if hours:
        return f"{hours}h"
    return f"{rest}min"


def day_name(day_of_week: int) -> str:
    if 0 <= day_of_week < len(DAY_NAMES):
        return DAY_NAMES[day_of_week]
    return UNKNOWN_DAY


def _name(catalog: dict, key: str, placeholder: str, entry_id: str) -> str:
    item = catalog.get(key)
    if item is None:
        logger.warning("Entry %s references missing id %s, displaying %r", entry_id, key, placeholder)
        return placeholder
    return item.name


def project_entry(entry: ScheduleEntryOut, catalogs: CatalogSnapshot) -> DisplayEntry:
    duration = parse_time_to_minutes(entry.end_time) - parse_time_to_minutes(entry.start_time)
    return DisplayEntry(
        id=entry.id,
        day_of_week=entry.day_of_week,
        day_name=day_name(entry.day_of_week),
        start_time=entry.start_time,
        end_time=entry.end_time,
        duration_minutes=duration,
        duration_label=format_duration(duration),
        class_id=entry.class_id,
        class_name=_name(catalogs.classes, entry.class_id, UNKNOWN_CLASS, entry.id),
        subject_id=entry.subject_id,
        subject_name=_name(catalogs.subjects, entry.subject_id, UNKNOWN_SUBJECT, entry.id),
        teacher_id=entry.teacher_id,
        teacher_name=_name(catalogs.teachers, entry.teacher_id, UNKNOWN_TEACHER, entry.id),
        room_id=entry.room_id,
        room_name=_name(catalogs.rooms, entry.room_id, UNKNOWN_ROOM, entry.id),
    )
