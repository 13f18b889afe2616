from collections import defaultdict
from collections.abc import Iterable
from typing import Dict, List

from schoolplan.core.exceptions import InvalidTimeRangeError
from schoolplan.schemas.schedule import (
    DAY_NAMES,
    Conflict,
    ConflictDetail,
    ConflictKind,
    ConflictReport,
    ConflictResult,
    NoConflict,
    ScheduleEntryBase,
    ScheduleEntryOut,
    parse_time_to_minutes,
)


def validate_time_range(entry: ScheduleEntryBase) -> None:
    if parse_time_to_minutes(entry.start_time) >= parse_time_to_minutes(entry.end_time):
        raise InvalidTimeRangeError(entry.start_time, entry.end_time)


def overlaps(first: ScheduleEntryBase, second: ScheduleEntryBase) -> bool:
    """Half-open [start, end) intersection; touching boundaries do not overlap."""
    start1, end1 = parse_time_to_minutes(first.start_time), parse_time_to_minutes(first.end_time)
    start2, end2 = parse_time_to_minutes(second.start_time), parse_time_to_minutes(second.end_time)
    return start1 < end2 and start2 < end1


def shared_resource(first: ScheduleEntryBase, second: ScheduleEntryBase) -> ConflictKind | None:
    if first.teacher_id == second.teacher_id:
        return ConflictKind.teacher
    if first.room_id == second.room_id:
        return ConflictKind.room
    if first.class_id == second.class_id:
        return ConflictKind.school_class
    return None


def check_conflict(
    proposed: ScheduleEntryBase,
    existing: Iterable[ScheduleEntryOut],
    *,
    entry_id: str | None = None,
) -> ConflictResult:
    """Return the first existing entry that double-books the proposal's teacher, room or class.

    ``entry_id`` identifies the entry being edited; its stored version is skipped.
    """
    validate_time_range(proposed)
    if entry_id is None:
        entry_id = getattr(proposed, "id", None)

    for entry in existing:
        if entry.day_of_week != proposed.day_of_week:
            continue
        if entry_id is not None and entry.id == entry_id:
            continue
        if not overlaps(proposed, entry):
            continue
        kind = shared_resource(proposed, entry)
        if kind is not None:
            return Conflict(kind=kind, with_entry=entry)
    return NoConflict()


class ConflictService:
    """Audits stored entries and reports every pairwise double-booking."""

    def __init__(
        self,
        institution_id: str,
        entries: Iterable[ScheduleEntryOut],
        class_names: Dict[str, str] | None = None,
        teacher_names: Dict[str, str] | None = None,
        room_names: Dict[str, str] | None = None,
    ):
        self.institution_id = institution_id
        self.entries: List[ScheduleEntryOut] = list(entries)
        self.class_names = class_names or {}
        self.teacher_names = teacher_names or {}
        self.room_names = room_names or {}

    def detect_conflicts(self) -> ConflictReport:
        conflicts: List[ConflictDetail] = []

        entries_by_day = defaultdict(list)
        for entry in self.entries:
            entries_by_day[entry.day_of_week].append(entry)

        for day, day_entries in sorted(entries_by_day.items()):
            day_entries.sort(key=lambda item: (item.start_time, item.id))
            day_name = DAY_NAMES[day]
            n = len(day_entries)
            for i in range(n):
                e1 = day_entries[i]
                for j in range(i + 1, n):
                    e2 = day_entries[j]
                    # Sorted by start: once e2 starts after e1 ends, later entries do too.
                    if e2.start_time >= e1.end_time:
                        break
                    if not overlaps(e1, e2):
                        continue
                    window = f"{day_name} {max(e1.start_time, e2.start_time)}-{min(e1.end_time, e2.end_time)}"
                    if e1.teacher_id == e2.teacher_id:
                        name = self.teacher_names.get(e1.teacher_id, e1.teacher_id)
                        conflicts.append(ConflictDetail(
                            id=f"teacher-{e1.id}-{e2.id}",
                            kind=ConflictKind.teacher,
                            day_of_week=day,
                            description=f"Teacher {name} is double-booked on {window}",
                            affected_entries=[e1.id, e2.id],
                        ))
                    if e1.room_id == e2.room_id:
                        name = self.room_names.get(e1.room_id, e1.room_id)
                        conflicts.append(ConflictDetail(
                            id=f"room-{e1.id}-{e2.id}",
                            kind=ConflictKind.room,
                            day_of_week=day,
                            description=f"Room {name} is double-booked on {window}",
                            affected_entries=[e1.id, e2.id],
                        ))
                    if e1.class_id == e2.class_id:
                        name = self.class_names.get(e1.class_id, e1.class_id)
                        conflicts.append(ConflictDetail(
                            id=f"class-{e1.id}-{e2.id}",
                            kind=ConflictKind.school_class,
                            day_of_week=day,
                            description=f"Class {name} has two lessons on {window}",
                            affected_entries=[e1.id, e2.id],
                        ))

        return ConflictReport(institution_id=self.institution_id, conflicts=conflicts)
