from __future__ import annotations

from collections.abc import Iterable

from schoolplan.models.school_class import SchoolLevel
from schoolplan.schemas.assignment import AssignmentOut
from schoolplan.schemas.teacher import TeacherOut, WorkloadOut

LEVEL_WORKLOAD_CAPS: dict[SchoolLevel, int] = {
    SchoolLevel.early_childhood: 20,
    SchoolLevel.primary: 25,
    SchoolLevel.lower_secondary: 30,
    SchoolLevel.upper_secondary: 30,
}
UNASSIGNED_WORKLOAD_CAP = 20


def level_workload_cap(levels: Iterable[SchoolLevel]) -> int:
    caps = [LEVEL_WORKLOAD_CAPS[level] for level in levels]
    if not caps:
        return UNASSIGNED_WORKLOAD_CAP
    return max(caps)


def constrained_max_hours(levels: Iterable[SchoolLevel], requested_max_hours: int | None) -> int:
    cap = level_workload_cap(levels)
    if requested_max_hours is None:
        return cap
    if requested_max_hours < 1:
        return 1
    return min(requested_max_hours, cap)


def summarize_workload(
    teacher: TeacherOut,
    assignments: Iterable[AssignmentOut],
    class_levels: dict[str, SchoolLevel],
) -> WorkloadOut:
    assignments = list(assignments)
    levels = sorted(
        {class_levels[item.class_id] for item in assignments if item.class_id in class_levels},
        key=lambda level: list(SchoolLevel).index(level),
    )
    assigned_hours = sum(item.weekly_hours for item in assignments)
    max_hours = constrained_max_hours(levels, teacher.max_weekly_hours)
    return WorkloadOut(
        teacher_id=teacher.id,
        assigned_hours=assigned_hours,
        max_hours=max_hours,
        levels=levels,
        overloaded=assigned_hours > max_hours,
        remaining_hours=max(0, max_hours - assigned_hours),
    )
