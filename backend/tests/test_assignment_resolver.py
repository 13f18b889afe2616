import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from schoolplan.core.config import Settings
from schoolplan.core.exceptions import InvalidLevelForModeError, SubjectLevelMismatchError, UnknownReferenceError
from schoolplan.models.activity_log import ActivityLog
from schoolplan.models.assignment import AssignmentMode, TeacherAssignment
from schoolplan.schemas.assignment import HomeroomAssignmentCreate, SubjectAssignmentCreate
from schoolplan.services.assignment_resolver import AssignmentResolver
from schoolplan.services.stores import SqlAssignmentStore

INSTITUTION = "default"


def _count(db, model):
    return db.execute(select(func.count()).select_from(model)).scalar_one()


def test_assign_homeroom_to_primary_class(db_session, school):
    resolver = AssignmentResolver(db_session)
    payload = HomeroomAssignmentCreate(teacher_id=school["teachers"]["T1"], class_id=school["classes"]["CP1"], weekly_hours=24)

    first = resolver.assign_homeroom(INSTITUTION, payload, actor="director")
    second = resolver.assign_homeroom(INSTITUTION, payload, actor="director")

    assert first.mode == AssignmentMode.all_subjects
    assert first.subject_id is None
    assert first.weekly_hours == 24
    assert second == first
    assert _count(db_session, TeacherAssignment) == 1
    log = db_session.execute(select(ActivityLog)).scalars().one()
    assert log.action == "assignment.homeroom.created"
    assert log.actor == "director"


def test_assign_homeroom_with_different_hours_returns_existing(db_session, school):
    resolver = AssignmentResolver(db_session)
    teacher_id, class_id = school["teachers"]["T1"], school["classes"]["CP1"]
    first = resolver.assign_homeroom(
        INSTITUTION, HomeroomAssignmentCreate(teacher_id=teacher_id, class_id=class_id, weekly_hours=24)
    )
    again = resolver.assign_homeroom(
        INSTITUTION, HomeroomAssignmentCreate(teacher_id=teacher_id, class_id=class_id, weekly_hours=10)
    )
    assert again.id == first.id
    assert again.weekly_hours == 24


def test_assign_homeroom_rejects_secondary_class(db_session, school):
    resolver = AssignmentResolver(db_session)
    with pytest.raises(InvalidLevelForModeError) as exc_info:
        resolver.assign_homeroom(
            INSTITUTION,
            HomeroomAssignmentCreate(teacher_id=school["teachers"]["T1"], class_id=school["classes"]["C6A"], weekly_hours=4),
        )
    assert exc_info.value.status_code == 422
    assert exc_info.value.details["level"] == "lower_secondary"
    assert _count(db_session, TeacherAssignment) == 0


def test_second_homeroom_teacher_does_not_replace_the_first(db_session, school):
    resolver = AssignmentResolver(db_session)
    class_id = school["classes"]["CP1"]
    resolver.assign_homeroom(
        INSTITUTION, HomeroomAssignmentCreate(teacher_id=school["teachers"]["T1"], class_id=class_id, weekly_hours=20)
    )
    resolver.assign_homeroom(
        INSTITUTION, HomeroomAssignmentCreate(teacher_id=school["teachers"]["T3"], class_id=class_id, weekly_hours=20)
    )
    assert len(resolver.list_assignments(INSTITUTION, class_id=class_id)) == 2


def test_replace_homeroom_removes_previous_teachers(db_session, school):
    resolver = AssignmentResolver(db_session)
    class_id = school["classes"]["CP1"]
    old = resolver.assign_homeroom(
        INSTITUTION, HomeroomAssignmentCreate(teacher_id=school["teachers"]["T1"], class_id=class_id, weekly_hours=20)
    )

    new = resolver.replace_homeroom(
        INSTITUTION, HomeroomAssignmentCreate(teacher_id=school["teachers"]["T3"], class_id=class_id, weekly_hours=22)
    )

    remaining = resolver.list_assignments(INSTITUTION, class_id=class_id)
    assert [item.id for item in remaining] == [new.id]
    assert new.id != old.id
    assert new.teacher_id == school["teachers"]["T3"]
    assert new.weekly_hours == 22


def test_replace_homeroom_with_same_teacher_updates_hours(db_session, school):
    resolver = AssignmentResolver(db_session)
    payload = HomeroomAssignmentCreate(teacher_id=school["teachers"]["T1"], class_id=school["classes"]["CE2"], weekly_hours=20)
    original = resolver.assign_homeroom(INSTITUTION, payload)

    updated = resolver.replace_homeroom(INSTITUTION, payload.model_copy(update={"weekly_hours": 18}))

    assert updated.id == original.id
    assert updated.weekly_hours == 18


def test_assign_subject_across_classes_creates_one_assignment_per_class(db_session, school):
    resolver = AssignmentResolver(db_session)
    payload = SubjectAssignmentCreate(
        teacher_id=school["teachers"]["T2"],
        subject_id=school["subjects"]["MATH6"],
        class_ids=[school["classes"]["C6A"], school["classes"]["C6B"]],
        weekly_hours_each=4,
    )

    created = resolver.assign_subject_across_classes(INSTITUTION, payload)

    assert len(created) == 2
    assert {item.class_id for item in created} == {school["classes"]["C6A"], school["classes"]["C6B"]}
    assert all(item.mode == AssignmentMode.single_subject for item in created)
    assert all(item.subject_id == school["subjects"]["MATH6"] for item in created)

    again = resolver.assign_subject_across_classes(INSTITUTION, payload)
    assert [item.id for item in again] == [item.id for item in created]
    assert _count(db_session, TeacherAssignment) == 2


def test_assign_subject_is_all_or_nothing_on_level_mismatch(db_session, school):
    resolver = AssignmentResolver(db_session)
    payload = SubjectAssignmentCreate(
        teacher_id=school["teachers"]["T2"],
        subject_id=school["subjects"]["MATH6"],
        class_ids=[school["classes"]["C6A"], school["classes"]["TLE"]],
        weekly_hours_each=4,
    )

    with pytest.raises(SubjectLevelMismatchError) as exc_info:
        resolver.assign_subject_across_classes(INSTITUTION, payload)

    assert exc_info.value.details["mismatches"] == [{"class_id": school["classes"]["TLE"], "level": "upper_secondary"}]
    assert _count(db_session, TeacherAssignment) == 0
    assert _count(db_session, ActivityLog) == 0


def test_assign_subject_rejects_primary_subject(db_session, school):
    resolver = AssignmentResolver(db_session)
    with pytest.raises(InvalidLevelForModeError):
        resolver.assign_subject_across_classes(
            INSTITUTION,
            SubjectAssignmentCreate(
                teacher_id=school["teachers"]["T1"],
                subject_id=school["subjects"]["LEC"],
                class_ids=[school["classes"]["CP1"]],
                weekly_hours_each=2,
            ),
        )


def test_assign_subject_rejects_unknown_class_before_writing(db_session, school):
    resolver = AssignmentResolver(db_session)
    with pytest.raises(UnknownReferenceError) as exc_info:
        resolver.assign_subject_across_classes(
            INSTITUTION,
            SubjectAssignmentCreate(
                teacher_id=school["teachers"]["T2"],
                subject_id=school["subjects"]["MATH6"],
                class_ids=[school["classes"]["C6A"], "missing-class"],
                weekly_hours_each=4,
            ),
        )
    assert exc_info.value.status_code == 404
    assert exc_info.value.details == {"resource_type": "Class", "resource_id": "missing-class"}
    assert _count(db_session, TeacherAssignment) == 0


def test_other_institution_cannot_reference_classes(db_session, school):
    resolver = AssignmentResolver(db_session)
    with pytest.raises(UnknownReferenceError):
        resolver.assign_homeroom(
            "other-school",
            HomeroomAssignmentCreate(teacher_id=school["teachers"]["T1"], class_id=school["classes"]["CP1"], weekly_hours=20),
        )


def test_effective_subjects_for_homeroom_teacher(db_session, school):
    resolver = AssignmentResolver(db_session)
    resolver.assign_homeroom(
        INSTITUTION,
        HomeroomAssignmentCreate(teacher_id=school["teachers"]["T1"], class_id=school["classes"]["CP1"], weekly_hours=24),
    )

    result = resolver.effective_subjects_taught(INSTITUTION, school["teachers"]["T1"], school["classes"]["CP1"])

    assert result.status == "assigned"
    assert result.mode == AssignmentMode.all_subjects
    assert {item.code for item in result.subjects} == {"LEC", "CAL"}


def test_effective_subjects_for_subject_teacher(db_session, school):
    resolver = AssignmentResolver(db_session)
    resolver.assign_subject_across_classes(
        INSTITUTION,
        SubjectAssignmentCreate(
            teacher_id=school["teachers"]["T2"],
            subject_id=school["subjects"]["MATH6"],
            class_ids=[school["classes"]["C6A"]],
            weekly_hours_each=4,
        ),
    )

    result = resolver.effective_subjects_taught(INSTITUTION, school["teachers"]["T2"], school["classes"]["C6A"])

    assert result.mode == AssignmentMode.single_subject
    assert [item.code for item in result.subjects] == ["MATH6"]


def test_unassigned_teacher_gets_no_subjects_by_default(db_session, school):
    resolver = AssignmentResolver(db_session, settings=Settings(unassigned_subject_policy="unassigned"))

    result = resolver.effective_subjects_taught(INSTITUTION, school["teachers"]["T3"], school["classes"]["C6A"])

    assert result.status == "unassigned"
    assert result.mode is None
    assert result.subjects == []


def test_unassigned_teacher_under_all_subjects_policy(db_session, school):
    resolver = AssignmentResolver(db_session, settings=Settings(unassigned_subject_policy="all_subjects"))

    result = resolver.effective_subjects_taught(INSTITUTION, school["teachers"]["T3"], school["classes"]["C6A"])

    assert result.status == "unassigned"
    assert {item.code for item in result.subjects} == {"MATH6", "FR6"}


def test_remove_assignment(db_session, school):
    resolver = AssignmentResolver(db_session)
    assignment = resolver.assign_homeroom(
        INSTITUTION,
        HomeroomAssignmentCreate(teacher_id=school["teachers"]["T1"], class_id=school["classes"]["CP1"], weekly_hours=24),
    )

    resolver.remove_assignment(INSTITUTION, assignment.id)

    assert resolver.list_assignments(INSTITUTION, teacher_id=school["teachers"]["T1"]) == []
    with pytest.raises(UnknownReferenceError):
        resolver.remove_assignment(INSTITUTION, assignment.id)


def test_overloaded_teacher_is_warned_not_rejected(db_session, school, caplog):
    resolver = AssignmentResolver(db_session)
    with caplog.at_level("WARNING", logger="schoolplan.services.assignment_resolver"):
        resolver.assign_homeroom(
            INSTITUTION,
            HomeroomAssignmentCreate(teacher_id=school["teachers"]["T1"], class_id=school["classes"]["CP1"], weekly_hours=24),
        )
        resolver.assign_homeroom(
            INSTITUTION,
            HomeroomAssignmentCreate(teacher_id=school["teachers"]["T1"], class_id=school["classes"]["CE2"], weekly_hours=10),
        )

    workload = resolver.teacher_workload(INSTITUTION, school["teachers"]["T1"])
    assert workload.assigned_hours == 34
    assert workload.max_hours == 25
    assert workload.overloaded is True
    assert "above the 25h cap" in caplog.text


def test_natural_key_is_unique_in_the_database(db_session, school):
    teacher_id, class_id = school["teachers"]["T1"], school["classes"]["CP1"]
    for _ in range(2):
        db_session.add(
            TeacherAssignment(
                institution_id=INSTITUTION,
                teacher_id=teacher_id,
                class_id=class_id,
                subject_id=None,
                mode=AssignmentMode.all_subjects,
                weekly_hours=24,
            )
        )
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()

    for _ in range(2):
        db_session.add(
            TeacherAssignment(
                institution_id=INSTITUTION,
                teacher_id=school["teachers"]["T2"],
                class_id=school["classes"]["C6A"],
                subject_id=school["subjects"]["MATH6"],
                mode=AssignmentMode.single_subject,
                weekly_hours=4,
            )
        )
    with pytest.raises(IntegrityError):
        db_session.commit()
    db_session.rollback()
    assert _count(db_session, TeacherAssignment) == 0


class _StaleLookupStore(SqlAssignmentStore):
    """Misses rows on its first lookups, like a session that read before a concurrent insert."""

    def __init__(self, db, stale_lookups):
        super().__init__(db)
        self.stale_lookups = stale_lookups

    def find(self, teacher_id, class_id, subject_id):
        if self.stale_lookups:
            self.stale_lookups -= 1
            return None
        return super().find(teacher_id, class_id, subject_id)


def test_racing_homeroom_assignment_returns_the_committed_row(session_factory, db_session, school):
    payload = HomeroomAssignmentCreate(teacher_id=school["teachers"]["T1"], class_id=school["classes"]["CP1"], weekly_hours=24)
    first_session, second_session = session_factory(), session_factory()
    try:
        winner = AssignmentResolver(first_session).assign_homeroom(INSTITUTION, payload)
        late = AssignmentResolver(
            second_session, assignments=_StaleLookupStore(second_session, stale_lookups=1)
        ).assign_homeroom(INSTITUTION, payload)
    finally:
        first_session.close()
        second_session.close()

    assert late.id == winner.id
    assert _count(db_session, TeacherAssignment) == 1
    assert _count(db_session, ActivityLog) == 1


def test_racing_subject_assignment_keeps_one_row_per_class(session_factory, db_session, school):
    teacher_id, subject_id = school["teachers"]["T2"], school["subjects"]["MATH6"]
    first_session, second_session = session_factory(), session_factory()
    try:
        (winner,) = AssignmentResolver(first_session).assign_subject_across_classes(
            INSTITUTION,
            SubjectAssignmentCreate(
                teacher_id=teacher_id, subject_id=subject_id, class_ids=[school["classes"]["C6A"]], weekly_hours_each=4
            ),
        )
        late = AssignmentResolver(
            second_session, assignments=_StaleLookupStore(second_session, stale_lookups=1)
        ).assign_subject_across_classes(
            INSTITUTION,
            SubjectAssignmentCreate(
                teacher_id=teacher_id,
                subject_id=subject_id,
                class_ids=[school["classes"]["C6A"], school["classes"]["C6B"]],
                weekly_hours_each=4,
            ),
        )
    finally:
        first_session.close()
        second_session.close()

    assert late[0].id == winner.id
    assert late[1].class_id == school["classes"]["C6B"]
    assert _count(db_session, TeacherAssignment) == 2
    assert _count(db_session, ActivityLog) == 2
