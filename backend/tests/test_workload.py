from schoolplan.models.assignment import AssignmentMode
from schoolplan.models.school_class import SchoolLevel
from schoolplan.schemas.assignment import AssignmentOut
from schoolplan.schemas.teacher import TeacherOut
from schoolplan.services.workload import constrained_max_hours, level_workload_cap, summarize_workload


def _assignment(assignment_id, class_id, hours):
    return AssignmentOut(
        id=assignment_id,
        institution_id="default",
        teacher_id="t1",
        class_id=class_id,
        subject_id="s1",
        mode=AssignmentMode.single_subject,
        weekly_hours=hours,
    )


def test_level_caps():
    assert level_workload_cap([]) == 20
    assert level_workload_cap([SchoolLevel.early_childhood]) == 20
    assert level_workload_cap([SchoolLevel.primary]) == 25
    assert level_workload_cap([SchoolLevel.primary, SchoolLevel.upper_secondary]) == 30


def test_constrained_max_hours_uses_the_lower_bound():
    assert constrained_max_hours([SchoolLevel.primary], 40) == 25
    assert constrained_max_hours([SchoolLevel.lower_secondary], 18) == 18
    assert constrained_max_hours([SchoolLevel.lower_secondary], None) == 30
    assert constrained_max_hours([], 0) == 1


def test_summarize_workload():
    teacher = TeacherOut(id="t1", institution_id="default", name="M. Fall", max_weekly_hours=30)
    assignments = [_assignment("a1", "c6a", 4), _assignment("a2", "c6b", 4), _assignment("a3", "tle", 5)]
    levels = {"c6a": SchoolLevel.lower_secondary, "c6b": SchoolLevel.lower_secondary, "tle": SchoolLevel.upper_secondary}

    workload = summarize_workload(teacher, assignments, levels)

    assert workload.assigned_hours == 13
    assert workload.max_hours == 30
    assert workload.levels == [SchoolLevel.lower_secondary, SchoolLevel.upper_secondary]
    assert workload.overloaded is False
    assert workload.remaining_hours == 17


def test_summarize_workload_flags_overload():
    teacher = TeacherOut(id="t1", institution_id="default", name="M. Fall", max_weekly_hours=10)
    workload = summarize_workload(teacher, [_assignment("a1", "c6a", 12)], {"c6a": SchoolLevel.lower_secondary})
    assert workload.overloaded is True
    assert workload.remaining_hours == 0
