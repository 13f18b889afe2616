from collections.abc import Iterable

from schoolplan.models.school_class import SchoolLevel
from schoolplan.schemas.subject import SubjectOut


def subjects_for_level(level: SchoolLevel, all_subjects: Iterable[SubjectOut]) -> list[SubjectOut]:
    return [subject for subject in all_subjects if subject.level == level]
