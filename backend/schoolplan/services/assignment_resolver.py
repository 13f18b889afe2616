"""Binds teachers to teaching work according to the class's pedagogical level.

Early childhood and primary classes have a homeroom teacher who teaches every subject of
the level (all-subjects mode). Secondary classes get one assignment per subject and class
(single-subject mode); a teacher usually covers the same subject in several classes.
"""

from __future__ import annotations

import logging
import uuid

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from schoolplan.core.config import Settings, get_settings
from schoolplan.core.exceptions import (
    InvalidLevelForModeError,
    SubjectLevelMismatchError,
    UnknownReferenceError,
)
from schoolplan.models.assignment import AssignmentMode
from schoolplan.models.school_class import HOMEROOM_LEVELS, SECONDARY_LEVELS
from schoolplan.schemas.assignment import (
    AssignmentOut,
    EffectiveSubjectsOut,
    HomeroomAssignmentCreate,
    SubjectAssignmentCreate,
)
from schoolplan.schemas.school_class import SchoolClassOut
from schoolplan.schemas.subject import SubjectOut
from schoolplan.schemas.teacher import TeacherOut, WorkloadOut
from schoolplan.services.audit import log_activity
from schoolplan.services.catalogs import (
    ClassCatalog,
    SqlClassCatalog,
    SqlSubjectCatalog,
    SqlTeacherCatalog,
    SubjectCatalog,
    TeacherCatalog,
)
from schoolplan.services.level_classifier import classify_level
from schoolplan.services.stores import AssignmentStore, SqlAssignmentStore
from schoolplan.services.subject_scope import subjects_for_level
from schoolplan.services.workload import summarize_workload

logger = logging.getLogger(__name__)


class AssignmentResolver:
    def __init__(
        self,
        db: Session,
        *,
        classes: ClassCatalog | None = None,
        subjects: SubjectCatalog | None = None,
        teachers: TeacherCatalog | None = None,
        assignments: AssignmentStore | None = None,
        settings: Settings | None = None,
    ):
        self.db = db
        self.classes = classes or SqlClassCatalog(db)
        self.subjects = subjects or SqlSubjectCatalog(db)
        self.teachers = teachers or SqlTeacherCatalog(db)
        self.assignments = assignments or SqlAssignmentStore(db)
        self.settings = settings or get_settings()

    # ─── Lookups ───

    def _require_teacher(self, institution_id: str, teacher_id: str) -> TeacherOut:
        teacher = self.teachers.get(teacher_id)
        if teacher is None or teacher.institution_id != institution_id:
            raise UnknownReferenceError("Teacher", teacher_id)
        return teacher

    def _require_class(self, institution_id: str, class_id: str) -> SchoolClassOut:
        school_class = self.classes.get(class_id)
        if school_class is None or school_class.institution_id != institution_id:
            raise UnknownReferenceError("Class", class_id)
        return school_class

    def _require_subject(self, institution_id: str, subject_id: str) -> SubjectOut:
        subject = self.subjects.get(subject_id)
        if subject is None or subject.institution_id != institution_id:
            raise UnknownReferenceError("Subject", subject_id)
        return subject

    def _require_homeroom_class(self, institution_id: str, class_id: str) -> SchoolClassOut:
        school_class = self._require_class(institution_id, class_id)
        level = classify_level(school_class.level_label)
        if level not in HOMEROOM_LEVELS:
            raise InvalidLevelForModeError(
                f"Class {school_class.name} is {level.value}: assign teachers per subject instead",
                details={"class_id": school_class.id, "level": level.value, "mode": AssignmentMode.all_subjects.value},
            )
        return school_class

    def _commit(self) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    # ─── Operations ───

    def assign_homeroom(
        self, institution_id: str, payload: HomeroomAssignmentCreate, *, actor: str | None = None
    ) -> AssignmentOut:
        teacher = self._require_teacher(institution_id, payload.teacher_id)
        school_class = self._require_homeroom_class(institution_id, payload.class_id)

        existing = self.assignments.find(teacher.id, school_class.id, None)
        if existing is not None:
            if existing.weekly_hours != payload.weekly_hours:
                logger.info(
                    "Homeroom assignment %s already exists with %sh/week; keeping it unchanged",
                    existing.id,
                    existing.weekly_hours,
                )
            return existing

        try:
            assignment = self.assignments.save(
                AssignmentOut(
                    id=str(uuid.uuid4()),
                    institution_id=institution_id,
                    teacher_id=teacher.id,
                    class_id=school_class.id,
                    subject_id=None,
                    mode=AssignmentMode.all_subjects,
                    weekly_hours=payload.weekly_hours,
                )
            )
            log_activity(
                self.db,
                institution_id=institution_id,
                actor=actor,
                action="assignment.homeroom.created",
                entity_type="assignment",
                entity_id=assignment.id,
                details={"teacher_id": teacher.id, "class_id": school_class.id, "weekly_hours": payload.weekly_hours},
            )
            self.db.commit()
        except IntegrityError:
            # Another session inserted the same (teacher, class) row since the lookup.
            self.db.rollback()
            winner = self.assignments.find(teacher.id, school_class.id, None)
            if winner is None:
                raise
            logger.info("Homeroom assignment %s was created concurrently; returning it", winner.id)
            return winner
        except SQLAlchemyError:
            self.db.rollback()
            raise
        logger.info("Assigned %s as homeroom teacher of %s", teacher.name, school_class.name)
        self._warn_if_overloaded(institution_id, teacher)
        return assignment

    def replace_homeroom(
        self, institution_id: str, payload: HomeroomAssignmentCreate, *, actor: str | None = None
    ) -> AssignmentOut:
        teacher = self._require_teacher(institution_id, payload.teacher_id)
        school_class = self._require_homeroom_class(institution_id, payload.class_id)

        kept: AssignmentOut | None = None
        removed: list[str] = []
        try:
            for current in self.assignments.list_by_class(school_class.id):
                if current.mode != AssignmentMode.all_subjects:
                    continue
                if current.teacher_id == teacher.id and kept is None:
                    kept = self.assignments.save(current.model_copy(update={"weekly_hours": payload.weekly_hours}))
                    continue
                self.assignments.delete(current.id)
                removed.append(current.id)

            if kept is None:
                kept = self.assignments.save(
                    AssignmentOut(
                        id=str(uuid.uuid4()),
                        institution_id=institution_id,
                        teacher_id=teacher.id,
                        class_id=school_class.id,
                        subject_id=None,
                        mode=AssignmentMode.all_subjects,
                        weekly_hours=payload.weekly_hours,
                    )
                )
            log_activity(
                self.db,
                institution_id=institution_id,
                actor=actor,
                action="assignment.homeroom.replaced",
                entity_type="assignment",
                entity_id=kept.id,
                details={"teacher_id": teacher.id, "class_id": school_class.id, "removed": removed},
            )
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self._commit()
        logger.info(
            "Replaced homeroom of %s with %s (%d previous assignment(s) removed)",
            school_class.name,
            teacher.name,
            len(removed),
        )
        self._warn_if_overloaded(institution_id, teacher)
        return kept

    def assign_subject_across_classes(
        self, institution_id: str, payload: SubjectAssignmentCreate, *, actor: str | None = None
    ) -> list[AssignmentOut]:
        teacher = self._require_teacher(institution_id, payload.teacher_id)
        subject = self._require_subject(institution_id, payload.subject_id)
        if subject.level not in SECONDARY_LEVELS:
            raise InvalidLevelForModeError(
                f"Subject {subject.name} is taught at {subject.level.value} level by the homeroom teacher",
                details={
                    "subject_id": subject.id,
                    "level": subject.level.value,
                    "mode": AssignmentMode.single_subject.value,
                },
            )

        # Validate every class before writing anything.
        school_classes = [self._require_class(institution_id, class_id) for class_id in payload.class_ids]
        mismatches = []
        for school_class in school_classes:
            level = classify_level(school_class.level_label)
            if level != subject.level:
                mismatches.append({"class_id": school_class.id, "level": level.value})
        if mismatches:
            raise SubjectLevelMismatchError(subject.id, subject.level.value, mismatches)

        if teacher.specialization_subject_id and teacher.specialization_subject_id != subject.id:
            logger.warning(
                "Teacher %s is specialised in subject %s but is being assigned %s",
                teacher.id,
                teacher.specialization_subject_id,
                subject.id,
            )

        # A second pass picks up rows another session committed between lookup and insert.
        for attempt in (1, 2):
            try:
                results, created = self._write_subject_assignments(
                    institution_id, teacher, subject, school_classes, payload.weekly_hours_each, actor
                )
                self.db.commit()
                break
            except IntegrityError:
                self.db.rollback()
                if attempt == 2:
                    raise
                logger.info("Subject assignment for teacher %s raced a concurrent write; retrying", teacher.id)
            except SQLAlchemyError:
                self.db.rollback()
                raise
        logger.info(
            "Assigned %s to teach %s in %d class(es), %d new",
            teacher.name,
            subject.name,
            len(results),
            created,
        )
        if created:
            self._warn_if_overloaded(institution_id, teacher)
        return results

    def _write_subject_assignments(
        self,
        institution_id: str,
        teacher: TeacherOut,
        subject: SubjectOut,
        school_classes: list[SchoolClassOut],
        weekly_hours: int,
        actor: str | None,
    ) -> tuple[list[AssignmentOut], int]:
        results: list[AssignmentOut] = []
        created = 0
        for school_class in school_classes:
            existing = self.assignments.find(teacher.id, school_class.id, subject.id)
            if existing is not None:
                results.append(existing)
                continue
            assignment = self.assignments.save(
                AssignmentOut(
                    id=str(uuid.uuid4()),
                    institution_id=institution_id,
                    teacher_id=teacher.id,
                    class_id=school_class.id,
                    subject_id=subject.id,
                    mode=AssignmentMode.single_subject,
                    weekly_hours=weekly_hours,
                )
            )
            log_activity(
                self.db,
                institution_id=institution_id,
                actor=actor,
                action="assignment.subject.created",
                entity_type="assignment",
                entity_id=assignment.id,
                details={
                    "teacher_id": teacher.id,
                    "class_id": school_class.id,
                    "subject_id": subject.id,
                    "weekly_hours": weekly_hours,
                },
            )
            results.append(assignment)
            created += 1
        return results, created

    def remove_assignment(self, institution_id: str, assignment_id: str, *, actor: str | None = None) -> None:
        assignment = self.assignments.get(assignment_id)
        if assignment is None or assignment.institution_id != institution_id:
            raise UnknownReferenceError("Assignment", assignment_id)
        try:
            self.assignments.delete(assignment.id)
            log_activity(
                self.db,
                institution_id=institution_id,
                actor=actor,
                action="assignment.deleted",
                entity_type="assignment",
                entity_id=assignment.id,
                details=assignment.model_dump(mode="json"),
            )
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self._commit()
        logger.info("Removed assignment %s", assignment.id)

    def list_assignments(
        self, institution_id: str, *, teacher_id: str | None = None, class_id: str | None = None
    ) -> list[AssignmentOut]:
        if teacher_id is not None:
            items = self.assignments.list_by_teacher(teacher_id)
            if class_id is not None:
                items = [item for item in items if item.class_id == class_id]
        elif class_id is not None:
            items = self.assignments.list_by_class(class_id)
        else:
            items = []
            for school_class in self.classes.list(institution_id):
                items.extend(self.assignments.list_by_class(school_class.id))
        return [item for item in items if item.institution_id == institution_id]

    # ─── Derived views ───

    def effective_subjects_taught(self, institution_id: str, teacher_id: str, class_id: str) -> EffectiveSubjectsOut:
        teacher = self._require_teacher(institution_id, teacher_id)
        school_class = self._require_class(institution_id, class_id)
        level = classify_level(school_class.level_label)
        bound = [item for item in self.assignments.list_by_class(school_class.id) if item.teacher_id == teacher.id]

        if any(item.mode == AssignmentMode.all_subjects for item in bound):
            return EffectiveSubjectsOut(
                teacher_id=teacher.id,
                class_id=school_class.id,
                status="assigned",
                mode=AssignmentMode.all_subjects,
                subjects=subjects_for_level(level, self.subjects.list(institution_id)),
            )

        if bound:
            subjects = []
            for item in bound:
                subject = self.subjects.get(item.subject_id) if item.subject_id else None
                if subject is not None and subject not in subjects:
                    subjects.append(subject)
            return EffectiveSubjectsOut(
                teacher_id=teacher.id,
                class_id=school_class.id,
                status="assigned",
                mode=AssignmentMode.single_subject,
                subjects=subjects,
            )

        subjects = []
        if self.settings.unassigned_subject_policy == "all_subjects":
            subjects = subjects_for_level(level, self.subjects.list(institution_id))
        return EffectiveSubjectsOut(
            teacher_id=teacher.id,
            class_id=school_class.id,
            status="unassigned",
            mode=None,
            subjects=subjects,
        )

    def teacher_workload(self, institution_id: str, teacher_id: str) -> WorkloadOut:
        teacher = self._require_teacher(institution_id, teacher_id)
        return self._workload(teacher)

    def _workload(self, teacher: TeacherOut) -> WorkloadOut:
        assignments = self.assignments.list_by_teacher(teacher.id)
        class_levels = {}
        for class_id in {item.class_id for item in assignments}:
            school_class = self.classes.get(class_id)
            if school_class is not None:
                class_levels[class_id] = classify_level(school_class.level_label)
        return summarize_workload(teacher, assignments, class_levels)

    def _warn_if_overloaded(self, institution_id: str, teacher: TeacherOut) -> None:
        workload = self._workload(teacher)
        if workload.overloaded:
            logger.warning(
                "Teacher %s (%s) is assigned %sh/week, above the %sh cap for institution %s",
                teacher.name,
                teacher.id,
                workload.assigned_hours,
                workload.max_hours,
                institution_id,
            )
