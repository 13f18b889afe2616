from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from schoolplan.api.deps import get_actor, get_db, get_institution_id
from schoolplan.core.exceptions import UnknownReferenceError
from schoolplan.models.subject import Subject
from schoolplan.models.teacher import Teacher
from schoolplan.schemas.assignment import EffectiveSubjectsOut
from schoolplan.schemas.teacher import TeacherCreate, TeacherOut, WorkloadOut
from schoolplan.services.assignment_resolver import AssignmentResolver
from schoolplan.services.audit import log_activity
from schoolplan.services.catalogs import SqlTeacherCatalog
from schoolplan.services.scheduling import ScheduleService

router = APIRouter()


@router.get("/", response_model=list[TeacherOut])
def list_teachers(
    institution_id: str = Depends(get_institution_id),
    db: Session = Depends(get_db),
) -> list[TeacherOut]:
    return SqlTeacherCatalog(db).list(institution_id)


@router.post("/", response_model=TeacherOut, status_code=status.HTTP_201_CREATED)
def create_teacher(
    payload: TeacherCreate,
    institution_id: str = Depends(get_institution_id),
    actor: str | None = Depends(get_actor),
    db: Session = Depends(get_db),
) -> TeacherOut:
    if payload.specialization_subject_id:
        subject = db.get(Subject, payload.specialization_subject_id)
        if subject is None or subject.institution_id != institution_id:
            raise UnknownReferenceError("Subject", payload.specialization_subject_id)
    teacher = Teacher(institution_id=institution_id, **payload.model_dump())
    db.add(teacher)
    db.flush()
    log_activity(
        db,
        institution_id=institution_id,
        actor=actor,
        action="teacher.created",
        entity_type="teacher",
        entity_id=teacher.id,
        details=payload.model_dump(),
    )
    db.commit()
    db.refresh(teacher)
    return teacher


@router.delete("/{teacher_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_teacher(
    teacher_id: str,
    institution_id: str = Depends(get_institution_id),
    actor: str | None = Depends(get_actor),
    db: Session = Depends(get_db),
) -> None:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None or teacher.institution_id != institution_id:
        raise UnknownReferenceError("Teacher", teacher_id)
    ScheduleService(db).delete_owner(institution_id, teacher, entity_type="teacher", actor=actor)


@router.get("/{teacher_id}/workload", response_model=WorkloadOut)
def get_workload(
    teacher_id: str,
    institution_id: str = Depends(get_institution_id),
    db: Session = Depends(get_db),
) -> WorkloadOut:
    return AssignmentResolver(db).teacher_workload(institution_id, teacher_id)


@router.get("/{teacher_id}/classes/{class_id}/subjects", response_model=EffectiveSubjectsOut)
def get_effective_subjects(
    teacher_id: str,
    class_id: str,
    institution_id: str = Depends(get_institution_id),
    db: Session = Depends(get_db),
) -> EffectiveSubjectsOut:
    return AssignmentResolver(db).effective_subjects_taught(institution_id, teacher_id, class_id)
