from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from schoolplan.api.deps import get_actor, get_db, get_institution_id
from schoolplan.models.school_class import SchoolLevel
from schoolplan.models.subject import Subject
from schoolplan.schemas.subject import SubjectCreate, SubjectOut
from schoolplan.services.audit import log_activity
from schoolplan.services.catalogs import SqlSubjectCatalog
from schoolplan.services.subject_scope import subjects_for_level

router = APIRouter()


@router.get("/", response_model=list[SubjectOut])
def list_subjects(
    level: SchoolLevel | None = Query(default=None),
    institution_id: str = Depends(get_institution_id),
    db: Session = Depends(get_db),
) -> list[SubjectOut]:
    subjects = SqlSubjectCatalog(db).list(institution_id)
    if level is None:
        return subjects
    return subjects_for_level(level, subjects)


@router.post("/", response_model=SubjectOut, status_code=status.HTTP_201_CREATED)
def create_subject(
    payload: SubjectCreate,
    institution_id: str = Depends(get_institution_id),
    actor: str | None = Depends(get_actor),
    db: Session = Depends(get_db),
) -> SubjectOut:
    subject = Subject(institution_id=institution_id, **payload.model_dump())
    db.add(subject)
    db.flush()
    log_activity(
        db,
        institution_id=institution_id,
        actor=actor,
        action="subject.created",
        entity_type="subject",
        entity_id=subject.id,
        details=payload.model_dump(mode="json"),
    )
    db.commit()
    db.refresh(subject)
    return subject
