from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from schoolplan.api.deps import get_actor, get_db, get_institution_id
from schoolplan.schemas.assignment import AssignmentOut, HomeroomAssignmentCreate, SubjectAssignmentCreate
from schoolplan.services.assignment_resolver import AssignmentResolver

router = APIRouter()


@router.get("/", response_model=list[AssignmentOut])
def list_assignments(
    teacher_id: str | None = Query(default=None),
    class_id: str | None = Query(default=None),
    institution_id: str = Depends(get_institution_id),
    db: Session = Depends(get_db),
) -> list[AssignmentOut]:
    return AssignmentResolver(db).list_assignments(institution_id, teacher_id=teacher_id, class_id=class_id)


@router.post("/homeroom", response_model=AssignmentOut)
def assign_homeroom(
    payload: HomeroomAssignmentCreate,
    institution_id: str = Depends(get_institution_id),
    actor: str | None = Depends(get_actor),
    db: Session = Depends(get_db),
) -> AssignmentOut:
    return AssignmentResolver(db).assign_homeroom(institution_id, payload, actor=actor)


@router.post("/homeroom/replace", response_model=AssignmentOut)
def replace_homeroom(
    payload: HomeroomAssignmentCreate,
    institution_id: str = Depends(get_institution_id),
    actor: str | None = Depends(get_actor),
    db: Session = Depends(get_db),
) -> AssignmentOut:
    return AssignmentResolver(db).replace_homeroom(institution_id, payload, actor=actor)


@router.post("/subject", response_model=list[AssignmentOut])
def assign_subject_across_classes(
    payload: SubjectAssignmentCreate,
    institution_id: str = Depends(get_institution_id),
    actor: str | None = Depends(get_actor),
    db: Session = Depends(get_db),
) -> list[AssignmentOut]:
    return AssignmentResolver(db).assign_subject_across_classes(institution_id, payload, actor=actor)


@router.delete("/{assignment_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_assignment(
    assignment_id: str,
    institution_id: str = Depends(get_institution_id),
    actor: str | None = Depends(get_actor),
    db: Session = Depends(get_db),
) -> None:
    AssignmentResolver(db).remove_assignment(institution_id, assignment_id, actor=actor)
