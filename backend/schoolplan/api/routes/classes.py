from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from schoolplan.api.deps import get_actor, get_db, get_institution_id
from schoolplan.core.exceptions import UnknownReferenceError
from schoolplan.models.school_class import SchoolClass
from schoolplan.schemas.room import CandidateRoomsOut
from schoolplan.schemas.school_class import SchoolClassCreate, SchoolClassDetail, SchoolClassOut
from schoolplan.services.audit import log_activity
from schoolplan.services.catalogs import SqlRoomCatalog
from schoolplan.services.level_classifier import classify_level
from schoolplan.services.room_policy import candidate_rooms, resolve_room_policy
from schoolplan.services.scheduling import ScheduleService
from schoolplan.services.stores import SqlScheduleStore

router = APIRouter()


def _detail(school_class: SchoolClass) -> SchoolClassDetail:
    level = classify_level(school_class.level_label)
    return SchoolClassDetail(
        **SchoolClassOut.model_validate(school_class).model_dump(),
        level=level,
        room_policy=resolve_room_policy(level),
    )


def _get_class(db: Session, institution_id: str, class_id: str) -> SchoolClass:
    school_class = db.get(SchoolClass, class_id)
    if school_class is None or school_class.institution_id != institution_id:
        raise UnknownReferenceError("Class", class_id)
    return school_class


@router.get("/", response_model=list[SchoolClassDetail])
def list_classes(
    institution_id: str = Depends(get_institution_id),
    db: Session = Depends(get_db),
) -> list[SchoolClassDetail]:
    rows = db.execute(
        select(SchoolClass).where(SchoolClass.institution_id == institution_id).order_by(SchoolClass.name)
    ).scalars()
    return [_detail(row) for row in rows]


@router.post("/", response_model=SchoolClassDetail, status_code=status.HTTP_201_CREATED)
def create_class(
    payload: SchoolClassCreate,
    institution_id: str = Depends(get_institution_id),
    actor: str | None = Depends(get_actor),
    db: Session = Depends(get_db),
) -> SchoolClassDetail:
    school_class = SchoolClass(institution_id=institution_id, **payload.model_dump())
    db.add(school_class)
    db.flush()
    log_activity(
        db,
        institution_id=institution_id,
        actor=actor,
        action="class.created",
        entity_type="class",
        entity_id=school_class.id,
        details=payload.model_dump(),
    )
    db.commit()
    db.refresh(school_class)
    return _detail(school_class)


@router.get("/{class_id}", response_model=SchoolClassDetail)
def get_class(
    class_id: str,
    institution_id: str = Depends(get_institution_id),
    db: Session = Depends(get_db),
) -> SchoolClassDetail:
    return _detail(_get_class(db, institution_id, class_id))


@router.delete("/{class_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_class(
    class_id: str,
    institution_id: str = Depends(get_institution_id),
    actor: str | None = Depends(get_actor),
    db: Session = Depends(get_db),
) -> None:
    school_class = _get_class(db, institution_id, class_id)
    ScheduleService(db).delete_owner(institution_id, school_class, entity_type="class", actor=actor)


@router.get("/{class_id}/candidate-rooms", response_model=CandidateRoomsOut)
def get_candidate_rooms(
    class_id: str,
    institution_id: str = Depends(get_institution_id),
    db: Session = Depends(get_db),
) -> CandidateRoomsOut:
    detail = _detail(_get_class(db, institution_id, class_id))
    bound_room_id = SqlScheduleStore(db).first_room_for_class(detail.id)
    rooms = candidate_rooms(
        detail,
        SqlRoomCatalog(db).list(institution_id),
        bound_room_id,
        policy=detail.room_policy,
    )
    return CandidateRoomsOut(
        class_id=detail.id,
        level=detail.level,
        policy=detail.room_policy,
        bound_room_id=bound_room_id,
        rooms=rooms,
    )
