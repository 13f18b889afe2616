from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from schoolplan.api.deps import get_actor, get_db, get_institution_id
from schoolplan.core.exceptions import AppError, UnknownReferenceError
from schoolplan.models.room import Room
from schoolplan.schemas.room import RoomCreate, RoomOut, RoomUpdate
from schoolplan.services.audit import log_activity

router = APIRouter()


@router.get("/", response_model=list[RoomOut])
def list_rooms(institution_id: str = Depends(get_institution_id), db: Session = Depends(get_db)) -> list[RoomOut]:
    return list(db.execute(select(Room).where(Room.institution_id == institution_id).order_by(Room.name)).scalars())


@router.post("/", response_model=RoomOut, status_code=status.HTTP_201_CREATED)
def create_room(
    payload: RoomCreate,
    institution_id: str = Depends(get_institution_id),
    actor: str | None = Depends(get_actor),
    db: Session = Depends(get_db),
) -> RoomOut:
    existing = db.execute(
        select(Room).where(Room.institution_id == institution_id, Room.name == payload.name)
    ).scalar_one_or_none()
    if existing:
        raise AppError("Room name already exists", status_code=status.HTTP_409_CONFLICT, details={"name": payload.name})
    room = Room(institution_id=institution_id, **payload.model_dump())
    db.add(room)
    db.flush()
    log_activity(
        db,
        institution_id=institution_id,
        actor=actor,
        action="room.created",
        entity_type="room",
        entity_id=room.id,
        details=payload.model_dump(mode="json"),
    )
    db.commit()
    db.refresh(room)
    return room


@router.patch("/{room_id}", response_model=RoomOut)
def update_room(
    room_id: str,
    payload: RoomUpdate,
    institution_id: str = Depends(get_institution_id),
    actor: str | None = Depends(get_actor),
    db: Session = Depends(get_db),
) -> RoomOut:
    room = db.get(Room, room_id)
    if room is None or room.institution_id != institution_id:
        raise UnknownReferenceError("Room", room_id)

    data = payload.model_dump(exclude_unset=True)
    if "name" in data:
        existing = db.execute(
            select(Room).where(Room.institution_id == institution_id, Room.name == data["name"], Room.id != room_id)
        ).scalar_one_or_none()
        if existing:
            raise AppError("Room name already exists", status_code=status.HTTP_409_CONFLICT, details={"name": data["name"]})

    for key, value in data.items():
        setattr(room, key, value)
    if data:
        log_activity(
            db,
            institution_id=institution_id,
            actor=actor,
            action="room.updated",
            entity_type="room",
            entity_id=room.id,
            details=payload.model_dump(mode="json", exclude_unset=True),
        )
    db.commit()
    db.refresh(room)
    return room
