from pydantic import BaseModel, Field

from schoolplan.models.room import RoomKind, RoomPolicy, RoomStatus
from schoolplan.models.school_class import SchoolLevel


class RoomBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    kind: RoomKind = RoomKind.classroom
    capacity: int = Field(default=30, ge=0, le=1000)
    status: RoomStatus = RoomStatus.available


class RoomCreate(RoomBase):
    pass


class RoomUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    kind: RoomKind | None = None
    capacity: int | None = Field(default=None, ge=0, le=1000)
    status: RoomStatus | None = None


class RoomOut(RoomBase):
    id: str
    institution_id: str

    model_config = {"from_attributes": True}


class CandidateRoomsOut(BaseModel):
    class_id: str
    level: SchoolLevel
    policy: RoomPolicy
    bound_room_id: str | None = None
    rooms: list[RoomOut]
