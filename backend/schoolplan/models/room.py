import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from schoolplan.db.base import Base


class RoomKind(str, Enum):
    classroom = "classroom"
    lab = "lab"
    it = "it"
    exam = "exam"
    other = "other"


class RoomStatus(str, Enum):
    available = "available"
    maintenance = "maintenance"
    unavailable = "unavailable"


class RoomPolicy(str, Enum):
    fixed = "fixed"
    flexible = "flexible"
    mixed = "mixed"


class Room(Base):
    __tablename__ = "rooms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    institution_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    kind: Mapped[RoomKind] = mapped_column(SAEnum(RoomKind, name="room_kind"), nullable=False, default=RoomKind.classroom)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    status: Mapped[RoomStatus] = mapped_column(
        SAEnum(RoomStatus, name="room_status"), nullable=False, default=RoomStatus.available
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
