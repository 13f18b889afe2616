import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from schoolplan.db.base import Base


class SchoolLevel(str, Enum):
    early_childhood = "early_childhood"
    primary = "primary"
    lower_secondary = "lower_secondary"
    upper_secondary = "upper_secondary"


HOMEROOM_LEVELS = frozenset({SchoolLevel.early_childhood, SchoolLevel.primary})
SECONDARY_LEVELS = frozenset({SchoolLevel.lower_secondary, SchoolLevel.upper_secondary})


class SchoolClass(Base):
    __tablename__ = "school_classes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    institution_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    # Free text as entered by the institution; the level is always derived from it.
    level_label: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    assignments = relationship(
        "TeacherAssignment", back_populates="school_class", cascade="all, delete"
    )
    schedule_entries = relationship(
        "ScheduleEntry", back_populates="school_class", cascade="all, delete"
    )
