import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Enum as SAEnum, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from schoolplan.db.base import Base


class AssignmentMode(str, Enum):
    all_subjects = "all_subjects"
    single_subject = "single_subject"


class TeacherAssignment(Base):
    __tablename__ = "teacher_assignments"
    __table_args__ = (
        Index("uq_teacher_assignments_subject", "teacher_id", "class_id", "subject_id", unique=True),
        # NULL subject ids never collide in the index above.
        Index(
            "uq_teacher_assignments_homeroom",
            "teacher_id",
            "class_id",
            unique=True,
            postgresql_where=text("subject_id IS NULL"),
            sqlite_where=text("subject_id IS NULL"),
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    institution_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    teacher_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("teachers.id", ondelete="CASCADE"), index=True, nullable=False
    )
    class_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("school_classes.id", ondelete="CASCADE"), index=True, nullable=False
    )
    # NULL in all-subjects mode.
    subject_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("subjects.id", ondelete="CASCADE"), nullable=True
    )
    mode: Mapped[AssignmentMode] = mapped_column(SAEnum(AssignmentMode, name="assignment_mode"), nullable=False)
    weekly_hours: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    teacher = relationship("Teacher", back_populates="assignments")
    school_class = relationship("SchoolClass", back_populates="assignments")
