"""create planning tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    school_level = sa.Enum("early_childhood", "primary", "lower_secondary", "upper_secondary", name="school_level")
    room_kind = sa.Enum("classroom", "lab", "it", "exam", "other", name="room_kind")
    room_status = sa.Enum("available", "maintenance", "unavailable", name="room_status")
    assignment_mode = sa.Enum("all_subjects", "single_subject", name="assignment_mode")

    op.create_table(
        "school_classes",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("institution_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("level_label", sa.String(length=100), nullable=False, server_default=""),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_school_classes_institution_id", "school_classes", ["institution_id"])

    op.create_table(
        "rooms",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("institution_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("kind", room_kind, nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("status", room_status, nullable=False, server_default="available"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_rooms_institution_id", "rooms", ["institution_id"])

    op.create_table(
        "subjects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("institution_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("code", sa.String(length=50), nullable=False),
        sa.Column("level", school_level, nullable=False),
        sa.Column("coefficient", sa.Float(), nullable=False, server_default="1"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_subjects_institution_id", "subjects", ["institution_id"])

    op.create_table(
        "teachers",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("institution_id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column(
            "specialization_subject_id",
            sa.String(length=36),
            sa.ForeignKey("subjects.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("max_weekly_hours", sa.Integer(), nullable=False, server_default="20"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_teachers_institution_id", "teachers", ["institution_id"])

    op.create_table(
        "teacher_assignments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("institution_id", sa.String(length=36), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "class_id", sa.String(length=36), sa.ForeignKey("school_classes.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("subject_id", sa.String(length=36), sa.ForeignKey("subjects.id", ondelete="CASCADE"), nullable=True),
        sa.Column("mode", assignment_mode, nullable=False),
        sa.Column("weekly_hours", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_teacher_assignments_institution_id", "teacher_assignments", ["institution_id"])
    op.create_index("ix_teacher_assignments_teacher_id", "teacher_assignments", ["teacher_id"])
    op.create_index("ix_teacher_assignments_class_id", "teacher_assignments", ["class_id"])
    op.create_index(
        "uq_teacher_assignments_subject",
        "teacher_assignments",
        ["teacher_id", "class_id", "subject_id"],
        unique=True,
    )
    op.create_index(
        "uq_teacher_assignments_homeroom",
        "teacher_assignments",
        ["teacher_id", "class_id"],
        unique=True,
        postgresql_where=sa.text("subject_id IS NULL"),
        sqlite_where=sa.text("subject_id IS NULL"),
    )

    op.create_table(
        "schedule_entries",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("institution_id", sa.String(length=36), nullable=False),
        sa.Column(
            "class_id", sa.String(length=36), sa.ForeignKey("school_classes.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("subject_id", sa.String(length=36), sa.ForeignKey("subjects.id", ondelete="CASCADE"), nullable=False),
        sa.Column("teacher_id", sa.String(length=36), sa.ForeignKey("teachers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("room_id", sa.String(length=36), sa.ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_schedule_entries_institution_id", "schedule_entries", ["institution_id"])
    op.create_index("ix_schedule_entries_class_id", "schedule_entries", ["class_id"])
    op.create_index("ix_schedule_entries_teacher_id", "schedule_entries", ["teacher_id"])
    op.create_index("ix_schedule_entries_day_of_week", "schedule_entries", ["day_of_week"])

    op.create_table(
        "schedule_day_versions",
        sa.Column("institution_id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("day_of_week", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("institution_id", sa.String(length=36), nullable=False),
        sa.Column("actor", sa.String(length=200), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=True),
        sa.Column("entity_id", sa.String(length=100), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_institution_id", "activity_logs", ["institution_id"])


def downgrade() -> None:
    op.drop_index("ix_activity_logs_institution_id", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_table("schedule_day_versions")
    op.drop_index("ix_schedule_entries_day_of_week", table_name="schedule_entries")
    op.drop_index("ix_schedule_entries_teacher_id", table_name="schedule_entries")
    op.drop_index("ix_schedule_entries_class_id", table_name="schedule_entries")
    op.drop_index("ix_schedule_entries_institution_id", table_name="schedule_entries")
    op.drop_table("schedule_entries")
    op.drop_index("uq_teacher_assignments_homeroom", table_name="teacher_assignments")
    op.drop_index("uq_teacher_assignments_subject", table_name="teacher_assignments")
    op.drop_index("ix_teacher_assignments_class_id", table_name="teacher_assignments")
    op.drop_index("ix_teacher_assignments_teacher_id", table_name="teacher_assignments")
    op.drop_index("ix_teacher_assignments_institution_id", table_name="teacher_assignments")
    op.drop_table("teacher_assignments")
    op.drop_index("ix_teachers_institution_id", table_name="teachers")
    op.drop_table("teachers")
    op.drop_index("ix_subjects_institution_id", table_name="subjects")
    op.drop_table("subjects")
    op.drop_index("ix_rooms_institution_id", table_name="rooms")
    op.drop_table("rooms")
    op.drop_index("ix_school_classes_institution_id", table_name="school_classes")
    op.drop_table("school_classes")

    bind = op.get_bind()
    for name in ("assignment_mode", "room_status", "room_kind", "school_level"):
        sa.Enum(name=name).drop(bind, checkfirst=True)
