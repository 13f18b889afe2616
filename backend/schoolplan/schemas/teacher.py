from pydantic import BaseModel, Field

from schoolplan.models.school_class import SchoolLevel


class TeacherBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    specialization_subject_id: str | None = Field(default=None, max_length=36)
    max_weekly_hours: int = Field(default=20, ge=1, le=60)


class TeacherCreate(TeacherBase):
    pass


class TeacherOut(TeacherBase):
    id: str
    institution_id: str

    model_config = {"from_attributes": True}


class WorkloadOut(BaseModel):
    teacher_id: str
    assigned_hours: int
    max_hours: int
    levels: list[SchoolLevel]
    overloaded: bool
    remaining_hours: int
