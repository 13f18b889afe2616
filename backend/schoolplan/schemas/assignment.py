from typing import Literal

from pydantic import BaseModel, Field, field_validator

from schoolplan.models.assignment import AssignmentMode
from schoolplan.schemas.subject import SubjectOut


class HomeroomAssignmentCreate(BaseModel):
    teacher_id: str = Field(min_length=1, max_length=36)
    class_id: str = Field(min_length=1, max_length=36)
    weekly_hours: int = Field(ge=1, le=60)


class SubjectAssignmentCreate(BaseModel):
    teacher_id: str = Field(min_length=1, max_length=36)
    subject_id: str = Field(min_length=1, max_length=36)
    class_ids: list[str] = Field(min_length=1, max_length=100)
    weekly_hours_each: int = Field(ge=1, le=60)

    @field_validator("class_ids")
    @classmethod
    def dedupe_class_ids(cls, value: list[str]) -> list[str]:
        seen: set[str] = set()
        class_ids: list[str] = []
        for item in value:
            class_id = item.strip()
            if not class_id or class_id in seen:
                continue
            seen.add(class_id)
            class_ids.append(class_id)
        if not class_ids:
            raise ValueError("At least one class id is required")
        return class_ids


class AssignmentOut(BaseModel):
    id: str
    institution_id: str
    teacher_id: str
    class_id: str
    subject_id: str | None = None
    mode: AssignmentMode
    weekly_hours: int

    model_config = {"from_attributes": True}


class EffectiveSubjectsOut(BaseModel):
    teacher_id: str
    class_id: str
    status: Literal["assigned", "unassigned"]
    mode: AssignmentMode | None = None
    subjects: list[SubjectOut]
