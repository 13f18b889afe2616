from pydantic import BaseModel, Field, field_validator

from schoolplan.models.room import RoomPolicy
from schoolplan.models.school_class import SchoolLevel


class SchoolClassBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    level_label: str = Field(default="", max_length=100)

    @field_validator("name", "level_label")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()


class SchoolClassCreate(SchoolClassBase):
    pass


class SchoolClassOut(SchoolClassBase):
    id: str
    institution_id: str

    model_config = {"from_attributes": True}


class SchoolClassDetail(SchoolClassOut):
    level: SchoolLevel
    room_policy: RoomPolicy


class LevelClassificationOut(BaseModel):
    label: str
    level: SchoolLevel
    room_policy: RoomPolicy
    keyword_table_version: str
