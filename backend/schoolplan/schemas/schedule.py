from __future__ import annotations

import re
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

DAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")
# Client input: H:MM, HH:MM or HH:MM:SS. Seconds are dropped once validated.
CLIENT_TIME_PATTERN = re.compile(r"^(\d{1,2}):([0-5]\d)(?::[0-5]\d)?$")


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


class ScheduleEntryBase(BaseModel):
    class_id: str = Field(min_length=1, max_length=36)
    subject_id: str = Field(min_length=1, max_length=36)
    teacher_id: str = Field(min_length=1, max_length=36)
    room_id: str = Field(min_length=1, max_length=36)
    day_of_week: int = Field(ge=0, le=6)
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        match = CLIENT_TIME_PATTERN.match(str(value).strip())
        if match is None:
            raise ValueError("Time must be in HH:MM 24-hour format")
        normalized = f"{int(match.group(1)):02d}:{match.group(2)}"
        if not TIME_PATTERN.match(normalized):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return normalized


class ScheduleEntryCreate(ScheduleEntryBase):
    pass


class ScheduleEntryOut(ScheduleEntryBase):
    id: str
    institution_id: str

    model_config = {"from_attributes": True}


class ConflictKind(str, Enum):
    teacher = "teacher"
    room = "room"
    school_class = "class"


class NoConflict(BaseModel):
    status: Literal["no_conflict"] = "no_conflict"


class Conflict(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    status: Literal["conflict"] = "conflict"
    kind: ConflictKind
    with_entry: ScheduleEntryOut = Field(alias="with")


ConflictResult = NoConflict | Conflict


class ConflictDetail(BaseModel):
    id: str
    kind: ConflictKind
    day_of_week: int
    description: str
    affected_entries: list[str]


class ConflictReport(BaseModel):
    institution_id: str
    conflicts: list[ConflictDetail]


class DisplayEntry(BaseModel):
    id: str
    day_of_week: int
    day_name: str
    start_time: str
    end_time: str
    duration_minutes: int
    duration_label: str
    class_id: str
    class_name: str
    subject_id: str
    subject_name: str
    teacher_id: str
    teacher_name: str
    room_id: str
    room_name: str
