from pydantic import BaseModel, Field, field_validator

from schoolplan.models.school_class import SchoolLevel


class SubjectBase(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    code: str = Field(min_length=1, max_length=50)
    level: SchoolLevel
    coefficient: float = Field(default=1.0, gt=0, le=20)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, value: str) -> str:
        code = value.strip().upper()
        if not code:
            raise ValueError("Subject code cannot be blank")
        return code


class SubjectCreate(SubjectBase):
    pass


class SubjectOut(SubjectBase):
    id: str
    institution_id: str

    model_config = {"from_attributes": True}
