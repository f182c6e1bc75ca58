from datetime import datetime

from pydantic import BaseModel, Field, field_validator


def _clean_name(value: str) -> str:
    trimmed = value.strip()
    if not trimmed:
        raise ValueError("Name cannot be blank")
    return trimmed


class StudentBase(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    gender: str | None = Field(default=None, max_length=20)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        return _clean_name(value)


class StudentCreate(StudentBase):
    pass


class StudentUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=50)
    gender: str | None = Field(default=None, max_length=20)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _clean_name(value)


class StudentOut(StudentBase):
    id: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
