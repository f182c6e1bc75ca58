import re
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

HEX_COLOR_PATTERN = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")

COLOR_PALETTE = {
    "red": "#ef4444",
    "blue": "#3b82f6",
    "green": "#10b981",
    "yellow": "#f59e0b",
    "purple": "#8b5cf6",
    "pink": "#ec4899",
    "indigo": "#6366f1",
    "teal": "#14b8a6",
    "orange": "#f97316",
    "gray": "#6b7280",
}


def normalize_color(value: str) -> str:
    cleaned = value.strip()
    named = COLOR_PALETTE.get(cleaned.lower())
    if named:
        return named
    if not HEX_COLOR_PATTERN.match(cleaned):
        raise ValueError("Color must be a HEX value such as #ff0000 or a palette name")
    return cleaned.lower()


class SubjectBase(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    color: str | None = Field(default=None, max_length=20)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Name cannot be blank")
        return trimmed

    @field_validator("color")
    @classmethod
    def validate_color(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return normalize_color(value)


class SubjectCreate(SubjectBase):
    pass


class SubjectUpdate(SubjectBase):
    name: str | None = Field(default=None, min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("Name cannot be blank")
        return trimmed


class SubjectOut(BaseModel):
    id: str
    name: str
    color: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
