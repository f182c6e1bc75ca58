from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from classplanner.core.exceptions import AppError
from classplanner.services.time_interval import TimeInterval, normalize_time


def _normalize_clock(value: str) -> str:
    try:
        return normalize_time(value)
    except AppError as exc:
        raise ValueError(exc.message) from exc


def _check_order(weekday: int, starts_at: str, ends_at: str) -> None:
    try:
        TimeInterval.from_strings(weekday, starts_at, ends_at)
    except AppError as exc:
        raise ValueError(exc.message) from exc


class ClassSessionBase(BaseModel):
    weekday: int = Field(ge=0, le=6)
    starts_at: str = Field(alias="startsAt")
    ends_at: str = Field(alias="endsAt")
    room: str | None = Field(default=None, max_length=50)

    model_config = {"populate_by_name": True}

    @field_validator("starts_at", "ends_at")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        return _normalize_clock(value)

    @model_validator(mode="after")
    def validate_time_order(self) -> "ClassSessionBase":
        _check_order(self.weekday, self.starts_at, self.ends_at)
        return self


class ClassSessionCreate(ClassSessionBase):
    enrollment_ids: list[str] = Field(default_factory=list, alias="enrollmentIds", max_length=100)


class ClassSessionUpdate(BaseModel):
    weekday: int | None = Field(default=None, ge=0, le=6)
    starts_at: str | None = Field(default=None, alias="startsAt")
    ends_at: str | None = Field(default=None, alias="endsAt")
    room: str | None = Field(default=None, max_length=50)
    enrollment_ids: list[str] | None = Field(default=None, alias="enrollmentIds", max_length=100)

    model_config = {"populate_by_name": True}

    @field_validator("starts_at", "ends_at")
    @classmethod
    def validate_time_format(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return _normalize_clock(value)

    @model_validator(mode="after")
    def validate_time_order(self) -> "ClassSessionUpdate":
        # Only checkable here when both ends are given; the service re-checks
        # the merged values.
        if self.starts_at is not None and self.ends_at is not None:
            _check_order(self.weekday if self.weekday is not None else 0, self.starts_at, self.ends_at)
        return self


class GroupSessionCandidate(ClassSessionBase):
    """One student taking one subject at a time block; merged into a matching group class if any."""

    student_id: str = Field(alias="studentId", min_length=1, max_length=36)
    subject_id: str = Field(alias="subjectId", min_length=1, max_length=36)


class ClassSessionOut(BaseModel):
    id: str
    weekday: int
    starts_at: str
    ends_at: str
    room: str | None = None
    y_position: int | None = None
    enrollment_ids: list[str] = Field(default_factory=list)
    student_ids: list[str] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @field_validator("enrollment_ids", "student_ids", mode="before")
    @classmethod
    def sort_ids(cls, value) -> list[str]:
        return sorted(value or [])
