from pydantic import BaseModel, Field


class LayoutSession(BaseModel):
    session_id: str
    starts_at: str
    ends_at: str
    room: str | None = None
    subject_ids: list[str] = Field(default_factory=list)
    track: int = Field(ge=0)


class LayoutRow(BaseModel):
    weekday: int = Field(ge=0, le=6)
    weekday_name: str
    student_id: str | None = None
    depth: int = Field(ge=0)
    sessions: list[LayoutSession] = Field(default_factory=list)


class LayoutWarning(BaseModel):
    session_id: str
    reason: str


class WeeklyLayoutOut(BaseModel):
    rows: list[LayoutRow] = Field(default_factory=list)
    warnings: list[LayoutWarning] = Field(default_factory=list)
    updated_positions: int = 0
