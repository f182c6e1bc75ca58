import uuid
from datetime import datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from classplanner.db.base import Base

class_session_enrollments = Table(
    "class_session_enrollments",
    Base.metadata,
    Column("session_id", String(36), ForeignKey("class_sessions.id", ondelete="CASCADE"), primary_key=True),
    Column("enrollment_id", String(36), ForeignKey("enrollments.id", ondelete="CASCADE"), primary_key=True),
)


class ClassSession(Base):
    """Weekly recurring class block. Weekday 0 is Monday, 6 is Sunday."""

    __tablename__ = "class_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    weekday: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    starts_at: Mapped[str] = mapped_column(String(5), nullable=False)
    ends_at: Mapped[str] = mapped_column(String(5), nullable=False)
    room: Mapped[str | None] = mapped_column(String(50), nullable=True)
    # Display hint only (1-based row); recomputed by the weekly layout.
    y_position: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    enrollments: Mapped[list["Enrollment"]] = relationship(  # noqa: F821
        secondary=class_session_enrollments,
        back_populates="sessions",
    )

    @property
    def enrollment_ids(self) -> list[str]:
        return [enrollment.id for enrollment in self.enrollments]

    @property
    def student_ids(self) -> frozenset[str]:
        return frozenset(enrollment.student_id for enrollment in self.enrollments)

    @property
    def subject_ids(self) -> frozenset[str]:
        return frozenset(enrollment.subject_id for enrollment in self.enrollments)
