from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from classplanner.core.exceptions import ResourceNotFoundError
from classplanner.models.enrollment import Enrollment
from classplanner.schemas.enrollment import EnrollmentCreate
from classplanner.services.class_sessions import prune_orphan_sessions
from classplanner.services.students import get_student
from classplanner.services.subjects import get_subject

logger = logging.getLogger(__name__)


def find_enrollment(db: Session, student_id: str, subject_id: str) -> Enrollment | None:
    return db.execute(
        select(Enrollment).where(Enrollment.student_id == student_id, Enrollment.subject_id == subject_id)
    ).scalar_one_or_none()


def get_enrollment(db: Session, enrollment_id: str) -> Enrollment:
    enrollment = db.get(Enrollment, enrollment_id)
    if enrollment is None:
        raise ResourceNotFoundError("Enrollment", enrollment_id)
    return enrollment


def list_enrollments(db: Session, *, student_id: str | None = None) -> list[Enrollment]:
    query = select(Enrollment)
    if student_id is not None:
        query = query.where(Enrollment.student_id == student_id)
    query = query.order_by(Enrollment.student_id.asc(), Enrollment.subject_id.asc())
    return list(db.execute(query).scalars())


def enroll(db: Session, payload: EnrollmentCreate) -> tuple[Enrollment, bool]:
    """Link a student to a subject. Returns the enrollment and whether it was newly created."""
    get_student(db, payload.student_id)
    get_subject(db, payload.subject_id)

    existing = find_enrollment(db, payload.student_id, payload.subject_id)
    if existing is not None:
        return existing, False

    enrollment = Enrollment(student_id=payload.student_id, subject_id=payload.subject_id)
    db.add(enrollment)
    db.commit()
    db.refresh(enrollment)
    logger.info("Enrolled student %s in subject %s", payload.student_id, payload.subject_id)
    return enrollment, True


def delete_enrollment(db: Session, enrollment_id: str) -> None:
    enrollment = get_enrollment(db, enrollment_id)
    affected_session_ids = {session.id for session in enrollment.sessions}
    db.delete(enrollment)
    prune_orphan_sessions(db, affected_session_ids)
    db.commit()
