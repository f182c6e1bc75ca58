from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from classplanner.core.exceptions import DuplicateResourceError, ResourceNotFoundError
from classplanner.models.student import Student
from classplanner.schemas.student import StudentCreate, StudentUpdate
from classplanner.services.class_sessions import prune_orphan_sessions

logger = logging.getLogger(__name__)


def _ensure_unique_name(db: Session, name: str, *, exclude_id: str | None = None) -> None:
    query = select(Student).where(Student.name == name)
    if exclude_id is not None:
        query = query.where(Student.id != exclude_id)
    if db.execute(query).scalar_one_or_none() is not None:
        raise DuplicateResourceError("Student", "name", name)


def list_students(db: Session) -> list[Student]:
    return list(db.execute(select(Student).order_by(Student.name.asc())).scalars())


def get_student(db: Session, student_id: str) -> Student:
    student = db.get(Student, student_id)
    if student is None:
        raise ResourceNotFoundError("Student", student_id)
    return student


def create_student(db: Session, payload: StudentCreate) -> Student:
    _ensure_unique_name(db, payload.name)
    student = Student(**payload.model_dump())
    db.add(student)
    db.commit()
    db.refresh(student)
    logger.info("Created student %s (%s)", student.id, student.name)
    return student


def update_student(db: Session, student_id: str, payload: StudentUpdate) -> Student:
    student = get_student(db, student_id)
    data = payload.model_dump(exclude_unset=True)
    if data.get("name") is None:
        data.pop("name", None)
    else:
        _ensure_unique_name(db, data["name"], exclude_id=student_id)

    for key, value in data.items():
        setattr(student, key, value)
    db.commit()
    db.refresh(student)
    return student


def delete_student(db: Session, student_id: str) -> None:
    """Delete a student together with their enrollments.

    Group classes keep running for the other students; sessions that only
    this student attended are removed.
    """
    student = get_student(db, student_id)
    affected_session_ids = {
        session.id for enrollment in student.enrollments for session in enrollment.sessions
    }
    db.delete(student)
    removed = prune_orphan_sessions(db, affected_session_ids)
    db.commit()
    logger.info("Deleted student %s and %d orphaned session(s)", student_id, removed)
