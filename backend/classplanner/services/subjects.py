from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from classplanner.core.config import get_settings
from classplanner.core.exceptions import DuplicateResourceError, ResourceNotFoundError
from classplanner.models.subject import Subject
from classplanner.schemas.subject import SubjectCreate, SubjectUpdate
from classplanner.services.class_sessions import prune_orphan_sessions

logger = logging.getLogger(__name__)


def _ensure_unique_name(db: Session, name: str, *, exclude_id: str | None = None) -> None:
    query = select(Subject).where(Subject.name == name)
    if exclude_id is not None:
        query = query.where(Subject.id != exclude_id)
    if db.execute(query).scalar_one_or_none() is not None:
        raise DuplicateResourceError("Subject", "name", name)


def list_subjects(db: Session) -> list[Subject]:
    return list(db.execute(select(Subject).order_by(Subject.name.asc())).scalars())


def get_subject(db: Session, subject_id: str) -> Subject:
    subject = db.get(Subject, subject_id)
    if subject is None:
        raise ResourceNotFoundError("Subject", subject_id)
    return subject


def create_subject(db: Session, payload: SubjectCreate) -> Subject:
    _ensure_unique_name(db, payload.name)
    subject = Subject(name=payload.name, color=payload.color or get_settings().default_subject_color)
    db.add(subject)
    db.commit()
    db.refresh(subject)
    logger.info("Created subject %s (%s)", subject.id, subject.name)
    return subject


def update_subject(db: Session, subject_id: str, payload: SubjectUpdate) -> Subject:
    subject = get_subject(db, subject_id)
    data = {key: value for key, value in payload.model_dump(exclude_unset=True).items() if value is not None}
    if "name" in data:
        _ensure_unique_name(db, data["name"], exclude_id=subject_id)
    for key, value in data.items():
        setattr(subject, key, value)
    db.commit()
    db.refresh(subject)
    return subject


def delete_subject(db: Session, subject_id: str) -> None:
    subject = get_subject(db, subject_id)
    affected_session_ids = {
        session.id for enrollment in subject.enrollments for session in enrollment.sessions
    }
    db.delete(subject)
    removed = prune_orphan_sessions(db, affected_session_ids)
    db.commit()
    logger.info("Deleted subject %s and %d orphaned session(s)", subject_id, removed)
