from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from classplanner.core.config import get_settings
from classplanner.core.exceptions import (
    EmptyOwnerSetError,
    ResourceNotFoundError,
    SessionConflictError,
    SessionTooLongError,
)
from classplanner.models.class_session import ClassSession
from classplanner.models.enrollment import Enrollment
from classplanner.models.student import Student
from classplanner.schemas.class_session import ClassSessionCreate, ClassSessionUpdate, GroupSessionCandidate
from classplanner.services.conflict_service import SessionTimeSpec
from classplanner.services.owner_locks import owner_locks
from classplanner.services.resolution import ConflictPolicy, Resolution, resolve

logger = logging.getLogger(__name__)


def to_time_spec(session: ClassSession) -> SessionTimeSpec:
    return SessionTimeSpec(
        id=session.id,
        owner_ids=session.student_ids,
        weekday=session.weekday,
        starts_at=session.starts_at,
        ends_at=session.ends_at,
    )


def get_session(db: Session, session_id: str) -> ClassSession:
    session = db.get(ClassSession, session_id)
    if session is None:
        raise ResourceNotFoundError("Session", session_id)
    return session


def list_sessions(db: Session, *, student_id: str | None = None, weekday: int | None = None) -> list[ClassSession]:
    query = select(ClassSession).options(selectinload(ClassSession.enrollments))
    if student_id is not None:
        query = query.where(ClassSession.enrollments.any(Enrollment.student_id == student_id))
    if weekday is not None:
        query = query.where(ClassSession.weekday == weekday)
    query = query.order_by(ClassSession.weekday.asc(), ClassSession.starts_at.asc(), ClassSession.id.asc())
    return list(db.execute(query).scalars())


def _sessions_for_students(db: Session, student_ids: Iterable[str], weekday: int) -> list[ClassSession]:
    ids = sorted(set(student_ids))
    if not ids:
        return []
    query = (
        select(ClassSession)
        .options(selectinload(ClassSession.enrollments))
        .where(ClassSession.weekday == weekday)
        .where(ClassSession.enrollments.any(Enrollment.student_id.in_(ids)))
    )
    return list(db.execute(query).scalars())


def _load_enrollments(db: Session, enrollment_ids: Iterable[str]) -> list[Enrollment]:
    wanted = list(dict.fromkeys(enrollment_ids))
    if not wanted:
        return []
    found = {
        enrollment.id: enrollment
        for enrollment in db.execute(select(Enrollment).where(Enrollment.id.in_(wanted))).scalars()
    }
    missing = [enrollment_id for enrollment_id in wanted if enrollment_id not in found]
    if missing:
        raise ResourceNotFoundError("Enrollment", missing[0])
    return [found[enrollment_id] for enrollment_id in wanted]


def _lock_student_rows(db: Session, student_ids: Iterable[str]) -> None:
    # Row locks serialize writers across processes; SQLite ignores FOR UPDATE.
    ids = sorted(set(student_ids))
    if ids:
        db.execute(select(Student.id).where(Student.id.in_(ids)).order_by(Student.id).with_for_update()).all()


def _check_duration(candidate: SessionTimeSpec) -> None:
    max_minutes = get_settings().max_session_minutes
    duration = candidate.interval().duration_minutes
    if duration > max_minutes:
        raise SessionTooLongError(duration, max_minutes)


def _resolve_against_students(
    db: Session,
    candidate: SessionTimeSpec,
    policy: ConflictPolicy,
) -> Resolution:
    existing = [to_time_spec(session) for session in _sessions_for_students(db, candidate.owner_ids, candidate.weekday)]
    resolution = resolve(candidate, existing, policy)
    if not resolution.accepted:
        logger.info(
            "Rejected session %s on weekday %s %s-%s: overlaps %s",
            candidate.id,
            candidate.weekday,
            candidate.starts_at,
            candidate.ends_at,
            ", ".join(resolution.conflicting_session_ids),
        )
        raise SessionConflictError(list(resolution.conflicting_session_ids))
    return resolution


def create_session(
    db: Session,
    payload: ClassSessionCreate,
    *,
    policy: ConflictPolicy = ConflictPolicy.reject,
) -> ClassSession:
    enrollments = _load_enrollments(db, payload.enrollment_ids)
    student_ids = {enrollment.student_id for enrollment in enrollments}
    if not student_ids:
        raise EmptyOwnerSetError()

    candidate = SessionTimeSpec(
        id=str(uuid.uuid4()),
        owner_ids=frozenset(student_ids),
        weekday=payload.weekday,
        starts_at=payload.starts_at,
        ends_at=payload.ends_at,
    )
    _check_duration(candidate)

    with owner_locks(student_ids):
        try:
            _lock_student_rows(db, student_ids)
            resolution = _resolve_against_students(db, candidate, policy)
            session = ClassSession(
                id=candidate.id,
                weekday=payload.weekday,
                starts_at=payload.starts_at,
                ends_at=payload.ends_at,
                room=payload.room,
                enrollments=enrollments,
            )
            if resolution.stack_position is not None:
                session.y_position = resolution.stack_position + 1
            db.add(session)
            db.commit()
        except Exception:
            db.rollback()
            raise
    db.refresh(session)
    logger.info("Created session %s for student(s) %s", session.id, ", ".join(sorted(student_ids)))
    return session


def update_session(
    db: Session,
    session_id: str,
    payload: ClassSessionUpdate,
    *,
    policy: ConflictPolicy = ConflictPolicy.reject,
) -> ClassSession:
    session = get_session(db, session_id)
    data = payload.model_dump(exclude_unset=True)

    enrollments = (
        _load_enrollments(db, data["enrollment_ids"]) if data.get("enrollment_ids") is not None else list(session.enrollments)
    )
    student_ids = {enrollment.student_id for enrollment in enrollments}
    if not student_ids:
        raise EmptyOwnerSetError()

    candidate = SessionTimeSpec(
        id=session.id,
        owner_ids=frozenset(student_ids),
        weekday=data["weekday"] if data.get("weekday") is not None else session.weekday,
        starts_at=data["starts_at"] if data.get("starts_at") is not None else session.starts_at,
        ends_at=data["ends_at"] if data.get("ends_at") is not None else session.ends_at,
    )
    _check_duration(candidate)

    with owner_locks(student_ids | set(session.student_ids)):
        try:
            _lock_student_rows(db, student_ids | set(session.student_ids))
            resolution = _resolve_against_students(db, candidate, policy)
            session.weekday = candidate.weekday
            session.starts_at = candidate.starts_at
            session.ends_at = candidate.ends_at
            if "room" in data:
                session.room = data["room"]
            session.enrollments = enrollments
            if resolution.stack_position is not None:
                session.y_position = resolution.stack_position + 1
            db.commit()
        except Exception:
            db.rollback()
            raise
    db.refresh(session)
    logger.info("Updated session %s", session.id)
    return session


def delete_session(db: Session, session_id: str) -> None:
    session = get_session(db, session_id)
    db.delete(session)
    db.commit()
    logger.info("Deleted session %s", session_id)


def find_group_session(db: Session, candidate: GroupSessionCandidate) -> ClassSession | None:
    query = (
        select(ClassSession)
        .options(selectinload(ClassSession.enrollments))
        .where(
            ClassSession.weekday == candidate.weekday,
            ClassSession.starts_at == candidate.starts_at,
            ClassSession.ends_at == candidate.ends_at,
            ClassSession.enrollments.any(Enrollment.subject_id == candidate.subject_id),
        )
        .order_by(ClassSession.created_at.asc(), ClassSession.id.asc())
    )
    return db.execute(query).scalars().first()


def schedule_enrollment(
    db: Session,
    candidate: GroupSessionCandidate,
    *,
    policy: ConflictPolicy = ConflictPolicy.reject,
) -> ClassSession:
    """Place one student's subject at a time block.

    If a session of the same subject already runs at exactly that block, the
    student joins it as a group class; otherwise a new session is created.
    The usual conflict check applies to the joining student either way.
    """
    enrollment = db.execute(
        select(Enrollment).where(
            Enrollment.student_id == candidate.student_id,
            Enrollment.subject_id == candidate.subject_id,
        )
    ).scalar_one_or_none()
    if enrollment is None:
        raise ResourceNotFoundError("Enrollment", f"{candidate.student_id}/{candidate.subject_id}")

    group = find_group_session(db, candidate)
    if group is None:
        return create_session(
            db,
            ClassSessionCreate(
                weekday=candidate.weekday,
                starts_at=candidate.starts_at,
                ends_at=candidate.ends_at,
                room=candidate.room,
                enrollment_ids=[enrollment.id],
            ),
            policy=policy,
        )

    if enrollment.id in group.enrollment_ids:
        return group
    logger.info("Merging enrollment %s into group session %s", enrollment.id, group.id)
    return update_session(
        db,
        group.id,
        ClassSessionUpdate(enrollment_ids=[*group.enrollment_ids, enrollment.id]),
        policy=policy,
    )


def remove_enrollment_from_session(db: Session, session_id: str, enrollment_id: str) -> ClassSession | None:
    """Detach one student from a session; the session is deleted once nobody is left."""
    session = get_session(db, session_id)
    remaining = [enrollment for enrollment in session.enrollments if enrollment.id != enrollment_id]
    if len(remaining) == len(session.enrollments):
        raise ResourceNotFoundError("Enrollment", enrollment_id)
    if not remaining:
        db.delete(session)
        db.commit()
        logger.info("Deleted session %s after its last enrollment was removed", session_id)
        return None
    session.enrollments = remaining
    db.commit()
    db.refresh(session)
    return session


def prune_orphan_sessions(db: Session, session_ids: Iterable[str]) -> int:
    """Delete the given sessions that no longer have any enrollment. Caller commits."""
    ids = sorted(set(session_ids))
    if not ids:
        return 0
    db.flush()
    # Loaded sessions may still list enrollments that were just deleted.
    db.expire_all()
    orphans = list(
        db.execute(
            select(ClassSession).where(ClassSession.id.in_(ids), ~ClassSession.enrollments.any())
        ).scalars()
    )
    for session in orphans:
        db.delete(session)
    if orphans:
        logger.info("Removed %d session(s) left without students", len(orphans))
    return len(orphans)
