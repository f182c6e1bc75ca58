from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from classplanner.schemas.layout import LayoutRow, LayoutSession, LayoutWarning, WeeklyLayoutOut
from classplanner.services.class_sessions import list_sessions, to_time_spec
from classplanner.services.stacking import stack_sessions
from classplanner.services.time_interval import WEEKDAY_NAMES

logger = logging.getLogger(__name__)


def build_weekly_layout(
    db: Session,
    *,
    student_id: str | None = None,
    persist_positions: bool = True,
) -> WeeklyLayoutOut:
    """Stack every session into per-weekday, per-student rows.

    ``y_position`` on each session is refreshed as a 1-based cache of its
    track; it is never read back as a source of truth.
    """
    sessions = list_sessions(db, student_id=student_id)
    by_id = {session.id: session for session in sessions}
    result = stack_sessions(to_time_spec(session) for session in sessions)

    rows: list[LayoutRow] = []
    for (weekday, owner_id), assignment in result.buckets.items():
        if student_id is not None and owner_id != student_id:
            continue
        placed = sorted(assignment.items(), key=lambda item: (by_id[item[0]].starts_at, item[1], item[0]))
        rows.append(
            LayoutRow(
                weekday=weekday,
                weekday_name=WEEKDAY_NAMES[weekday],
                student_id=owner_id,
                depth=result.depths[(weekday, owner_id)],
                sessions=[
                    LayoutSession(
                        session_id=session_id,
                        starts_at=by_id[session_id].starts_at,
                        ends_at=by_id[session_id].ends_at,
                        room=by_id[session_id].room,
                        subject_ids=sorted(by_id[session_id].subject_ids),
                        track=track,
                    )
                    for session_id, track in placed
                ],
            )
        )

    updated = 0
    if persist_positions:
        for session_id, track in result.positions.items():
            session = by_id[session_id]
            if session.y_position != track + 1:
                session.y_position = track + 1
                updated += 1
        if updated:
            db.commit()
            logger.debug("Refreshed cached row position of %d session(s)", updated)

    return WeeklyLayoutOut(
        rows=rows,
        warnings=[LayoutWarning(session_id=item.session_id, reason=item.reason) for item in result.warnings],
        updated_positions=updated,
    )
