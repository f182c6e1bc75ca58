from classplanner.models.class_session import ClassSession
from classplanner.schemas.class_session import ClassSessionCreate
from classplanner.services import class_sessions as session_service
from classplanner.services.resolution import ConflictPolicy
from classplanner.services.weekly_layout import build_weekly_layout


def _create(db, enrollments, weekday, starts_at, ends_at):
    return session_service.create_session(
        db,
        ClassSessionCreate(
            weekday=weekday,
            starts_at=starts_at,
            ends_at=ends_at,
            enrollment_ids=[enrollment.id for enrollment in enrollments],
        ),
        policy=ConflictPolicy.stack,
    )


def test_layout_rows_follow_weekday_and_student(db, roster):
    minji, jisoo = roster["students"]["Minji"], roster["students"]["Jisoo"]
    first = _create(db, [roster["enrollments"][("Minji", "Math")]], 1, "09:00", "10:00")
    second = _create(db, [roster["enrollments"][("Minji", "English")]], 1, "09:30", "10:30")
    third = _create(db, [roster["enrollments"][("Jisoo", "Math")]], 1, "10:00", "11:00")

    layout = build_weekly_layout(db)

    rows = {(row.weekday, row.student_id): row for row in layout.rows}
    minji_row = rows[(1, minji.id)]
    assert minji_row.weekday_name == "Tuesday"
    assert minji_row.depth == 2
    assert [(item.session_id, item.track) for item in minji_row.sessions] == [(first.id, 0), (second.id, 1)]
    assert rows[(1, jisoo.id)].depth == 1
    assert rows[(1, jisoo.id)].sessions[0].session_id == third.id
    assert layout.warnings == []


def test_layout_refreshes_cached_positions(db, roster):
    first = _create(db, [roster["enrollments"][("Minji", "Math")]], 1, "09:00", "10:00")
    second = _create(db, [roster["enrollments"][("Minji", "English")]], 1, "09:30", "10:30")
    first_id, second_id = first.id, second.id

    db.delete(db.get(ClassSession, first_id))
    db.commit()

    layout = build_weekly_layout(db)
    assert layout.updated_positions == 1
    assert db.get(ClassSession, second_id).y_position == 1

    assert build_weekly_layout(db).updated_positions == 0


def test_layout_can_skip_persisting(db, roster):
    session = _create(db, [roster["enrollments"][("Minji", "Math")]], 1, "09:00", "10:00")
    session.y_position = 5
    db.commit()

    layout = build_weekly_layout(db, persist_positions=False)
    assert layout.updated_positions == 0
    assert db.get(ClassSession, session.id).y_position == 5


def test_layout_for_one_student(db, roster):
    minji, jisoo = roster["students"]["Minji"], roster["students"]["Jisoo"]
    _create(
        db,
        [roster["enrollments"][("Minji", "Math")], roster["enrollments"][("Jisoo", "Math")]],
        0,
        "15:00",
        "16:00",
    )
    _create(db, [roster["enrollments"][("Jisoo", "English")]], 0, "15:30", "16:30")

    layout = build_weekly_layout(db, student_id=minji.id)
    assert [row.student_id for row in layout.rows] == [minji.id]
    assert layout.rows[0].sessions[0].track == 0

    layout = build_weekly_layout(db, student_id=jisoo.id)
    assert layout.rows[0].depth == 2


def test_corrupt_stored_times_become_warnings(db, roster):
    good = _create(db, [roster["enrollments"][("Minji", "Math")]], 2, "09:00", "10:00")
    bad = _create(db, [roster["enrollments"][("Minji", "English")]], 2, "11:00", "12:00")
    bad.ends_at = "noon"
    db.commit()

    layout = build_weekly_layout(db)

    assert [warning.session_id for warning in layout.warnings] == [bad.id]
    assert [item.session_id for row in layout.rows for item in row.sessions] == [good.id]
