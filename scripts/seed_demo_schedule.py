"""Seed demo students, subjects and weekly sessions, then print the stacked layout.

Run:
  PYTHONPATH=backend python scripts/seed_demo_schedule.py
"""

from __future__ import annotations

import logging

from classplanner.core.exceptions import SessionConflictError
from classplanner.core.logging_config import setup_logging
from classplanner.db.bootstrap import ensure_schema
from classplanner.db.session import SessionLocal
from classplanner.schemas.class_session import GroupSessionCandidate
from classplanner.schemas.enrollment import EnrollmentCreate
from classplanner.schemas.student import StudentCreate
from classplanner.schemas.subject import SubjectCreate
from classplanner.services import class_sessions, enrollments, students, subjects
from classplanner.services.weekly_layout import build_weekly_layout

logger = logging.getLogger("seed_demo_schedule")

DEMO_STUDENTS = [("Kim Minji", "F"), ("Lee Jisoo", "F"), ("Park Junho", "M")]
DEMO_SUBJECTS = [("Math", "blue"), ("English", "green"), ("Science", "orange")]

# (student, subject, weekday, start, end); weekday 0 is Monday.
DEMO_SCHEDULE = [
    ("Kim Minji", "Math", 0, "16:00", "17:00"),
    ("Lee Jisoo", "Math", 0, "16:00", "17:00"),
    ("Kim Minji", "English", 0, "17:00", "18:00"),
    ("Park Junho", "Science", 0, "16:30", "17:30"),
    ("Lee Jisoo", "English", 2, "15:00", "16:30"),
    ("Park Junho", "Math", 2, "15:00", "16:00"),
    ("Kim Minji", "Science", 4, "18:00", "19:00"),
    # Overlaps Minji's English block; rejected.
    ("Kim Minji", "Math", 0, "17:30", "18:30"),
]


def _get_or_create_student(db, name: str, gender: str):
    for student in students.list_students(db):
        if student.name == name:
            return student
    return students.create_student(db, StudentCreate(name=name, gender=gender))


def _get_or_create_subject(db, name: str, color: str):
    for subject in subjects.list_subjects(db):
        if subject.name == name:
            return subject
    return subjects.create_subject(db, SubjectCreate(name=name, color=color))


def main() -> None:
    setup_logging()
    ensure_schema()

    db = SessionLocal()
    try:
        student_by_name = {name: _get_or_create_student(db, name, gender) for name, gender in DEMO_STUDENTS}
        subject_by_name = {name: _get_or_create_subject(db, name, color) for name, color in DEMO_SUBJECTS}

        for student_name, subject_name, weekday, starts_at, ends_at in DEMO_SCHEDULE:
            student = student_by_name[student_name]
            subject = subject_by_name[subject_name]
            enrollments.enroll(db, EnrollmentCreate(student_id=student.id, subject_id=subject.id))
            try:
                class_sessions.schedule_enrollment(
                    db,
                    GroupSessionCandidate(
                        student_id=student.id,
                        subject_id=subject.id,
                        weekday=weekday,
                        starts_at=starts_at,
                        ends_at=ends_at,
                    ),
                )
            except SessionConflictError as exc:
                logger.warning("%s %s %s-%s skipped: %s", student_name, subject_name, starts_at, ends_at, exc.message)

        names = {student.id: student.name for student in student_by_name.values()}
        layout = build_weekly_layout(db)
        for row in layout.rows:
            print(f"{row.weekday_name:<9} {names.get(row.student_id, row.student_id):<12} depth={row.depth}")
            for item in row.sessions:
                print(f"    track {item.track}: {item.starts_at}-{item.ends_at}")
        for warning in layout.warnings:
            print(f"  ! {warning.session_id}: {warning.reason}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
