from sqlalchemy import func, select

from classplanner.core.exceptions import AppError
from classplanner.db.session import SessionLocal
from classplanner.models import ClassSession, Enrollment, Student, Subject
from classplanner.services.class_sessions import list_sessions, to_time_spec

db = SessionLocal()
try:
    for model in (Student, Subject, Enrollment, ClassSession):
        count = db.execute(select(func.count()).select_from(model)).scalar_one()
        print(f"{model.__tablename__}: {count}")

    students = db.execute(select(Student).order_by(Student.name)).scalars().all()
    for student in students:
        sessions = list_sessions(db, student_id=student.id)
        minutes = 0
        broken = 0
        for session in sessions:
            try:
                minutes += to_time_spec(session).interval().duration_minutes
            except AppError:
                broken += 1
        print(f"  - {student.name}: {len(sessions)} session(s), {minutes} min/week, {broken} unreadable")
finally:
    db.close()
