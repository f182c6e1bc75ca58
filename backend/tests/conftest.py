import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from classplanner.db.base import Base
import classplanner.models  # noqa: F401
from classplanner.schemas.enrollment import EnrollmentCreate
from classplanner.schemas.student import StudentCreate
from classplanner.schemas.subject import SubjectCreate
from classplanner.services import enrollments as enrollment_service
from classplanner.services import students as student_service
from classplanner.services import subjects as subject_service
from classplanner.services.conflict_service import SessionTimeSpec
from classplanner.services.owner_locks import clear_owner_locks


@pytest.fixture()
def engine():
    engine = create_engine(  # isolated in-memory DB shared by every connection of the test
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def db(engine):
    clear_owner_locks()
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        clear_owner_locks()


@pytest.fixture()
def make_spec():
    def _make(session_id, owners, weekday, starts_at, ends_at):
        return SessionTimeSpec(
            id=session_id,
            owner_ids=frozenset(owners),
            weekday=weekday,
            starts_at=starts_at,
            ends_at=ends_at,
        )

    return _make


@pytest.fixture()
def roster(db):
    """Two students (Minji, Jisoo) and two subjects (Math, English), both students enrolled in both."""
    minji = student_service.create_student(db, StudentCreate(name="Minji"))
    jisoo = student_service.create_student(db, StudentCreate(name="Jisoo", gender="F"))
    math = subject_service.create_subject(db, SubjectCreate(name="Math", color="#ef4444"))
    english = subject_service.create_subject(db, SubjectCreate(name="English"))

    enrollments = {}
    for student in (minji, jisoo):
        for subject in (math, english):
            enrollment, _ = enrollment_service.enroll(
                db, EnrollmentCreate(student_id=student.id, subject_id=subject.id)
            )
            enrollments[(student.name, subject.name)] = enrollment

    return {
        "students": {"Minji": minji, "Jisoo": jisoo},
        "subjects": {"Math": math, "English": english},
        "enrollments": enrollments,
    }
