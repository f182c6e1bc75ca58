from classplanner.models.class_session import ClassSession, class_session_enrollments  # noqa: F401
from classplanner.models.enrollment import Enrollment  # noqa: F401
from classplanner.models.student import Student  # noqa: F401
from classplanner.models.subject import Subject  # noqa: F401
