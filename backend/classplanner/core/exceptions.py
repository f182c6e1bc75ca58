class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class InvalidTimeFormatError(AppError):
    """Raised when a clock time is not a valid HH:MM value."""
    def __init__(self, value: object):
        super().__init__(
            f"Invalid time value {value!r}: expected HH:MM in 24-hour format",
            status_code=422,
            details={"value": value},
        )

class InvalidIntervalError(AppError):
    """Raised when a weekday/start/end triple does not describe a usable interval."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)

class SessionConflictError(AppError):
    """Raised on the write path when a session overlaps another session of the same student."""
    def __init__(self, conflicting_session_ids: list[str]):
        super().__init__(
            "시간이 겹칩니다.",
            status_code=409,
            details={"conflicting_session_ids": list(conflicting_session_ids)},
        )
        self.conflicting_session_ids = list(conflicting_session_ids)

class EmptyOwnerSetError(AppError):
    """Raised when a session would be stored without any enrolled student."""
    def __init__(self):
        super().__init__("A session needs at least one enrolled student", status_code=400)

class SessionTooLongError(AppError):
    """Raised when a session exceeds the configured maximum duration."""
    def __init__(self, duration_minutes: int, max_minutes: int):
        super().__init__(
            f"Session lasts {duration_minutes} minutes; the maximum is {max_minutes}",
            status_code=400,
            details={"duration_minutes": duration_minutes, "max_minutes": max_minutes},
        )

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

class DuplicateResourceError(AppError):
    """Raised when a unique attribute is already taken."""
    def __init__(self, resource_type: str, field: str, value: str):
        super().__init__(
            f"{resource_type} with {field} {value!r} already exists",
            status_code=409,
            details={"field": field, "value": value},
        )

class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)
