class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class InvalidLevelForModeError(AppError):
    """Raised when an assignment mode does not match the pedagogical level it targets."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)


class SubjectLevelMismatchError(AppError):
    """Raised when a subject is paired with classes of another level."""
    def __init__(self, subject_id: str, subject_level: str, mismatches: list[dict]):
        names = ", ".join(item["class_id"] for item in mismatches)
        super().__init__(
            f"Subject {subject_id} ({subject_level}) cannot be taught to classes of another level: {names}",
            status_code=422,
            details={"subject_id": subject_id, "subject_level": subject_level, "mismatches": mismatches},
        )


class InvalidTimeRangeError(AppError):
    """Raised when a schedule entry does not start strictly before it ends."""
    def __init__(self, start_time: str, end_time: str):
        super().__init__(
            f"Start time {start_time} must be before end time {end_time}",
            status_code=422,
            details={"start_time": start_time, "end_time": end_time},
        )


class SchedulingConflictError(AppError):
    """Raised when a proposed entry double-books a teacher, room or class."""
    def __init__(self, kind: str, with_entry: dict):
        self.kind = kind
        self.with_entry = with_entry
        super().__init__(
            f"The {kind} is already booked between {with_entry['start_time']} and {with_entry['end_time']}",
            status_code=409,
            details={"kind": kind, "with": with_entry},
        )


class UnknownReferenceError(AppError):
    """Raised when an operation references an entity that is not in its catalog."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(
            f"{resource_type} with id {resource_id} not found",
            status_code=404,
            details={"resource_type": resource_type, "resource_id": resource_id},
        )


class ConcurrentScheduleUpdateError(AppError):
    """Raised when another booking for the same day was committed in between."""
    def __init__(self, institution_id: str, day_of_week: int):
        super().__init__(
            "The timetable for this day was modified concurrently, please retry",
            status_code=409,
            details={"institution_id": institution_id, "day_of_week": day_of_week},
        )


class ConfigurationError(AppError):
    """Raised when system configuration is invalid."""
    def __init__(self, message: str):
        super().__init__(message, status_code=500)
