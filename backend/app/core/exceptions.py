class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class SchedulerError(AppError):
    """Raised when the optimizer is configured with an invalid state."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class DataFetchFailedError(AppError):
    """A catalog read failed before any optimization work started."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=502, details=details)

class DepartmentNotFoundError(AppError):
    def __init__(self, admin_id: str, department: str):
        super().__init__(
            f"Department {department} not found",
            status_code=404,
            details={"admin_id": admin_id, "department": department},
        )

class EmptyScopeError(AppError):
    """No subjects, faculty or classrooms exist for the requested scope."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=422, details=details)

class PersistenceFailedError(AppError):
    """The generated schedule could not be saved. Safe to retry with the same inputs."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=503, details=details)

class ScheduleNotFoundError(AppError):
    def __init__(self, schedule_id: str):
        super().__init__(f"Schedule with id {schedule_id} not found", status_code=404)

class SchedulePublishedError(AppError):
    """Published schedules are read-only."""
    def __init__(self, schedule_id: str):
        super().__init__(
            f"Schedule {schedule_id} is published and cannot be deleted",
            status_code=409,
            details={"schedule_id": schedule_id},
        )
