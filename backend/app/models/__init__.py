from app.models.classroom import Classroom  # noqa: F401
from app.models.department import Department  # noqa: F401
from app.models.faculty import Faculty  # noqa: F401
from app.models.schedule import Schedule, ScheduleStatus  # noqa: F401
from app.models.student import Student  # noqa: F401
from app.models.subject import Subject  # noqa: F401
