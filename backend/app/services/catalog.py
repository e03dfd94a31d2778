from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import DataFetchFailedError, DepartmentNotFoundError
from app.models.classroom import Classroom
from app.models.department import Department
from app.models.faculty import Faculty
from app.models.schedule import Schedule
from app.models.student import Student
from app.models.subject import Subject
from app.schemas.catalog import ClassroomOut, DepartmentOut, FacultyOut, StudentOut, SubjectOut

logger = logging.getLogger(__name__)


class CatalogAdapter:
    """Read-only, tenant-scoped view of the institutional catalog.

    Every read failure surfaces as ``DataFetchFailedError`` so callers can
    abort before any optimization work starts.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _fetch(self, label: str, statement):
        try:
            return list(self.db.execute(statement).scalars().all())
        except SQLAlchemyError as exc:
            logger.exception("Catalog read failed for %s", label)
            raise DataFetchFailedError(
                message=f"Failed to load {label}",
                details={"source": label},
            ) from exc

    def get_department(self, admin_id: str, name: str) -> DepartmentOut:
        rows = self._fetch(
            "departments",
            select(Department).where(Department.admin_id == admin_id, Department.name == name),
        )
        if not rows:
            raise DepartmentNotFoundError(admin_id, name)
        return DepartmentOut.model_validate(rows[0])

    def list_subjects(self, admin_id: str, department: str, semester: int) -> list[SubjectOut]:
        rows = self._fetch(
            "subjects",
            select(Subject)
            .where(
                Subject.admin_id == admin_id,
                Subject.department == department,
                Subject.semester == semester,
            )
            .order_by(Subject.name, Subject.id),
        )
        return [SubjectOut.model_validate(row) for row in rows]

    def list_faculty(self, admin_id: str) -> list[FacultyOut]:
        rows = self._fetch(
            "faculty",
            select(Faculty).where(Faculty.admin_id == admin_id).order_by(Faculty.name, Faculty.id),
        )
        return [FacultyOut.model_validate(row) for row in rows]

    def list_classrooms(self, admin_id: str) -> list[ClassroomOut]:
        rows = self._fetch(
            "classrooms",
            select(Classroom).where(Classroom.admin_id == admin_id).order_by(Classroom.name, Classroom.id),
        )
        return [ClassroomOut.model_validate(row) for row in rows]

    def list_students(self, admin_id: str) -> list[StudentOut]:
        rows = self._fetch(
            "students",
            select(Student).where(Student.admin_id == admin_id).order_by(Student.name, Student.id),
        )
        return [StudentOut.model_validate(row) for row in rows]

    def list_other_schedules(self, admin_id: str, department: str, semester: int) -> list[Schedule]:
        """Schedules of the same tenant for any other department or semester."""
        rows = self._fetch(
            "schedules",
            select(Schedule).where(Schedule.admin_id == admin_id),
        )
        return [row for row in rows if (row.department, row.semester) != (department, semester)]
