import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.api.deps import get_db
from app.db.base import Base
from app.main import app


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def seed_catalog(session_factory):
    """Insert a small department catalog and return the created ids by name."""

    def _seed(
        *,
        admin_id: str = "admin-1",
        department: str = "Computer Science",
        semester: int = 3,
        with_lab: bool = True,
        subjects: list[dict] | None = None,
    ) -> dict[str, str]:
        from app.models import Classroom, Department, Faculty, Student, Subject

        db = session_factory()
        try:
            rows = [
                Department(admin_id=admin_id, name=department, code="CS"),
                Faculty(
                    admin_id=admin_id,
                    name="Dr. Rao",
                    department=department,
                    subjects=["Algorithms", "Databases"],
                    preferences={"max_hours_per_day": 3},
                ),
                Faculty(
                    admin_id=admin_id,
                    name="Dr. Iyer",
                    department=department,
                    subjects=["Networks Lab"],
                    preferences={},
                ),
                Faculty(admin_id=admin_id, name="Dr. Khan", department="Mechanical", subjects=["Thermodynamics"]),
                Classroom(admin_id=admin_id, name="A-101", building="Main", capacity=60, is_lab=False),
                Classroom(admin_id=admin_id, name="A-102", building="Main", capacity=60, is_lab=False),
                Classroom(admin_id=admin_id, name="M-Lab", building="Workshop", department="Mechanical", is_lab=True),
                Student(admin_id=admin_id, name="Asha", roll_number="CS301", department=department, semester=semester),
            ]
            if with_lab:
                rows.append(
                    Classroom(admin_id=admin_id, name="CS-Lab", building="Main", department=department, is_lab=True)
                )
            subject_specs = subjects or [
                {"name": "Algorithms", "hours_per_week": 3},
                {"name": "Databases", "hours_per_week": 2},
                {"name": "Networks Lab", "hours_per_week": 2, "requires_lab": True},
            ]
            for spec in subject_specs:
                rows.append(Subject(admin_id=admin_id, department=department, semester=semester, **spec))
            db.add_all(rows)
            db.commit()
            return {row.name: row.id for row in rows}
        finally:
            db.close()

    return _seed
