"""Seed a demo department catalog for the timetable optimizer.

Run:
  PYTHONPATH=backend python scripts/seed_demo_catalog.py
"""

from __future__ import annotations

import os

from sqlalchemy import func, select

from app.db.bootstrap import ensure_runtime_schema
from app.db.session import SessionLocal
from app.models.classroom import Classroom
from app.models.department import Department
from app.models.faculty import Faculty
from app.models.student import Student
from app.models.subject import Subject

ADMIN_ID = os.getenv("SEED_ADMIN_ID", "demo-admin").strip() or "demo-admin"
DEPARTMENT = os.getenv("SEED_DEPARTMENT", "Computer Science").strip() or "Computer Science"
SEMESTER = int(os.getenv("SEED_SEMESTER", "3"))
STUDENTS_PER_SEMESTER = 30

SUBJECTS = [
    # name, code, hours per week, requires lab
    ("Data Structures", "CS301", 4, False),
    ("Discrete Mathematics", "CS302", 3, False),
    ("Database Systems", "CS303", 3, False),
    ("Operating Systems", "CS304", 3, False),
    ("Data Structures Lab", "CS351", 2, True),
    ("Database Lab", "CS352", 2, True),
]

FACULTY = [
    {
        "name": "Dr. Meera Nair",
        "email": "meera.nair@university.edu",
        "subjects": ["Data Structures", "Data Structures Lab"],
        "preferences": {"max_hours_per_day": 3, "avoid_back_to_back": True},
    },
    {
        "name": "Prof. Arjun Mehta",
        "email": "arjun.mehta@university.edu",
        "subjects": ["Discrete Mathematics"],
        "preferences": {"preferred_days": ["Monday", "Wednesday", "Friday"]},
    },
    {
        "name": "Dr. Kavya Reddy",
        "email": "kavya.reddy@university.edu",
        "subjects": ["Database Systems", "Database Lab"],
        "preferences": {"preferred_time_slots": ["09:00-10:00", "10:00-11:00", "11:00-12:00"]},
    },
    {
        "name": "Dr. Sameer Khan",
        "email": "sameer.khan@university.edu",
        "subjects": ["Operating Systems"],
        "preferences": {},
    },
]

CLASSROOMS = [
    # name, building, department, capacity, is_lab
    ("LH-101", "Academic Block A", None, 72, False),
    ("LH-102", "Academic Block A", None, 72, False),
    ("LH-201", "Academic Block B", DEPARTMENT, 60, False),
    ("CS-Lab-1", "Academic Block B", DEPARTMENT, 40, True),
]


def upsert_department(session) -> Department:
    existing = session.execute(
        select(Department).where(Department.admin_id == ADMIN_ID, Department.name == DEPARTMENT)
    ).scalar_one_or_none()
    if existing is None:
        existing = Department(admin_id=ADMIN_ID, name=DEPARTMENT, code="CS")
        session.add(existing)
    session.flush()
    return existing


def upsert_subjects(session) -> None:
    for name, code, hours, requires_lab in SUBJECTS:
        existing = session.execute(
            select(Subject).where(Subject.admin_id == ADMIN_ID, Subject.code == code)
        ).scalar_one_or_none()
        if existing is None:
            existing = Subject(admin_id=ADMIN_ID, code=code)
            session.add(existing)
        existing.name = name
        existing.department = DEPARTMENT
        existing.semester = SEMESTER
        existing.hours_per_week = hours
        existing.requires_lab = requires_lab
    session.flush()


def upsert_faculty(session) -> None:
    for profile in FACULTY:
        existing = session.execute(
            select(Faculty).where(Faculty.admin_id == ADMIN_ID, func.lower(Faculty.email) == profile["email"])
        ).scalar_one_or_none()
        if existing is None:
            existing = Faculty(admin_id=ADMIN_ID, email=profile["email"])
            session.add(existing)
        existing.name = profile["name"]
        existing.department = DEPARTMENT
        existing.subjects = profile["subjects"]
        existing.preferences = profile["preferences"]
    session.flush()


def upsert_classrooms(session) -> None:
    for name, building, department, capacity, is_lab in CLASSROOMS:
        existing = session.execute(
            select(Classroom).where(Classroom.admin_id == ADMIN_ID, Classroom.name == name)
        ).scalar_one_or_none()
        if existing is None:
            existing = Classroom(admin_id=ADMIN_ID, name=name)
            session.add(existing)
        existing.building = building
        existing.department = department
        existing.capacity = capacity
        existing.is_lab = is_lab
    session.flush()


def seed_students(session) -> None:
    current = session.execute(
        select(func.count(Student.id)).where(
            Student.admin_id == ADMIN_ID,
            Student.department == DEPARTMENT,
            Student.semester == SEMESTER,
        )
    ).scalar_one()
    for index in range(current, STUDENTS_PER_SEMESTER):
        session.add(
            Student(
                admin_id=ADMIN_ID,
                name=f"Student {index + 1:02d}",
                roll_number=f"CS{SEMESTER}{index + 1:03d}",
                department=DEPARTMENT,
                semester=SEMESTER,
            )
        )
    session.flush()


def main() -> None:
    ensure_runtime_schema()
    with SessionLocal() as session:
        upsert_department(session)
        upsert_subjects(session)
        upsert_faculty(session)
        upsert_classrooms(session)
        seed_students(session)
        session.commit()

        subject_count = session.execute(
            select(func.count(Subject.id)).where(Subject.admin_id == ADMIN_ID)
        ).scalar_one()
        faculty_count = session.execute(
            select(func.count(Faculty.id)).where(Faculty.admin_id == ADMIN_ID)
        ).scalar_one()
        room_count = session.execute(
            select(func.count(Classroom.id)).where(Classroom.admin_id == ADMIN_ID)
        ).scalar_one()

    print("Demo catalog seeded successfully.")
    print("")
    print(f"Admin id:   {ADMIN_ID}")
    print(f"Department: {DEPARTMENT} (semester {SEMESTER})")
    print(f"Subjects:   {subject_count}")
    print(f"Faculty:    {faculty_count}")
    print(f"Classrooms: {room_count}")
    print("")
    print("Generate a draft with:")
    print(
        "  curl -X POST http://localhost:8000/api/schedules/generate -H 'Content-Type: application/json' "
        f"-d '{{\"admin_id\": \"{ADMIN_ID}\", \"department\": \"{DEPARTMENT}\", \"semester\": {SEMESTER}}}'"
    )


if __name__ == "__main__":
    main()
