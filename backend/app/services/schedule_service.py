from __future__ import annotations

import logging
import threading

from sqlalchemy import delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import EmptyScopeError, PersistenceFailedError
from app.models.schedule import Schedule, ScheduleStatus
from app.schemas.catalog import ClassroomOut, FacultyOut
from app.schemas.constraints import ScheduleConstraints
from app.schemas.generator import GenerateScheduleResponse, GenerationSettingsBase
from app.schemas.schedule import ScheduleOut
from app.schemas.settings import GridDefinition
from app.services.catalog import CatalogAdapter
from app.services.evolution_scheduler import GeneticScheduler
from app.services.fitness import ReservedBookings, build_metrics
from app.services.schedule_grid import WeekGrid
from app.services.schedule_materializer import materialize

logger = logging.getLogger(__name__)


def faculty_in_scope(faculty: list[FacultyOut], department: str) -> list[FacultyOut]:
    return [member for member in faculty if member.department == department]


def classrooms_in_scope(classrooms: list[ClassroomOut], department: str) -> list[ClassroomOut]:
    # Labs are department property; lecture rooms and unowned rooms are shared.
    return [
        room
        for room in classrooms
        if room.department == department or room.department is None or not room.is_lab
    ]


def reserved_bookings_for(schedules: list[Schedule], grid: WeekGrid) -> ReservedBookings:
    """Index faculty and classroom placements of other schedules onto this run's grid."""
    day_index = {day.lower(): index for index, day in enumerate(grid.days)}
    slot_index = {(slot.start_time, slot.end_time): index for index, slot in enumerate(grid.slots)}
    reserved = ReservedBookings()
    for schedule in schedules:
        for item in schedule.assignments or []:
            day = day_index.get(str(item.get("day", "")).lower())
            slot = slot_index.get((item.get("startTime"), item.get("endTime")))
            if day is None or slot is None:
                continue
            reserved.add(day, slot, faculty_id=item.get("facultyId"), classroom_id=item.get("classroomId"))
    return reserved


def resolve_generation_settings(settings: GenerationSettingsBase | None) -> GenerationSettingsBase:
    app_settings = get_settings()
    resolved = settings or GenerationSettingsBase()
    updates: dict = {}
    if resolved.random_seed is None and app_settings.generation_random_seed is not None:
        updates["random_seed"] = app_settings.generation_random_seed
    if resolved.workers is None:
        updates["workers"] = app_settings.generation_workers
    if resolved.deadline_seconds is None and app_settings.generation_deadline_seconds is not None:
        updates["deadline_seconds"] = app_settings.generation_deadline_seconds
    if not updates:
        return resolved
    return GenerationSettingsBase.model_validate({**resolved.model_dump(), **updates})


def generate_schedule(
    db: Session,
    *,
    admin_id: str,
    department: str,
    semester: int,
    constraints: ScheduleConstraints | None = None,
    settings: GenerationSettingsBase | None = None,
    grid: GridDefinition | None = None,
    cancel_event: threading.Event | None = None,
) -> GenerateScheduleResponse:
    """Generate, persist and return a draft timetable for one department and semester.

    All catalog reads happen before optimization starts. The new draft replaces
    any previous draft for the same scope; published schedules are left alone.
    """
    catalog = CatalogAdapter(db)
    catalog.get_department(admin_id, department)
    subjects = catalog.list_subjects(admin_id, department, semester)
    faculty = faculty_in_scope(catalog.list_faculty(admin_id), department)
    classrooms = classrooms_in_scope(catalog.list_classrooms(admin_id), department)
    students = [
        item for item in catalog.list_students(admin_id) if item.department == department and item.semester == semester
    ]
    other_schedules = catalog.list_other_schedules(admin_id, department, semester)

    missing = [
        label
        for label, items in (("subjects", subjects), ("faculty", faculty), ("classrooms", classrooms))
        if not items
    ]
    if missing:
        raise EmptyScopeError(
            message=f"Nothing to schedule: no {', '.join(missing)} in scope",
            details={"admin_id": admin_id, "department": department, "semester": semester, "missing": missing},
        )

    constraints = constraints or ScheduleConstraints()
    week_grid = WeekGrid.from_definition(grid)
    resolved_settings = resolve_generation_settings(settings)
    logger.info(
        "Generating schedule for admin=%s department=%s semester=%s (%s subjects, %s faculty, %s classrooms)",
        admin_id,
        department,
        semester,
        len(subjects),
        len(faculty),
        len(classrooms),
    )

    scheduler = GeneticScheduler(
        grid=week_grid,
        subjects=subjects,
        faculty=faculty,
        classrooms=classrooms,
        students=students,
        constraints=constraints,
        settings=resolved_settings,
        reserved=reserved_bookings_for(other_schedules, week_grid),
        workers=resolved_settings.workers or 1,
        deadline_seconds=resolved_settings.deadline_seconds,
        cancel_event=cancel_event,
    )
    result = scheduler.run()
    best = result.best if result.best is not None else week_grid.empty_candidate()
    report = result.report if result.report is not None else scheduler.evaluator.inspect(best)

    materialized = materialize(
        best,
        week_grid,
        admin_id=admin_id,
        department=department,
        semester=semester,
        subjects=subjects,
        faculty=faculty,
        classrooms=classrooms,
    )
    used_faculty = {assignment.faculty_id for _, _, assignment in best.occupied()}
    used_classrooms = {assignment.classroom_id for _, _, assignment in best.occupied()}
    metrics = build_metrics(
        report,
        faculty_pool_size=len(faculty),
        classroom_pool_size=len(classrooms),
        used_faculty=len(used_faculty),
        used_classrooms=len(used_classrooms),
        unmet=result.unmet,
    )
    if result.unmet:
        logger.warning(
            "Schedule for %s semester %s leaves %s hours unassigned",
            department,
            semester,
            metrics.unassigned_hours,
        )

    record = Schedule(
        admin_id=admin_id,
        department=department,
        semester=semester,
        weekly_schedule=materialized.weekly_schedule,
        assignments=materialized.assignments,
        status=materialized.status,
        generated_by=materialized.generated_by,
        constraints=constraints.model_dump(),
        grid={
            "days": list(week_grid.days),
            "time_slots": [{"start_time": slot.start_time, "end_time": slot.end_time} for slot in week_grid.slots],
        },
        metrics=metrics.model_dump(),
        warnings=[item.model_dump() for item in result.unmet],
        fitness=result.best_fitness if result.best is not None else 0.0,
    )
    try:
        db.execute(
            delete(Schedule).where(
                Schedule.admin_id == admin_id,
                Schedule.department == department,
                Schedule.semester == semester,
                Schedule.status == ScheduleStatus.draft,
            )
        )
        db.add(record)
        db.commit()
        db.refresh(record)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to save schedule for %s semester %s", department, semester)
        raise PersistenceFailedError(
            message="Failed to save schedule",
            details={"admin_id": admin_id, "department": department, "semester": semester},
        ) from exc

    return GenerateScheduleResponse(
        schedule=ScheduleOut.model_validate(record),
        metrics=metrics,
        warnings=result.unmet,
        fitness=record.fitness,
        initial_fitness=result.initial_fitness,
        generations_run=result.generations_run,
        termination=result.state,
        settings_used=resolved_settings,
        runtime_ms=result.runtime_ms,
    )
