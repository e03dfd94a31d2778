from __future__ import annotations

from collections import defaultdict
import logging

from sqlalchemy.orm import Session

from app.core.exceptions import ScheduleNotFoundError
from app.models.schedule import Schedule
from app.schemas.constraints import ScheduleConstraints
from app.schemas.schedule import ScheduleAnalysis, UnmetRequirement
from app.schemas.settings import GridDefinition
from app.services.catalog import CatalogAdapter
from app.services.fitness import FitnessEvaluator, ViolationReport, build_metrics
from app.services.schedule_grid import Assignment, Candidate, WeekGrid
from app.services.schedule_service import (
    classrooms_in_scope,
    faculty_in_scope,
    reserved_bookings_for,
)

logger = logging.getLogger(__name__)

BALANCE_TARGET = 90.0
UTILIZATION_TARGET = 50.0

UNMET_REMEDIES = {
    "no_eligible_faculty": "Assign a qualified faculty member to",
    "no_eligible_classroom": "Provide a suitable classroom for",
    "grid_full": "Extend the weekly grid to fit",
}


def rebuild_candidate(schedule: Schedule, grid: WeekGrid) -> Candidate:
    """Lay the stored id-level placements back onto the grid they were generated for."""
    day_index = {day.lower(): index for index, day in enumerate(grid.days)}
    slot_index = {(slot.start_time, slot.end_time): index for index, slot in enumerate(grid.slots)}
    candidate = grid.empty_candidate()
    for item in schedule.assignments or []:
        day = day_index.get(str(item.get("day", "")).lower())
        slot = slot_index.get((item.get("startTime"), item.get("endTime")))
        if day is None or slot is None:
            continue
        candidate.set(
            day,
            slot,
            Assignment(
                subject_id=item["subjectId"],
                faculty_id=item["facultyId"],
                classroom_id=item["classroomId"],
            ),
        )
    return candidate


def _double_bookings(
    candidate: Candidate,
    grid: WeekGrid,
    evaluator: FitnessEvaluator,
    faculty_names: dict[str, str],
    classroom_names: dict[str, str],
) -> list[str]:
    messages: list[str] = []
    for day, slot, assignment in candidate.occupied():
        when = f"{grid.days[day]} {grid.slots[slot].label}"
        if assignment.faculty_id in evaluator.reserved.faculty.get((day, slot), []):
            name = faculty_names.get(assignment.faculty_id, assignment.faculty_id)
            messages.append(f"Faculty {name} is already teaching another class on {when}")
        if assignment.classroom_id in evaluator.reserved.classrooms.get((day, slot), []):
            name = classroom_names.get(assignment.classroom_id, assignment.classroom_id)
            messages.append(f"Classroom {name} is already booked on {when}")
    return messages


def _suggestions(report: ViolationReport, constraints: ScheduleConstraints, unmet: list[UnmetRequirement]) -> list[str]:
    suggestions: list[str] = []
    if report.hard_violations:
        suggestions.append(f"Resolve {report.hard_violations} double booking(s) before publishing")
    if report.lunch_break:
        suggestions.append(
            f"Move {report.lunch_break} class(es) out of the lunch break "
            f"({constraints.lunch_break_start}-{constraints.lunch_break_end})"
        )
    if report.workload_imbalance:
        suggestions.append(
            f"Redistribute {report.workload_imbalance} hour(s) that exceed faculty daily limits"
        )
    if report.consecutive_overflow:
        suggestions.append(
            f"Break up teaching runs longer than {constraints.max_consecutive_hours} consecutive hours"
        )
    if report.back_to_back:
        suggestions.append(f"Separate {report.back_to_back} back-to-back class(es) for faculty who avoid them")
    if report.preference:
        suggestions.append(f"Review {report.preference} placement(s) that ignore room or time preferences")
    for item in unmet:
        remedy = UNMET_REMEDIES[item.reason]
        suggestions.append(f"{remedy} {item.subject_name} ({item.hours_unassigned} hour(s) unassigned)")
    return suggestions


def analyze_schedule(db: Session, schedule_id: str) -> ScheduleAnalysis:
    """Re-score a stored schedule against the current catalog and its own constraints."""
    schedule = db.get(Schedule, schedule_id)
    if schedule is None:
        raise ScheduleNotFoundError(schedule_id)

    catalog = CatalogAdapter(db)
    subjects = catalog.list_subjects(schedule.admin_id, schedule.department, schedule.semester)
    all_faculty = catalog.list_faculty(schedule.admin_id)
    all_classrooms = catalog.list_classrooms(schedule.admin_id)
    others = catalog.list_other_schedules(schedule.admin_id, schedule.department, schedule.semester)

    grid = WeekGrid.from_definition(GridDefinition.model_validate(schedule.grid) if schedule.grid else None)
    constraints = ScheduleConstraints.model_validate(schedule.constraints or {})
    candidate = rebuild_candidate(schedule, grid)
    # Same pools as generation.
    faculty = faculty_in_scope(all_faculty, schedule.department)
    classrooms = classrooms_in_scope(all_classrooms, schedule.department)
    evaluator = FitnessEvaluator(
        grid=grid,
        subjects=subjects,
        faculty=faculty,
        classrooms=classrooms,
        students=[],
        constraints=constraints,
        reserved=reserved_bookings_for(others, grid),
    )
    report = evaluator.inspect(candidate)
    unmet = [UnmetRequirement.model_validate(item) for item in schedule.warnings or []]

    used_faculty = {assignment.faculty_id for _, _, assignment in candidate.occupied()}
    used_classrooms = {assignment.classroom_id for _, _, assignment in candidate.occupied()}
    metrics = build_metrics(
        report,
        faculty_pool_size=len(faculty),
        classroom_pool_size=len(classrooms),
        used_faculty=len(used_faculty),
        used_classrooms=len(used_classrooms),
        unmet=unmet,
    )

    faculty_names = {item.id: item.name for item in all_faculty}
    classroom_names = {item.id: item.name for item in all_classrooms}
    conflicts = _double_bookings(candidate, grid, evaluator, faculty_names, classroom_names)

    improvements: list[str] = []
    if metrics.balance_score < BALANCE_TARGET:
        busiest = max(range(grid.day_count), key=lambda idx: report.daily_counts[idx])
        improvements.append(f"Spread classes more evenly across the week; {grid.days[busiest]} is the busiest day")
    per_subject_days: dict[str, set[int]] = defaultdict(set)
    for day, _slot, assignment in candidate.occupied():
        per_subject_days[assignment.subject_id].add(day)
    subject_names = {item.id: item.name for item in subjects}
    hours: dict[str, int] = defaultdict(int)
    for _day, _slot, assignment in candidate.occupied():
        hours[assignment.subject_id] += 1
    for subject_id, days in per_subject_days.items():
        if len(days) < min(hours[subject_id], grid.day_count):
            name = subject_names.get(subject_id, subject_id)
            improvements.append(f"Spread {name} over more days of the week")
    if metrics.faculty_utilization < UTILIZATION_TARGET and len(used_faculty) > 0:
        improvements.append("Involve more of the department's faculty to share the teaching load")
    if metrics.classroom_utilization < UTILIZATION_TARGET and len(used_classrooms) > 0:
        improvements.append("Consolidate classes into fewer classrooms or share idle rooms with other departments")

    logger.info(
        "Analyzed schedule %s: %s conflicts, %s constraint violations",
        schedule_id,
        metrics.total_conflicts,
        metrics.constraint_violations,
    )
    return ScheduleAnalysis(
        schedule_id=schedule.id,
        metrics=metrics,
        suggestions=_suggestions(report, constraints, unmet),
        conflicts=conflicts,
        improvements=improvements,
    )
