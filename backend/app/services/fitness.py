from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
import math

from app.schemas.catalog import ClassroomOut, FacultyOut, StudentOut, SubjectOut
from app.schemas.constraints import FacultyPreferences, ScheduleConstraints
from app.schemas.generator import ObjectiveWeights
from app.schemas.schedule import ScheduleMetrics, UnmetRequirement
from app.schemas.settings import parse_time_to_minutes
from app.services.genetic_operators import eligible_classrooms, eligible_faculty
from app.services.schedule_grid import Candidate, WeekGrid


def _pick(override, stored):
    return override if override is not None else stored


def effective_preferences(member: FacultyOut, constraints: ScheduleConstraints) -> FacultyPreferences:
    """Merge the run-level override for a faculty member over their stored preferences."""
    stored = member.preferences
    override = constraints.faculty_preferences.get(member.id)
    if override is None:
        return stored
    return FacultyPreferences(
        preferred_days=override.preferred_days or stored.preferred_days,
        preferred_time_slots=override.preferred_time_slots or stored.preferred_time_slots,
        max_hours_per_day=_pick(override.max_hours_per_day, stored.max_hours_per_day),
        max_hours_per_week=_pick(override.max_hours_per_week, stored.max_hours_per_week),
        avoid_back_to_back=_pick(override.avoid_back_to_back, stored.avoid_back_to_back),
    )


@dataclass
class ReservedBookings:
    """Faculty and classrooms already committed at a cell by other schedules of the same tenant."""

    faculty: dict[tuple[int, int], list[str]] = field(default_factory=dict)
    classrooms: dict[tuple[int, int], list[str]] = field(default_factory=dict)

    def add(self, day_index: int, slot_index: int, *, faculty_id: str | None, classroom_id: str | None) -> None:
        if faculty_id:
            self.faculty.setdefault((day_index, slot_index), []).append(faculty_id)
        if classroom_id:
            self.classrooms.setdefault((day_index, slot_index), []).append(classroom_id)

    def __bool__(self) -> bool:
        return bool(self.faculty or self.classrooms)


@dataclass
class ViolationReport:
    faculty_conflicts: int = 0
    classroom_conflicts: int = 0
    subject_overlaps: int = 0
    back_to_back: int = 0
    lunch_break: int = 0
    preference: int = 0
    workload_imbalance: int = 0
    consecutive_overflow: int = 0
    hour_deviation: int = 0
    even_distribution: float = 0.0
    subject_spacing: int = 0
    faculty_utilization: float = 0.0
    classroom_utilization: float = 0.0
    daily_counts: list[int] = field(default_factory=list)

    @property
    def hard_violations(self) -> int:
        return self.faculty_conflicts + self.classroom_conflicts + self.subject_overlaps

    @property
    def soft_violations(self) -> int:
        return (
            self.back_to_back
            + self.lunch_break
            + self.preference
            + self.workload_imbalance
            + self.consecutive_overflow
            + self.hour_deviation
        )


@dataclass
class EvaluationResult:
    fitness: float
    report: ViolationReport


def _group_conflicts(
    occupancy: dict[tuple[str, int, int], int],
    reserved: dict[tuple[int, int], list[str]],
) -> int:
    conflicts = 0
    for (resource_id, day_index, slot_index), count in occupancy.items():
        # Clashes among the reserved bookings themselves belong to the other schedules.
        if resource_id in reserved.get((day_index, slot_index), []):
            count += 1
        if count > 1:
            conflicts += count - 1
    return conflicts


def population_stddev(values: list[int]) -> float:
    if not values:
        return 0.0
    mean = sum(values) / len(values)
    variance = sum((value - mean) ** 2 for value in values) / len(values)
    return math.sqrt(variance)


class FitnessEvaluator:
    """Scores candidates; higher is better and never negative.

    Hard violations (double-booked faculty or classrooms, including bookings
    reserved by other schedules) are weighted far above soft ones, so the
    search is pulled toward usable timetables first and toward comfortable
    ones second.
    """

    def __init__(
        self,
        *,
        grid: WeekGrid,
        subjects: list[SubjectOut],
        faculty: list[FacultyOut],
        classrooms: list[ClassroomOut],
        students: list[StudentOut],
        constraints: ScheduleConstraints,
        weights: ObjectiveWeights | None = None,
        reserved: ReservedBookings | None = None,
    ) -> None:
        self.grid = grid
        self.subjects = {item.id: item for item in subjects}
        self.faculty = {item.id: item for item in faculty}
        self.classrooms = {item.id: item for item in classrooms}
        self.students = students
        self.constraints = constraints
        self.weights = weights or ObjectiveWeights()
        self.reserved = reserved or ReservedBookings()

        # Hours a subject can actually receive; unstaffable subjects expect none.
        self.expected_hours = {
            subject.id: subject.hours_per_week
            if eligible_faculty(subject, faculty) and eligible_classrooms(subject, classrooms)
            else 0
            for subject in subjects
        }
        self.preferences = {item.id: effective_preferences(item, constraints) for item in faculty}
        self.daily_caps = {
            faculty_id: prefs.max_hours_per_day or constraints.max_hours_per_day
            for faculty_id, prefs in self.preferences.items()
        }
        self.slot_labels = [slot.label for slot in grid.slots]
        lunch_start = parse_time_to_minutes(constraints.lunch_break_start)
        lunch_end = parse_time_to_minutes(constraints.lunch_break_end)
        self.lunch_slot_indices = [
            index for index, slot in enumerate(grid.slots) if slot.start >= lunch_start and slot.end <= lunch_end
        ]
        self.avoid_slot_labels = set(constraints.avoid_time_slots)
        self.preferred_slot_labels = set(constraints.preferred_time_slots)

    def __call__(self, candidate: Candidate) -> float:
        return self.evaluate(candidate).fitness

    def evaluate(self, candidate: Candidate) -> EvaluationResult:
        report = self.inspect(candidate)
        return EvaluationResult(fitness=self.score(report), report=report)

    def score(self, report: ViolationReport) -> float:
        weights = self.weights
        fitness = weights.base_score
        fitness -= report.faculty_conflicts * weights.faculty_conflict
        fitness -= report.classroom_conflicts * weights.classroom_conflict
        fitness -= report.subject_overlaps * weights.subject_overlap

        fitness -= report.back_to_back * weights.back_to_back
        fitness -= report.lunch_break * weights.lunch_break
        fitness -= report.preference * weights.preference
        fitness -= report.workload_imbalance * weights.workload_imbalance
        fitness -= report.consecutive_overflow * weights.consecutive_overflow
        fitness -= report.hour_deviation * weights.hour_deviation

        fitness += report.even_distribution * weights.even_distribution
        fitness += report.subject_spacing * weights.subject_spacing
        fitness += report.faculty_utilization * weights.faculty_utilization
        fitness += report.classroom_utilization * weights.classroom_utilization
        return max(0.0, fitness)

    def inspect(self, candidate: Candidate) -> ViolationReport:
        report = ViolationReport()
        grid = self.grid

        faculty_occ: dict[tuple[str, int, int], int] = defaultdict(int)
        classroom_occ: dict[tuple[str, int, int], int] = defaultdict(int)

        faculty_day_hours: dict[tuple[str, int], int] = defaultdict(int)
        faculty_usage: dict[str, int] = defaultdict(int)
        classroom_usage: dict[str, int] = defaultdict(int)
        subject_days: dict[str, set[int]] = defaultdict(set)
        subject_hours: dict[str, int] = defaultdict(int)
        daily_counts = [0] * grid.day_count

        for day_index, slot_index, assignment in candidate.occupied():
            faculty_occ[(assignment.faculty_id, day_index, slot_index)] += 1
            classroom_occ[(assignment.classroom_id, day_index, slot_index)] += 1
            faculty_day_hours[(assignment.faculty_id, day_index)] += 1
            faculty_usage[assignment.faculty_id] += 1
            classroom_usage[assignment.classroom_id] += 1
            subject_days[assignment.subject_id].add(day_index)
            subject_hours[assignment.subject_id] += 1
            daily_counts[day_index] += 1
            report.preference += self._preference_violations(day_index, slot_index, assignment)

        report.faculty_conflicts = _group_conflicts(faculty_occ, self.reserved.faculty)
        report.classroom_conflicts = _group_conflicts(classroom_occ, self.reserved.classrooms)
        # One assignment per cell, so the cohort can never sit two subjects at once.
        report.subject_overlaps = 0
        report.hour_deviation = sum(
            abs(subject_hours.get(subject_id, 0) - self.expected_hours.get(subject_id, 0))
            for subject_id in set(subject_hours) | set(self.expected_hours)
        )

        for (faculty_id, _day_index), hours in faculty_day_hours.items():
            cap = self.daily_caps.get(faculty_id, self.constraints.max_hours_per_day)
            if hours > cap:
                report.workload_imbalance += hours - cap

        max_consecutive = self.constraints.max_consecutive_hours
        for day_index, row in enumerate(candidate.cells):
            run_faculty: str | None = None
            run_length = 0
            for slot_index, assignment in enumerate(row):
                current = assignment.faculty_id if assignment is not None else None
                if current is not None and current == run_faculty:
                    run_length += 1
                    prefs = self.preferences.get(current)
                    if prefs is not None and prefs.avoid_back_to_back:
                        report.back_to_back += 1
                else:
                    if run_faculty is not None and run_length > max_consecutive:
                        report.consecutive_overflow += run_length - max_consecutive
                    run_faculty = current
                    run_length = 1 if current is not None else 0
            if run_faculty is not None and run_length > max_consecutive:
                report.consecutive_overflow += run_length - max_consecutive

            for slot_index in self.lunch_slot_indices:
                if row[slot_index] is not None:
                    report.lunch_break += 1

        report.daily_counts = daily_counts
        report.even_distribution = max(0.0, 10.0 - population_stddev(daily_counts))
        report.subject_spacing = sum(len(days) for days in subject_days.values())
        cell_count = grid.cell_count or 1
        report.faculty_utilization = sum(count / cell_count for count in faculty_usage.values())
        report.classroom_utilization = sum(count / cell_count for count in classroom_usage.values())
        return report

    def _preference_violations(self, day_index: int, slot_index: int, assignment) -> int:
        violations = 0
        label = self.slot_labels[slot_index]
        preferred_rooms = self.constraints.room_preferences.get(assignment.subject_id)
        if preferred_rooms and assignment.classroom_id not in preferred_rooms:
            violations += 1
        prefs = self.preferences.get(assignment.faculty_id)
        if prefs is not None:
            if prefs.preferred_days and self.grid.days[day_index] not in prefs.preferred_days:
                violations += 1
            if prefs.preferred_time_slots and label not in prefs.preferred_time_slots:
                violations += 1
        if label in self.avoid_slot_labels:
            violations += 1
        if self.preferred_slot_labels and label not in self.preferred_slot_labels:
            violations += 1
        return violations


def _percentage(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return round(min(100.0, 100.0 * part / whole), 2)


def build_metrics(
    report: ViolationReport,
    *,
    faculty_pool_size: int,
    classroom_pool_size: int,
    used_faculty: int,
    used_classrooms: int,
    unmet: list[UnmetRequirement] | None = None,
) -> ScheduleMetrics:
    constraint_violations = report.soft_violations
    return ScheduleMetrics(
        faculty_conflicts=report.faculty_conflicts,
        classroom_conflicts=report.classroom_conflicts,
        total_conflicts=report.hard_violations,
        constraint_violations=constraint_violations,
        lunch_break_violations=report.lunch_break,
        back_to_back_violations=report.back_to_back,
        workload_overflow_hours=report.workload_imbalance,
        consecutive_overflow_hours=report.consecutive_overflow,
        hour_deviation=report.hour_deviation,
        preference_violations=report.preference,
        faculty_utilization=_percentage(used_faculty, faculty_pool_size),
        classroom_utilization=_percentage(used_classrooms, classroom_pool_size),
        balance_score=round(report.even_distribution * 10.0, 2),
        assigned_hours=sum(report.daily_counts),
        unassigned_hours=sum(item.hours_unassigned for item in (unmet or [])),
    )
