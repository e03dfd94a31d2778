from __future__ import annotations

from dataclasses import dataclass
import random

from app.schemas.catalog import ClassroomOut, FacultyOut, SubjectOut
from app.schemas.constraints import ScheduleConstraints
from app.schemas.schedule import UnmetRequirement
from app.services.schedule_grid import Assignment, Candidate, WeekGrid

MUTATION_ATTEMPTS = 8


def eligible_faculty(subject: SubjectOut, faculty: list[FacultyOut]) -> list[FacultyOut]:
    return [
        member
        for member in faculty
        if subject.name in member.subjects or member.department == subject.department
    ]


def eligible_classrooms(subject: SubjectOut, classrooms: list[ClassroomOut]) -> list[ClassroomOut]:
    return [room for room in classrooms if room.is_lab == subject.requires_lab]


@dataclass
class EligibilityIndex:
    """Eligible faculty and classroom ids per subject, shared by initializer and mutation."""

    faculty_by_subject: dict[str, list[str]]
    classrooms_by_subject: dict[str, list[str]]

    @classmethod
    def build(
        cls,
        subjects: list[SubjectOut],
        faculty: list[FacultyOut],
        classrooms: list[ClassroomOut],
    ) -> "EligibilityIndex":
        return cls(
            faculty_by_subject={
                subject.id: [member.id for member in eligible_faculty(subject, faculty)] for subject in subjects
            },
            classrooms_by_subject={
                subject.id: [room.id for room in eligible_classrooms(subject, classrooms)] for subject in subjects
            },
        )


def initialize_candidate(
    grid: WeekGrid,
    subjects: list[SubjectOut],
    faculty: list[FacultyOut],
    classrooms: list[ClassroomOut],
    constraints: ScheduleConstraints | None,
    rng: random.Random,
    *,
    eligibility: EligibilityIndex | None = None,
) -> tuple[Candidate, list[UnmetRequirement]]:
    """Build one random candidate by dropping each subject hour into a free cell.

    Subjects that cannot be staffed or housed, or that run out of free cells,
    are reported back rather than silently skipped. Constraints are not used
    for placement; they only influence scoring.
    """
    eligibility = eligibility or EligibilityIndex.build(subjects, faculty, classrooms)
    candidate = grid.empty_candidate()
    free_cells = list(range(grid.cell_count))
    unmet: list[UnmetRequirement] = []

    for subject in subjects:
        hours = subject.hours_per_week
        faculty_ids = eligibility.faculty_by_subject.get(subject.id, [])
        classroom_ids = eligibility.classrooms_by_subject.get(subject.id, [])
        if not faculty_ids:
            unmet.append(_unmet(subject, hours, "no_eligible_faculty"))
            continue
        if not classroom_ids:
            unmet.append(_unmet(subject, hours, "no_eligible_classroom"))
            continue

        for placed in range(hours):
            if not free_cells:
                unmet.append(_unmet(subject, hours - placed, "grid_full"))
                break
            cell = free_cells.pop(rng.randrange(len(free_cells)))
            day_index, slot_index = grid.coordinate(cell)
            candidate.set(
                day_index,
                slot_index,
                Assignment(
                    subject_id=subject.id,
                    faculty_id=rng.choice(faculty_ids),
                    classroom_id=rng.choice(classroom_ids),
                ),
            )

    return candidate, unmet


def _unmet(subject: SubjectOut, hours: int, reason: str) -> UnmetRequirement:
    return UnmetRequirement(
        subject_id=subject.id,
        subject_name=subject.name,
        hours_unassigned=hours,
        reason=reason,
    )


def tournament_select(
    population: list[Candidate],
    fitnesses: list[float],
    rng: random.Random,
    tournament_size: int,
) -> Candidate:
    contenders = [rng.randrange(len(population)) for _ in range(tournament_size)]
    best_index = max(contenders, key=lambda idx: fitnesses[idx])
    return population[best_index].clone()


def crossover(parent_a: Candidate, parent_b: Candidate, rng: random.Random) -> Candidate:
    """Single-point crossover on day boundaries.

    Days before the cut come from ``parent_a``, the rest from ``parent_b``.
    Hours for a subject may be gained or lost, since a subject's hours are not
    tied to particular days.
    """
    day_count = len(parent_a.cells)
    cut = rng.randrange(day_count) if day_count else 0
    rows = [list(row) for row in parent_a.cells[:cut]]
    rows.extend(list(row) for row in parent_b.cells[cut:])
    return Candidate(rows)


def mutate(
    candidate: Candidate,
    rng: random.Random,
    mutation_rate: float,
    eligibility: EligibilityIndex,
) -> bool:
    """Mutate ``candidate`` in place with probability ``mutation_rate``; return whether it changed."""
    if mutation_rate <= 0.0 or rng.random() >= mutation_rate:
        return False

    occupied = [(day_index, slot_index) for day_index, slot_index, _ in candidate.occupied()]
    if not occupied:
        return False

    for _attempt in range(MUTATION_ATTEMPTS):
        if rng.random() < 0.5:
            changed = _swap_cells(candidate, occupied, rng)
        else:
            changed = _reassign_cell(candidate, occupied, rng, eligibility)
        if changed:
            return True
    return _first_possible_change(candidate, occupied, eligibility)


def _first_possible_change(
    candidate: Candidate,
    occupied: list[tuple[int, int]],
    eligibility: EligibilityIndex,
) -> bool:
    first = occupied[0]
    for other in occupied[1:]:
        if candidate.get(*other) != candidate.get(*first):
            left = candidate.get(*first)
            candidate.set(*first, candidate.get(*other))
            candidate.set(*other, left)
            return True
    for day_index, slot_index in occupied:
        current = candidate.get(day_index, slot_index)
        for faculty_id in eligibility.faculty_by_subject.get(current.subject_id, []):
            for classroom_id in eligibility.classrooms_by_subject.get(current.subject_id, []):
                replacement = Assignment(current.subject_id, faculty_id, classroom_id)
                if replacement != current:
                    candidate.set(day_index, slot_index, replacement)
                    return True
    return False


def _swap_cells(candidate: Candidate, occupied: list[tuple[int, int]], rng: random.Random) -> bool:
    if len(occupied) < 2:
        return False
    first, second = rng.sample(occupied, 2)
    left = candidate.get(*first)
    right = candidate.get(*second)
    if left == right:
        return False
    candidate.set(*first, right)
    candidate.set(*second, left)
    return True


def _reassign_cell(
    candidate: Candidate,
    occupied: list[tuple[int, int]],
    rng: random.Random,
    eligibility: EligibilityIndex,
) -> bool:
    day_index, slot_index = rng.choice(occupied)
    current = candidate.get(day_index, slot_index)
    faculty_ids = eligibility.faculty_by_subject.get(current.subject_id) or [current.faculty_id]
    classroom_ids = eligibility.classrooms_by_subject.get(current.subject_id) or [current.classroom_id]
    replacement = Assignment(
        subject_id=current.subject_id,
        faculty_id=rng.choice(faculty_ids),
        classroom_id=rng.choice(classroom_ids),
    )
    if replacement == current:
        return False
    candidate.set(day_index, slot_index, replacement)
    return True
