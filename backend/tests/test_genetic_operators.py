import random

from app.schemas.catalog import ClassroomOut, FacultyOut, SubjectOut
from app.services.genetic_operators import (
    EligibilityIndex,
    crossover,
    eligible_faculty,
    initialize_candidate,
    mutate,
    tournament_select,
)
from app.services.schedule_grid import Assignment, WeekGrid
from app.schemas.settings import GridDefinition, TimeSlotEntry


def catalog():
    subjects = [
        SubjectOut(id="s1", name="Algorithms", department="CSE", semester=3, hours_per_week=3),
        SubjectOut(id="s2", name="Networks Lab", department="CSE", semester=3, hours_per_week=2, requires_lab=True),
    ]
    faculty = [
        FacultyOut(id="f1", name="Dr. Rao", department="CSE", subjects=["Algorithms"]),
        FacultyOut(id="f2", name="Dr. Iyer", department="CSE", subjects=["Networks Lab"]),
    ]
    classrooms = [
        ClassroomOut(id="r1", name="A-101"),
        ClassroomOut(id="r2", name="A-102"),
        ClassroomOut(id="lab1", name="Lab 1", department="CSE", is_lab=True),
    ]
    return subjects, faculty, classrooms


def test_initialize_places_every_required_hour():
    grid = WeekGrid.from_definition()
    subjects, faculty, classrooms = catalog()

    candidate, unmet = initialize_candidate(grid, subjects, faculty, classrooms, None, random.Random(1))

    assert unmet == []
    placed = [assignment for _, _, assignment in candidate.occupied()]
    assert len(placed) == 5
    assert sum(1 for item in placed if item.subject_id == "s1") == 3
    assert all(item.classroom_id == "lab1" for item in placed if item.subject_id == "s2")
    assert all(item.classroom_id in {"r1", "r2"} for item in placed if item.subject_id == "s1")


def test_initialize_reports_subject_without_lab_room():
    grid = WeekGrid.from_definition()
    subjects, faculty, classrooms = catalog()
    lecture_rooms = [room for room in classrooms if not room.is_lab]

    candidate, unmet = initialize_candidate(grid, subjects, faculty, lecture_rooms, None, random.Random(1))

    assert len(unmet) == 1
    assert unmet[0].subject_id == "s2"
    assert unmet[0].reason == "no_eligible_classroom"
    assert unmet[0].hours_unassigned == 2
    assert all(assignment.subject_id != "s2" for _, _, assignment in candidate.occupied())


def test_initialize_reports_subject_without_faculty():
    grid = WeekGrid.from_definition()
    subject = SubjectOut(id="s9", name="Quantum Optics", department="PHY", semester=1)
    _, faculty, classrooms = catalog()

    candidate, unmet = initialize_candidate(grid, [subject], faculty, classrooms, None, random.Random(1))

    assert candidate.assigned_count() == 0
    assert unmet[0].reason == "no_eligible_faculty"
    assert unmet[0].hours_unassigned == 3


def test_initialize_reports_hours_that_do_not_fit_the_grid():
    grid = WeekGrid.from_definition(
        GridDefinition(
            days=["Monday"],
            time_slots=[
                TimeSlotEntry(start_time="09:00", end_time="10:00"),
                TimeSlotEntry(start_time="10:00", end_time="11:00"),
            ],
        )
    )
    subject = SubjectOut(id="s1", name="Algorithms", department="CSE", semester=3, hours_per_week=5)
    _, faculty, classrooms = catalog()

    candidate, unmet = initialize_candidate(grid, [subject], faculty, classrooms, None, random.Random(3))

    assert candidate.assigned_count() == 2
    assert unmet[0].reason == "grid_full"
    assert unmet[0].hours_unassigned == 3


def test_department_faculty_are_eligible_as_fallback():
    subject = SubjectOut(id="s3", name="Compilers", department="CSE", semester=5)
    outsider = FacultyOut(id="f9", name="Dr. Sen", department="MECH", subjects=["Thermodynamics"])
    _, faculty, _ = catalog()

    assert {member.id for member in eligible_faculty(subject, faculty + [outsider])} == {"f1", "f2"}


def test_crossover_of_candidate_with_itself_is_identity():
    grid = WeekGrid.from_definition()
    subjects, faculty, classrooms = catalog()
    for seed in range(20):
        parent, _ = initialize_candidate(grid, subjects, faculty, classrooms, None, random.Random(seed))
        snapshot = parent.clone()

        child = crossover(parent, parent, random.Random(seed))

        assert child == parent
        assert child is not parent
        assert parent == snapshot


def test_crossover_takes_leading_days_from_first_parent():
    grid = WeekGrid.from_definition()
    parent_a = grid.empty_candidate()
    parent_b = grid.empty_candidate()
    for day_index in range(grid.day_count):
        parent_a.set(day_index, 0, Assignment("s1", "f1", "r1"))
        parent_b.set(day_index, 1, Assignment("s1", "f1", "r2"))

    for seed in range(10):
        child = crossover(parent_a, parent_b, random.Random(seed))
        cut = next(
            (day_index for day_index in range(grid.day_count) if child.get(day_index, 0) is None),
            grid.day_count,
        )
        for day_index in range(grid.day_count):
            expected = parent_a.cells[day_index] if day_index < cut else parent_b.cells[day_index]
            assert child.cells[day_index] == expected


def test_mutation_rate_zero_never_changes_candidate():
    grid = WeekGrid.from_definition()
    subjects, faculty, classrooms = catalog()
    eligibility = EligibilityIndex.build(subjects, faculty, classrooms)
    for seed in range(30):
        candidate, _ = initialize_candidate(grid, subjects, faculty, classrooms, None, random.Random(seed))
        snapshot = candidate.clone()

        assert mutate(candidate, random.Random(seed), 0.0, eligibility) is False
        assert candidate == snapshot


def test_mutation_rate_one_always_changes_candidate():
    grid = WeekGrid.from_definition()
    subjects, faculty, classrooms = catalog()
    eligibility = EligibilityIndex.build(subjects, faculty, classrooms)
    for seed in range(30):
        candidate, _ = initialize_candidate(grid, subjects, faculty, classrooms, None, random.Random(seed))
        snapshot = candidate.clone()

        assert mutate(candidate, random.Random(seed), 1.0, eligibility) is True
        assert candidate != snapshot


def test_mutation_reassigns_when_only_one_cell_is_occupied():
    grid = WeekGrid.from_definition()
    subjects, faculty, classrooms = catalog()
    eligibility = EligibilityIndex.build(subjects[:1], faculty, classrooms)
    candidate = grid.empty_candidate()
    candidate.set(1, 2, Assignment("s1", "f1", "r1"))

    assert mutate(candidate, random.Random(5), 1.0, eligibility) is True
    changed = candidate.get(1, 2)
    assert changed != Assignment("s1", "f1", "r1")
    assert changed.subject_id == "s1"


def test_mutation_of_empty_candidate_is_a_no_op():
    grid = WeekGrid.from_definition()
    subjects, faculty, classrooms = catalog()
    eligibility = EligibilityIndex.build(subjects, faculty, classrooms)

    assert mutate(grid.empty_candidate(), random.Random(0), 1.0, eligibility) is False


def test_tournament_returns_a_clone_of_the_fittest_contender():
    grid = WeekGrid.from_definition()
    population = [grid.empty_candidate() for _ in range(3)]
    population[1].set(0, 0, Assignment("s1", "f1", "r1"))
    fitnesses = [1.0, 5.0, 2.0]

    winner = tournament_select(population, fitnesses, random.Random(4), 50)

    assert winner == population[1]
    assert winner is not population[1]
