"""Weekly slot universe and the candidate timetable laid over it.

The grid is pure structure: it knows which (day, slot) cells exist and how to
walk them, but it carries no notion of validity. Scoring lives in
``app.services.fitness``.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass

from app.schemas.settings import DEFAULT_GRID, GridDefinition, minutes_to_time, parse_time_to_minutes


@dataclass(frozen=True)
class TimeSlot:
    start: int
    end: int

    @property
    def start_time(self) -> str:
        return minutes_to_time(self.start)

    @property
    def end_time(self) -> str:
        return minutes_to_time(self.end)

    @property
    def label(self) -> str:
        return f"{self.start_time}-{self.end_time}"


@dataclass(frozen=True)
class Assignment:
    subject_id: str
    faculty_id: str
    classroom_id: str


@dataclass(frozen=True)
class WeekGrid:
    days: tuple[str, ...]
    slots: tuple[TimeSlot, ...]

    @classmethod
    def from_definition(cls, definition: GridDefinition | None = None) -> "WeekGrid":
        definition = definition or DEFAULT_GRID
        return cls(
            days=tuple(definition.days),
            slots=tuple(
                TimeSlot(
                    start=parse_time_to_minutes(item.start_time),
                    end=parse_time_to_minutes(item.end_time),
                )
                for item in definition.time_slots
            ),
        )

    @property
    def day_count(self) -> int:
        return len(self.days)

    @property
    def slot_count(self) -> int:
        return len(self.slots)

    @property
    def cell_count(self) -> int:
        return self.day_count * self.slot_count

    def coordinates(self) -> Iterator[tuple[int, int]]:
        for day_index in range(self.day_count):
            for slot_index in range(self.slot_count):
                yield day_index, slot_index

    def flat_index(self, day_index: int, slot_index: int) -> int:
        return day_index * self.slot_count + slot_index

    def coordinate(self, flat_index: int) -> tuple[int, int]:
        return divmod(flat_index, self.slot_count)

    def empty_candidate(self) -> "Candidate":
        return Candidate([[None] * self.slot_count for _ in range(self.day_count)])


class Candidate:
    """One complete timetable proposal: ``cells[day][slot]`` holds an Assignment or None."""

    __slots__ = ("cells",)

    def __init__(self, cells: list[list[Assignment | None]]) -> None:
        self.cells = cells

    def clone(self) -> "Candidate":
        # Assignments are immutable, so copying the row lists is a full structural copy.
        return Candidate([list(row) for row in self.cells])

    def get(self, day_index: int, slot_index: int) -> Assignment | None:
        return self.cells[day_index][slot_index]

    def set(self, day_index: int, slot_index: int, assignment: Assignment | None) -> None:
        self.cells[day_index][slot_index] = assignment

    def clear(self, day_index: int, slot_index: int) -> None:
        self.cells[day_index][slot_index] = None

    def occupied(self) -> Iterator[tuple[int, int, Assignment]]:
        for day_index, row in enumerate(self.cells):
            for slot_index, assignment in enumerate(row):
                if assignment is not None:
                    yield day_index, slot_index, assignment

    def flat(self) -> list[Assignment | None]:
        return [assignment for row in self.cells for assignment in row]

    def assigned_count(self) -> int:
        return sum(1 for row in self.cells for assignment in row if assignment is not None)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Candidate):
            return NotImplemented
        return self.cells == other.cells

    def __repr__(self) -> str:
        return f"Candidate(assigned={self.assigned_count()})"
