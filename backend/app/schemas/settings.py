from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator, model_validator

DAY_VALUES = {
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
}

DAY_SHORT_MAP = {
    "Mon": "Monday",
    "Tue": "Tuesday",
    "Wed": "Wednesday",
    "Thu": "Thursday",
    "Fri": "Friday",
    "Sat": "Saturday",
    "Sun": "Sunday",
}

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")

DEFAULT_WORKING_DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]


def parse_time_to_minutes(value: str) -> int:
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM 24-hour format")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(value: int) -> str:
    hours = value // 60
    minutes = value % 60
    return f"{hours:02d}:{minutes:02d}"


def normalize_day(value: str) -> str:
    cleaned = value.strip()
    if cleaned[:1].islower():
        cleaned = cleaned.capitalize()
    return DAY_SHORT_MAP.get(cleaned, cleaned)


class TimeSlotEntry(BaseModel):
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @model_validator(mode="after")
    def validate_time_order(self) -> "TimeSlotEntry":
        if parse_time_to_minutes(self.end_time) <= parse_time_to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self


class GridDefinition(BaseModel):
    days: list[str] = Field(default_factory=lambda: list(DEFAULT_WORKING_DAYS), min_length=1, max_length=7)
    time_slots: list[TimeSlotEntry] = Field(min_length=1, max_length=24)

    @field_validator("days")
    @classmethod
    def validate_days(cls, value: list[str]) -> list[str]:
        normalized: list[str] = []
        for item in value:
            day = normalize_day(item)
            if day not in DAY_VALUES:
                raise ValueError(f"Invalid day value: {item}")
            if day in normalized:
                raise ValueError(f"Duplicate day value: {day}")
            normalized.append(day)
        return normalized

    @model_validator(mode="after")
    def validate_slots(self) -> "GridDefinition":
        durations = set()
        previous_end = -1
        for item in self.time_slots:
            start = parse_time_to_minutes(item.start_time)
            end = parse_time_to_minutes(item.end_time)
            if start < previous_end:
                raise ValueError("time_slots must be ordered and must not overlap")
            previous_end = end
            durations.add(end - start)
        if len(durations) > 1:
            raise ValueError("All time_slots must have the same length")
        return self


DEFAULT_GRID = GridDefinition(
    days=DEFAULT_WORKING_DAYS,
    time_slots=[
        TimeSlotEntry(start_time="09:00", end_time="10:00"),
        TimeSlotEntry(start_time="10:00", end_time="11:00"),
        TimeSlotEntry(start_time="11:00", end_time="12:00"),
        TimeSlotEntry(start_time="13:00", end_time="14:00"),
        TimeSlotEntry(start_time="14:00", end_time="15:00"),
        TimeSlotEntry(start_time="15:00", end_time="16:00"),
    ],
)
