from __future__ import annotations

import re

from pydantic import BaseModel, Field, field_validator, model_validator

from app.schemas.settings import DAY_VALUES, TIME_PATTERN, normalize_day, parse_time_to_minutes

SLOT_LABEL_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d-([01]\d|2[0-3]):[0-5]\d$")


def _normalize_slot_labels(value: list[str]) -> list[str]:
    cleaned: list[str] = []
    for item in value:
        label = item.replace(" ", "")
        if not label:
            continue
        if not SLOT_LABEL_PATTERN.match(label):
            raise ValueError(f"Time slot '{item}' must look like HH:MM-HH:MM")
        if label not in cleaned:
            cleaned.append(label)
    return cleaned


class FacultyPreferences(BaseModel):
    preferred_days: list[str] = Field(default_factory=list, max_length=7)
    preferred_time_slots: list[str] = Field(default_factory=list, max_length=48)
    max_hours_per_day: int | None = Field(default=None, ge=1, le=24)
    max_hours_per_week: int | None = Field(default=None, ge=1, le=168)
    avoid_back_to_back: bool | None = None

    @field_validator("preferred_days")
    @classmethod
    def validate_days(cls, value: list[str]) -> list[str]:
        normalized: list[str] = []
        for item in value:
            day = normalize_day(item)
            if day not in DAY_VALUES:
                raise ValueError(f"Invalid day value: {item}")
            if day not in normalized:
                normalized.append(day)
        return normalized

    @field_validator("preferred_time_slots")
    @classmethod
    def validate_slots(cls, value: list[str]) -> list[str]:
        return _normalize_slot_labels(value)


class ScheduleConstraints(BaseModel):
    max_hours_per_day: int = Field(default=6, ge=1, le=24)
    max_consecutive_hours: int = Field(default=3, ge=1, le=24)
    lunch_break_start: str = "12:00"
    lunch_break_end: str = "13:00"
    preferred_time_slots: list[str] = Field(default_factory=list, max_length=48)
    avoid_time_slots: list[str] = Field(default_factory=list, max_length=48)
    room_preferences: dict[str, list[str]] = Field(default_factory=dict)
    faculty_preferences: dict[str, FacultyPreferences] = Field(default_factory=dict)

    @field_validator("lunch_break_start", "lunch_break_end")
    @classmethod
    def validate_time(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @field_validator("preferred_time_slots", "avoid_time_slots")
    @classmethod
    def validate_slots(cls, value: list[str]) -> list[str]:
        return _normalize_slot_labels(value)

    @model_validator(mode="after")
    def validate_windows(self) -> "ScheduleConstraints":
        if parse_time_to_minutes(self.lunch_break_end) <= parse_time_to_minutes(self.lunch_break_start):
            raise ValueError("lunch_break_end must be after lunch_break_start")
        if self.max_consecutive_hours > self.max_hours_per_day:
            raise ValueError("Max consecutive hours cannot exceed max hours per day")
        return self
