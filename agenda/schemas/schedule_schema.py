"""Operating-hours configuration models."""

from datetime import date
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from agenda.utils import normalize_time, to_minutes


class Weekday(IntEnum):
    """Days of the week, numbered like ``date.weekday()``."""

    MON = 0
    TUE = 1
    WED = 2
    THU = 3
    FRI = 4
    SAT = 5
    SUN = 6


def weekday_index(day: date) -> Weekday:
    return Weekday(day.weekday())


class ScheduleConfig(BaseModel):
    """Immutable snapshot of the salon's operating hours.

    Times are zero-padded ``HH:MM`` strings so that lexical and
    chronological order coincide.
    """

    model_config = ConfigDict(frozen=True)

    opening_time: str
    closing_time: str
    break_start: str
    break_end: str
    slot_duration_minutes: int = Field(gt=0)
    working_days: frozenset[Weekday]

    @field_validator("opening_time", "closing_time", "break_start", "break_end", mode="before")
    @classmethod
    def _canonical_time(cls, value: str) -> str:
        return normalize_time(value)

    @model_validator(mode="after")
    def _check_ordering(self) -> "ScheduleConfig":
        opening = to_minutes(self.opening_time)
        closing = to_minutes(self.closing_time)
        brk_start = to_minutes(self.break_start)
        brk_end = to_minutes(self.break_end)
        if not opening < brk_start <= brk_end < closing:
            raise ValueError(
                "Expected opening_time < break_start <= break_end < closing_time, got "
                f"{self.opening_time} / {self.break_start}-{self.break_end} / {self.closing_time}"
            )
        return self

    def is_working_day(self, day: date) -> bool:
        return weekday_index(day) in self.working_days
