"""Simulated time — the clock's value type and its advance records."""

from functools import total_ordering
from typing import List, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


@total_ordering
class SimTime(BaseModel):
    """A point in simulated time. Ordered by (day, hour, minute)."""

    model_config = ConfigDict(frozen=True)

    day: int = Field(ge=1)
    hour: int = Field(ge=0, le=23)
    minute: int = Field(ge=0, le=59, default=0)

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.day, self.hour, self.minute)

    def __lt__(self, other: "SimTime") -> bool:
        if not isinstance(other, SimTime):
            return NotImplemented
        return self.as_tuple() < other.as_tuple()

    def __hash__(self) -> int:
        return hash(self.as_tuple())


class ClockConfig(BaseModel):
    """Configuration for the simulation clock."""

    business_start_hour: int = Field(ge=0, le=23, default=8)
    business_end_hour: int = Field(ge=1, le=24, default=17)
    minutes_per_real_second: int = Field(ge=1, default=2)
    speed: int = Field(ge=0, default=1)
    tick_rate_ms: int = Field(gt=0, default=100)

    @model_validator(mode="after")
    def _start_before_end(self) -> "ClockConfig":
        if self.business_start_hour >= self.business_end_hour:
            raise ValueError("business_start_hour must be before business_end_hour")
        return self

    @property
    def minutes_per_day(self) -> int:
        return (self.business_end_hour - self.business_start_hour) * 60


class AdvanceResult(BaseModel):
    """Emitted exactly once per successful clock advance."""

    previous_time: SimTime
    new_time: SimTime
    minutes_elapsed: int = 0
    days_crossed: List[int] = []            # Day numbers that ended during the advance
    sessions_started: List[str] = []

    @property
    def day_changed(self) -> bool:
        return self.new_time.day != self.previous_time.day
