"""Session — a scheduled appointment and its outcome records."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from practice_kernel.models.time import SimTime


ALLOWED_DURATIONS = (50, 80, 180)


class SessionStatus(str, Enum):
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ProgressType(str, Enum):
    NORMAL = "normal"
    BREAKTHROUGH = "breakthrough"
    PLATEAU = "plateau"
    REGRESSION = "regression"


class QualityModifier(BaseModel):
    """A signed contribution to session quality, tagged with its source."""
    source: str
    value: float
    description: str = ""


class DecisionChoice(BaseModel):
    """A choice made during a session and its effects."""
    event_id: str
    choice_index: int = 0
    quality: float = 0.0
    energy: int = 0
    text: str = ""


class Session(BaseModel):
    """A booked appointment between one therapist and one client."""

    id: str
    therapist_id: str
    client_id: str
    scheduled_day: int = Field(ge=1)
    scheduled_hour: int = Field(ge=0, le=23)
    duration_minutes: int = 50
    is_virtual: bool = False
    is_insurance: bool = False
    status: SessionStatus = SessionStatus.SCHEDULED
    progress: float = Field(ge=0, le=1, default=0.0)
    quality: float = Field(ge=0, le=1, default=0.5)
    quality_modifiers: List[QualityModifier] = []
    decisions_made: List[DecisionChoice] = []
    payment: int = Field(ge=0, default=0)
    energy_cost: int = Field(ge=0, default=15)
    xp_gained: int = Field(ge=0, default=0)
    completed_at: Optional[SimTime] = None

    @property
    def start_time(self) -> SimTime:
        return SimTime(day=self.scheduled_day, hour=self.scheduled_hour, minute=0)

    @property
    def hour_slots(self) -> List[int]:
        """Hours this session occupies: ceil(duration / 60) from the start hour."""
        slots = -(-self.duration_minutes // 60)
        return list(range(self.scheduled_hour, self.scheduled_hour + slots))

    @property
    def is_active(self) -> bool:
        return self.status in (SessionStatus.SCHEDULED, SessionStatus.IN_PROGRESS)

    @property
    def minutes_remaining(self) -> int:
        return max(0, round((1 - self.progress) * self.duration_minutes))


class SessionConfig(BaseModel):
    """Configuration for session quality, rewards and outcomes."""

    base_quality: float = 0.5
    base_xp: int = 10
    high_quality_threshold: float = 0.75
    high_quality_xp_multiplier: float = 1.5
    base_satisfaction_change: int = 5
    progress_per_quality: float = 0.1
    breakthrough_quality_threshold: float = 0.9
    breakthrough_chance: float = 0.2
    breakthrough_multiplier: float = 2.0
    plateau_chance: float = 0.15
    plateau_multiplier: float = 0.25
    plateau_satisfaction_threshold: int = 50
    regression_chance: float = 0.3
    regression_amount: float = 0.02
    cancellation_satisfaction_penalty: int = 10
    extended_payment_multiplier: float = 1.5
    intensive_payment_multiplier: float = 3.0
    max_level: int = 50
