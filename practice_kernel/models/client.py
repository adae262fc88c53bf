"""Client — the customer entity and its follow-up bookkeeping."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from practice_kernel.models.session import Session


class ClientStatus(str, Enum):
    WAITING = "waiting"
    IN_TREATMENT = "in_treatment"
    COMPLETED = "completed"
    DROPPED = "dropped"


class ConditionCategory(str, Enum):
    ANXIETY = "anxiety"
    DEPRESSION = "depression"
    TRAUMA = "trauma"
    STRESS = "stress"
    RELATIONSHIP = "relationship"
    BEHAVIORAL = "behavioral"


class SessionFrequency(str, Enum):
    ONCE = "once"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"


class TimePreference(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"
    ANY = "any"


FREQUENCY_DAYS = {
    SessionFrequency.ONCE: 0,
    SessionFrequency.WEEKLY: 7,
    SessionFrequency.BIWEEKLY: 14,
    SessionFrequency.MONTHLY: 30,
}


class DayAvailability(BaseModel):
    """Weekly availability mask: hours the client can attend, per weekday."""
    monday: List[int] = []
    tuesday: List[int] = []
    wednesday: List[int] = []
    thursday: List[int] = []
    friday: List[int] = []

    def hours_for(self, weekday: str) -> List[int]:
        return getattr(self, weekday, [])


class Client(BaseModel):
    """A customer waiting for or receiving treatment."""

    id: str
    display_name: str
    condition_category: ConditionCategory
    condition_type: str = ""
    severity: int = Field(ge=1, le=10, default=5)
    sessions_required: int = Field(ge=1, default=8)
    sessions_completed: int = Field(ge=0, default=0)
    treatment_progress: float = Field(ge=0, le=1, default=0.0)
    status: ClientStatus = ClientStatus.WAITING
    satisfaction: int = Field(ge=0, le=100, default=70)
    engagement: int = Field(ge=0, le=100, default=60)
    is_private_pay: bool = True
    insurance_provider: Optional[str] = None
    session_rate: int = Field(ge=0, default=150)
    prefers_virtual: bool = False
    preferred_frequency: SessionFrequency = SessionFrequency.WEEKLY
    preferred_time: TimePreference = TimePreference.ANY
    availability: DayAvailability = DayAvailability()
    required_certification: Optional[str] = None
    is_minor: bool = False
    is_couple: bool = False
    arrival_day: int = Field(ge=1, default=1)
    days_waiting: int = Field(ge=0, default=0)
    max_wait_days: int = Field(ge=1, default=14)
    assigned_therapist_id: Optional[str] = None

    @property
    def remaining_sessions(self) -> int:
        return self.sessions_required - self.sessions_completed


class ClientConfig(BaseModel):
    """Configuration for client waiting-list decay and generation."""

    base_satisfaction: int = 70
    base_engagement: int = 60
    default_max_wait_days: int = 14
    min_max_wait_days: int = 7
    wait_satisfaction_loss: int = 2
    dropout_threshold: int = 30
    dropout_reputation_penalty: int = 3
    min_sessions_required: int = 4
    max_sessions_required: int = 20
    private_pay_chance: float = 0.3
    virtual_preference_chance: float = 0.4
    minor_chance: float = 0.15
    couple_chance: float = 0.1
    credential_required_chance: float = 0.2
    first_spawn_day: int = 2


class FollowUpInfo(BaseModel):
    """Where a client stands relative to their preferred session cadence."""

    last_session: Optional[Session] = None
    last_session_day: Optional[int] = None
    next_due_day: Optional[int] = None
    days_until_due: Optional[int] = None    # negative means past due
    is_overdue: bool = False
    has_upcoming_session: bool = False
    next_scheduled_session: Optional[Session] = None
    remaining_sessions: int = 0
