"""Scheduling — booking requests, validation results and recurring plans."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from practice_kernel.models.session import Session


class ScheduleConfig(BaseModel):
    """Configuration for the booking scheduler."""

    default_duration: int = 50
    allowed_durations: List[int] = [50, 80, 180]
    max_sessions_per_day: int = 8
    default_days_to_check: int = 14
    base_energy_costs: Dict[int, int] = {50: 15, 80: 25, 180: 50}
    max_level_for_efficiency: int = 50
    min_energy_cost_factor: float = 0.5
    extended_payment_multiplier: float = 1.5
    intensive_payment_multiplier: float = 3.0


class ValidationResult(BaseModel):
    success: bool
    reason: Optional[str] = None


class AvailableSlot(BaseModel):
    day: int
    hour: int
    therapist_id: str
    is_preferred: bool = False              # inside the client's availability and time preference


class BookingRequest(BaseModel):
    therapist_id: str
    client_id: str
    day: int = Field(ge=1)
    hour: int = Field(ge=0, le=23)
    duration_minutes: int = 50
    is_virtual: Optional[bool] = None       # None means the client's preference


class BookingResult(BaseModel):
    success: bool
    reason: Optional[str] = None
    session: Optional[Session] = None


class PlannedSlot(BaseModel):
    day: int
    hour: int


class RecurringFailure(BaseModel):
    index: int                              # 0-based occurrence within the series
    target_day: int
    preferred_hour: int
    reason: str


class RecurringPlan(BaseModel):
    planned: List[PlannedSlot] = []
    failures: List[RecurringFailure] = []

    @property
    def complete(self) -> bool:
        return not self.failures


class RecurringBookingResult(BaseModel):
    success: bool
    plan: RecurringPlan
    sessions: List[Session] = []
    reason: Optional[str] = None
