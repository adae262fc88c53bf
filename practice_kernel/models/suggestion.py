"""Booking suggestions — ranked (client, therapist, slot) proposals."""

from enum import Enum
from typing import List

from pydantic import BaseModel

from practice_kernel.models.client import FollowUpInfo


class SuggestionUrgency(str, Enum):
    OVERDUE = "overdue"
    DUE_SOON = "due_soon"
    NORMAL = "normal"


class SuggestionReason(str, Enum):
    OVERDUE_FOLLOWUP = "overdue_followup"
    DUE_SOON = "due_soon"
    GOOD_SLOT_AVAILABLE = "good_slot_available"
    THERAPIST_CONTINUITY = "therapist_continuity"


class MatchQuality(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"


URGENCY_RANK = {
    SuggestionUrgency.OVERDUE: 0,
    SuggestionUrgency.DUE_SOON: 1,
    SuggestionUrgency.NORMAL: 2,
}


class MatchScore(BaseModel):
    """Therapist/client fit on a 0-100 scale, with its components."""

    client_id: str
    therapist_id: str
    score: int
    certification_match: int
    specialization_match: int
    availability_match: int
    trait_match: int


class MatchBreakdown(BaseModel):
    quality: MatchQuality
    match_score: int
    has_modality_match: bool
    modality_bonus: float
    is_continuing_therapist: bool
    has_specialization: bool
    has_good_energy: bool
    match_reasons: List[str] = []


class BookingSuggestion(BaseModel):
    client_id: str
    therapist_id: str
    suggested_day: int
    suggested_hour: int
    duration: int = 50
    is_virtual: bool = False
    urgency: SuggestionUrgency
    reason: SuggestionReason
    score: int
    follow_up: FollowUpInfo
    is_preferred_slot: bool = False
    suggested_recurring_count: int = 1
    suggested_interval_days: int = 7
    match_breakdown: MatchBreakdown


class UnschedulableClient(BaseModel):
    client_id: str
    reason: str


class SuggestionResult(BaseModel):
    suggestions: List[BookingSuggestion] = []
    unschedulable_clients: List[UnschedulableClient] = []


class SuggestionConfig(BaseModel):
    """Configuration for the suggestion engine."""

    max_suggestions: int = 10
    days_ahead: int = 14
    due_soon_days: int = 3
    default_duration: int = 50
    excellent_score_threshold: int = 75
    good_score_threshold: int = 50
    strong_match_score: int = 70
    strong_modality_bonus: float = 0.1
    good_energy_floor: int = 30
    max_recurring_count: int = 20
    days_until_slot_penalty: int = 3
    capacity_headroom_points: int = 10


class EnergyForecast(BaseModel):
    """Therapist energy at the end of a day if every booked session runs."""

    therapist_id: str
    current_energy: int
    predicted_end_energy: int
    will_burn_out: bool
    at_burnout_risk: bool = False
