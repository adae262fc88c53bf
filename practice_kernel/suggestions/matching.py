"""
Therapist/client fit, modality bonuses, energy forecasts and follow-up state.

All functions are pure reads over entity snapshots.
"""

from typing import Dict, List, Optional, Tuple

from practice_kernel.models.client import (
    FREQUENCY_DAYS,
    Client,
    ClientStatus,
    ConditionCategory,
    FollowUpInfo,
)
from practice_kernel.models.session import Session, SessionStatus
from practice_kernel.models.suggestion import EnergyForecast, MatchScore
from practice_kernel.models.therapist import EnergyConfig, Modality, Therapist, TherapistStatus
from practice_kernel.numeric import round_half_up

# (quality bonus, conditions the modality is strong for)
MODALITY_TABLE: Dict[Modality, Tuple[float, List[ConditionCategory]]] = {
    Modality.CBT: (0.10, [ConditionCategory.ANXIETY, ConditionCategory.DEPRESSION,
                          ConditionCategory.BEHAVIORAL]),
    Modality.DBT: (0.12, [ConditionCategory.BEHAVIORAL, ConditionCategory.STRESS]),
    Modality.PSYCHODYNAMIC: (0.08, [ConditionCategory.DEPRESSION, ConditionCategory.RELATIONSHIP]),
    Modality.HUMANISTIC: (0.08, [ConditionCategory.STRESS, ConditionCategory.DEPRESSION]),
    Modality.EMDR: (0.15, [ConditionCategory.TRAUMA]),
    Modality.SOMATIC: (0.12, [ConditionCategory.TRAUMA, ConditionCategory.STRESS]),
    Modality.FAMILY_SYSTEMS: (0.12, [ConditionCategory.RELATIONSHIP]),
    Modality.INTEGRATIVE: (0.05, []),
}

MODALITY_NAMES: Dict[Modality, str] = {
    Modality.CBT: "Cognitive Behavioral Therapy",
    Modality.DBT: "Dialectical Behavior Therapy",
    Modality.PSYCHODYNAMIC: "Psychodynamic Therapy",
    Modality.HUMANISTIC: "Humanistic/Person-Centered",
    Modality.EMDR: "Eye Movement Desensitization & Reprocessing",
    Modality.SOMATIC: "Somatic Therapy",
    Modality.FAMILY_SYSTEMS: "Family Systems Therapy",
    Modality.INTEGRATIVE: "Integrative/Eclectic",
}

RELEVANT_SPECIALIZATIONS: Dict[ConditionCategory, List[str]] = {
    ConditionCategory.ANXIETY: ["anxiety_disorders", "stress_management", "ocd"],
    ConditionCategory.DEPRESSION: ["depression", "grief"],
    ConditionCategory.TRAUMA: ["trauma", "ptsd"],
    ConditionCategory.STRESS: ["stress_management"],
    ConditionCategory.RELATIONSHIP: ["couples"],
    ConditionCategory.BEHAVIORAL: ["substance_abuse", "eating_disorders", "personality_disorders"],
}


def has_relevant_specialization(therapist: Therapist, category: ConditionCategory) -> bool:
    relevant = RELEVANT_SPECIALIZATIONS.get(category, [])
    return any(s in relevant for s in therapist.specializations)


def calculate_match_score(client: Client, therapist: Therapist) -> MatchScore:
    """
    Weighted 0-100 fit. Certification carries the most weight since it is
    usually a hard requirement.
    """
    certification = 100
    if client.required_certification and client.required_certification not in therapist.certifications:
        certification = 0
    if client.is_minor and "children_certified" not in therapist.certifications:
        certification = 0
    if client.is_couple and "couples_certified" not in therapist.certifications:
        certification = 0

    relevant = RELEVANT_SPECIALIZATIONS.get(client.condition_category, [])
    matches = sum(1 for s in therapist.specializations if s in relevant)
    specialization = min(100, matches * 40) if matches else 20

    availability = 50

    traits = therapist.traits
    trait = 20 + traits.warmth * 5
    if client.condition_category in (ConditionCategory.ANXIETY, ConditionCategory.DEPRESSION):
        trait += traits.analytical * 3
    if client.condition_category in (ConditionCategory.BEHAVIORAL, ConditionCategory.RELATIONSHIP):
        trait += traits.creativity * 3
    trait = min(100, trait)

    score = round_half_up(
        certification * 0.4 + specialization * 0.25 + availability * 0.15 + trait * 0.2
    )
    return MatchScore(
        client_id=client.id,
        therapist_id=therapist.id,
        score=score,
        certification_match=certification,
        specialization_match=specialization,
        availability_match=availability,
        trait_match=trait,
    )


def modality_match_bonus(therapist: Therapist, category: ConditionCategory) -> float:
    """Full bonus for a primary match, half for a secondary, a small one for Integrative."""
    bonus, strong = MODALITY_TABLE[therapist.primary_modality]
    if category in strong:
        return bonus
    for modality in therapist.secondary_modalities:
        secondary_bonus, secondary_strong = MODALITY_TABLE[modality]
        if category in secondary_strong:
            return secondary_bonus * 0.5
    if therapist.primary_modality == Modality.INTEGRATIVE:
        return MODALITY_TABLE[Modality.INTEGRATIVE][0]
    return 0.0


def forecast_energy(
    therapist: Therapist,
    sessions: List[Session],
    day: int,
    config: Optional[EnergyConfig] = None,
) -> EnergyForecast:
    config = config or EnergyConfig()
    booked_cost = sum(
        s.energy_cost for s in sessions
        if s.therapist_id == therapist.id
        and s.scheduled_day == day
        and s.status in (SessionStatus.SCHEDULED, SessionStatus.IN_PROGRESS)
    )
    predicted = therapist.energy - booked_cost
    return EnergyForecast(
        therapist_id=therapist.id,
        current_energy=therapist.energy,
        predicted_end_energy=predicted,
        will_burn_out=predicted <= config.forced_break_threshold,
        at_burnout_risk=(
            predicted <= config.burnout_threshold
            and therapist.status != TherapistStatus.BURNED_OUT
        ),
    )


def last_completed_session(client: Client, sessions: List[Session]) -> Optional[Session]:
    completed = [
        s for s in sessions
        if s.client_id == client.id and s.status == SessionStatus.COMPLETED and s.completed_at
    ]
    return max(completed, key=lambda s: s.completed_at.day, default=None)


def next_scheduled_session(client: Client, sessions: List[Session], current_day: int) -> Optional[Session]:
    upcoming = [
        s for s in sessions
        if s.client_id == client.id
        and s.status == SessionStatus.SCHEDULED
        and s.scheduled_day >= current_day
    ]
    return min(upcoming, key=lambda s: (s.scheduled_day, s.scheduled_hour), default=None)


def get_follow_up_info(client: Client, sessions: List[Session], current_day: int) -> FollowUpInfo:
    """Where the client stands against their preferred cadence."""
    last = last_completed_session(client, sessions)
    upcoming = next_scheduled_session(client, sessions, current_day)
    info = FollowUpInfo(
        has_upcoming_session=upcoming is not None,
        next_scheduled_session=upcoming,
        remaining_sessions=client.remaining_sessions,
    )
    if last is None:
        return info

    info.last_session = last
    info.last_session_day = last.completed_at.day
    frequency = FREQUENCY_DAYS[client.preferred_frequency]
    if frequency == 0 or client.remaining_sessions <= 0:
        return info

    info.next_due_day = info.last_session_day + frequency
    info.days_until_due = info.next_due_day - current_day
    info.is_overdue = info.days_until_due < 0 and upcoming is None
    return info


def active_clients_by_urgency(
    clients: List[Client], sessions: List[Session], current_day: int
) -> List[Tuple[Client, FollowUpInfo]]:
    """In-treatment clients: overdue first, then soonest due, then those with no due date."""
    pairs = [
        (client, get_follow_up_info(client, sessions, current_day))
        for client in clients
        if client.status == ClientStatus.IN_TREATMENT
    ]

    def urgency_key(pair: Tuple[Client, FollowUpInfo]):
        follow_up = pair[1]
        no_due_date = follow_up.days_until_due is None
        return (not follow_up.is_overdue, no_due_date, follow_up.days_until_due or 0)

    return sorted(pairs, key=urgency_key)
