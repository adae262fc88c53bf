"""
Client lifecycle — waiting-list decay, dropouts and new-client arrivals.

Waiting clients lose satisfaction every day they wait. A client leaves the
list for good once they have waited max_wait_days, or once satisfaction
falls to the dropout threshold. New clients arrive with a probability that
grows with the day number and the practice's reputation.

All randomness is drawn from an injected random.Random.
"""

import logging
import random
import string
from typing import Dict, List, Optional

from practice_kernel.models.client import (
    Client,
    ClientConfig,
    ClientStatus,
    ConditionCategory,
    DayAvailability,
    SessionFrequency,
    TimePreference,
)
from practice_kernel.models.day import DroppedClient, SatisfactionChange, WaitingListResult
from practice_kernel.numeric import round_half_up

logger = logging.getLogger(__name__)

WAIT_EXCEEDED = "wait_exceeded"
DISSATISFIED = "dissatisfied"

CONDITION_TYPES: Dict[ConditionCategory, List[str]] = {
    ConditionCategory.ANXIETY: [
        "Generalized Anxiety", "Social Anxiety", "Panic Disorder", "Phobias", "Health Anxiety",
    ],
    ConditionCategory.DEPRESSION: [
        "Major Depression", "Persistent Depressive Disorder",
        "Seasonal Affective Disorder", "Postpartum Depression",
    ],
    ConditionCategory.TRAUMA: ["PTSD", "Complex PTSD", "Acute Stress Disorder", "Childhood Trauma"],
    ConditionCategory.STRESS: ["Work Stress", "Burnout", "Life Transitions", "Caregiver Stress"],
    ConditionCategory.RELATIONSHIP: [
        "Couples Issues", "Family Conflict", "Communication Problems", "Divorce/Separation",
    ],
    ConditionCategory.BEHAVIORAL: [
        "Anger Management", "Impulse Control", "Addiction Recovery", "Eating Disorders",
    ],
}

CONDITION_WEIGHTS: Dict[ConditionCategory, int] = {
    ConditionCategory.ANXIETY: 25,
    ConditionCategory.DEPRESSION: 20,
    ConditionCategory.STRESS: 20,
    ConditionCategory.RELATIONSHIP: 15,
    ConditionCategory.TRAUMA: 10,
    ConditionCategory.BEHAVIORAL: 10,
}

TIME_PREFERENCE_WEIGHTS: Dict[TimePreference, int] = {
    TimePreference.MORNING: 20,
    TimePreference.AFTERNOON: 35,
    TimePreference.EVENING: 25,
    TimePreference.ANY: 20,
}

FREQUENCY_BY_CONDITION: Dict[ConditionCategory, List[SessionFrequency]] = {
    ConditionCategory.ANXIETY: [SessionFrequency.WEEKLY, SessionFrequency.WEEKLY, SessionFrequency.BIWEEKLY],
    ConditionCategory.DEPRESSION: [
        SessionFrequency.WEEKLY, SessionFrequency.WEEKLY, SessionFrequency.WEEKLY, SessionFrequency.BIWEEKLY,
    ],
    ConditionCategory.TRAUMA: [SessionFrequency.WEEKLY, SessionFrequency.WEEKLY, SessionFrequency.BIWEEKLY],
    ConditionCategory.STRESS: [SessionFrequency.WEEKLY, SessionFrequency.BIWEEKLY, SessionFrequency.BIWEEKLY],
    ConditionCategory.RELATIONSHIP: [SessionFrequency.WEEKLY, SessionFrequency.BIWEEKLY],
    ConditionCategory.BEHAVIORAL: [SessionFrequency.WEEKLY],
}

PREFERENCE_HOURS: Dict[TimePreference, List[int]] = {
    TimePreference.MORNING: [9, 10, 11],
    TimePreference.AFTERNOON: [13, 14, 15, 16],
    TimePreference.EVENING: [17, 18, 19],
    TimePreference.ANY: [9, 10, 11, 13, 14, 15, 16, 17, 18, 19],
}

CERTIFICATION_REQUIREMENTS: Dict[ConditionCategory, str] = {
    ConditionCategory.TRAUMA: "trauma_certified",
    ConditionCategory.RELATIONSHIP: "couples_certified",
}

FALLBACK_CERTIFICATIONS = ["cbt_certified", "dbt_certified", "emdr_certified", "substance_certified"]

PRIVATE_PAY_RATES = (120, 200)
INSURANCE_RATES = (80, 150)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday")


# --- Waiting list ---

def process_waiting_list(
    clients: List[Client], current_day: int, config: Optional[ClientConfig] = None
) -> WaitingListResult:
    """
    Age every waiting client by one day boundary.

    Clients that are not waiting pass through untouched. A client who has
    waited too long is dropped as wait_exceeded even if also dissatisfied.
    """
    config = config or ClientConfig()
    result = WaitingListResult()

    for client in clients:
        if client.status != ClientStatus.WAITING:
            result.remaining_clients.append(client)
            continue

        days_waiting = max(client.days_waiting, current_day - client.arrival_day)
        old_satisfaction = client.satisfaction
        new_satisfaction = max(0, old_satisfaction - config.wait_satisfaction_loss)

        if days_waiting >= client.max_wait_days:
            reason = WAIT_EXCEEDED
        elif new_satisfaction <= config.dropout_threshold:
            reason = DISSATISFIED
        else:
            reason = None

        if reason:
            dropped = client.model_copy(update={
                "status": ClientStatus.DROPPED,
                "satisfaction": new_satisfaction,
                "days_waiting": days_waiting,
            })
            result.dropped_clients.append(DroppedClient(client=dropped, reason=reason))
            logger.info("Client %s left the waiting list (%s)", client.id, reason)
            continue

        result.remaining_clients.append(client.model_copy(update={
            "satisfaction": new_satisfaction,
            "days_waiting": days_waiting,
        }))
        result.satisfaction_changes.append(SatisfactionChange(
            client_id=client.id,
            old_satisfaction=old_satisfaction,
            new_satisfaction=new_satisfaction,
        ))

    return result


# --- Arrivals ---

def spawn_chance(day: int, reputation: float) -> float:
    """Chance that one spawn attempt produces a client."""
    day_bonus = min(0.3, day * 0.01)
    return min(0.8, 0.2 + day_bonus + reputation * 0.002)


def spawn_attempts(day: int) -> int:
    if day < 10:
        return 1
    if day < 30:
        return 2
    if day < 60:
        return 3
    return 4


def session_rate(is_private_pay: bool, rng: random.Random) -> int:
    low, high = PRIVATE_PAY_RATES if is_private_pay else INSURANCE_RATES
    return round_half_up(low + rng.random() * (high - low))


def _weighted_choice(weights: Dict, rng: random.Random):
    keys = list(weights)
    return rng.choices(keys, weights=[weights[k] for k in keys])[0]


def _availability(preference: TimePreference, rng: random.Random) -> DayAvailability:
    hours = PREFERENCE_HOURS[preference]
    days = {day: list(hours) for day in WEEKDAYS if rng.random() < 0.8}
    if not days:
        days["monday"] = list(hours)
    return DayAvailability(**days)


def _required_certification(
    category: ConditionCategory, is_minor: bool, is_couple: bool, rng: random.Random
) -> str:
    if is_minor:
        return "children_certified"
    if is_couple:
        return "couples_certified"
    if category in CERTIFICATION_REQUIREMENTS:
        return CERTIFICATION_REQUIREMENTS[category]
    return rng.choice(FALLBACK_CERTIFICATIONS)


def _client_id(rng: random.Random) -> str:
    return f"client_{rng.getrandbits(48):012x}"


def generate_client(
    day: int,
    rng: random.Random,
    insurers: Optional[List[str]] = None,
    config: Optional[ClientConfig] = None,
) -> Client:
    """A new waiting client. Private pay when no insurance panel is available."""
    config = config or ClientConfig()
    insurers = insurers or []

    requires_credentials = rng.random() < config.credential_required_chance
    letters = string.ascii_uppercase
    display_name = f"Client {rng.choice(letters)}{rng.choice(letters)}"

    category = _weighted_choice(CONDITION_WEIGHTS, rng)
    condition_type = rng.choice(CONDITION_TYPES[category])
    severity = rng.randint(1, 10)
    sessions_required = max(
        config.min_sessions_required,
        min(config.max_sessions_required, round_half_up(severity * 1.5 + rng.randint(2, 6))),
    )

    is_private_pay = not insurers or rng.random() < config.private_pay_chance
    insurance_provider = None if is_private_pay else rng.choice(insurers)

    preferred_time = _weighted_choice(TIME_PREFERENCE_WEIGHTS, rng)

    is_minor = False
    is_couple = False
    required_certification = None
    if requires_credentials:
        is_minor = rng.random() < config.minor_chance
        is_couple = (
            not is_minor
            and category == ConditionCategory.RELATIONSHIP
            and rng.random() < config.couple_chance
        )
        required_certification = _required_certification(category, is_minor, is_couple, rng)

    return Client(
        id=_client_id(rng),
        display_name=display_name,
        condition_category=category,
        condition_type=condition_type,
        severity=severity,
        sessions_required=sessions_required,
        satisfaction=config.base_satisfaction,
        engagement=config.base_engagement,
        is_private_pay=is_private_pay,
        insurance_provider=insurance_provider,
        session_rate=session_rate(is_private_pay, rng),
        prefers_virtual=rng.random() < config.virtual_preference_chance,
        preferred_frequency=rng.choice(FREQUENCY_BY_CONDITION[category]),
        preferred_time=preferred_time,
        availability=_availability(preferred_time, rng),
        required_certification=required_certification,
        is_minor=is_minor,
        is_couple=is_couple,
        arrival_day=day,
        max_wait_days=max(config.min_max_wait_days, config.default_max_wait_days - severity // 2),
    )


def spawn_clients(
    day: int,
    reputation: float,
    rng: random.Random,
    insurers: Optional[List[str]] = None,
    config: Optional[ClientConfig] = None,
) -> List[Client]:
    """Roll every spawn attempt for the day. No arrivals before first_spawn_day."""
    config = config or ClientConfig()
    if day < config.first_spawn_day:
        return []

    chance = spawn_chance(day, reputation)
    spawned = [
        generate_client(day, rng, insurers, config)
        for _ in range(spawn_attempts(day))
        if rng.random() < chance
    ]
    if spawned:
        logger.info("%d new client(s) arrived on day %d", len(spawned), day)
    return spawned
