"""
Suggestion Engine — ranked booking proposals for clients who need a session.

Read-only and advisory: it consults the Booking Scheduler for every
candidate slot, so anything it proposes would pass booking validation
against the same snapshot.

Scoring:
  - Urgency: 1000 (overdue), 500 (due_soon), 100 (normal)
  - Match quality: 150 (excellent), 100 (good), 50 (fair)
  - Modality match: bonus * 100 * 0.33
  - Continuing therapist: 40
  - Preferred slot: 30
  - Match score: 0-100 -> 0-50
  - Good energy: 20
  - Capacity headroom: share of rooms still free at the slot, 0-10 (virtual: 10)
  - Each day until the slot: -3
"""

import logging
from typing import List, Optional, Tuple

from practice_kernel.models.client import FREQUENCY_DAYS, Client, ClientStatus, FollowUpInfo
from practice_kernel.models.practice import PracticeState
from practice_kernel.models.scheduling import AvailableSlot, BookingRequest
from practice_kernel.models.suggestion import (
    URGENCY_RANK,
    BookingSuggestion,
    MatchBreakdown,
    MatchQuality,
    SuggestionConfig,
    SuggestionReason,
    SuggestionResult,
    SuggestionUrgency,
    UnschedulableClient,
)
from practice_kernel.models.therapist import EnergyConfig, Therapist, TherapistStatus
from practice_kernel.models.time import SimTime
from practice_kernel.numeric import round_half_up
from practice_kernel.scheduling import rooms
from practice_kernel.scheduling.scheduler import BookingScheduler
from practice_kernel.suggestions.matching import (
    MODALITY_NAMES,
    active_clients_by_urgency,
    calculate_match_score,
    forecast_energy,
    get_follow_up_info,
    has_relevant_specialization,
    modality_match_bonus,
)

logger = logging.getLogger(__name__)

URGENCY_POINTS = {
    SuggestionUrgency.OVERDUE: 1000,
    SuggestionUrgency.DUE_SOON: 500,
    SuggestionUrgency.NORMAL: 100,
}

QUALITY_POINTS = {
    MatchQuality.EXCELLENT: 150,
    MatchQuality.GOOD: 100,
    MatchQuality.FAIR: 50,
}


class SuggestionEngine:
    """Generates booking suggestions from a practice snapshot."""

    def __init__(
        self,
        scheduler: BookingScheduler,
        config: Optional[SuggestionConfig] = None,
        energy_config: Optional[EnergyConfig] = None,
    ):
        self.scheduler = scheduler
        self.config = config or SuggestionConfig()
        self.energy_config = energy_config or EnergyConfig()

    def generate(self, state: PracticeState, now: SimTime) -> SuggestionResult:
        clients = list(state.clients.values())
        sessions = list(state.sessions.values())
        limit = self.config.max_suggestions

        candidates: List[Tuple[Client, FollowUpInfo]] = [
            pair for pair in active_clients_by_urgency(clients, sessions, now.day)
            if not pair[1].has_upcoming_session and pair[1].remaining_sessions > 0
        ]
        candidates += [
            (client, get_follow_up_info(client, sessions, now.day))
            for client in clients
            if client.status == ClientStatus.WAITING
        ]

        result = SuggestionResult()
        for client, follow_up in candidates:
            if len(result.suggestions) >= limit:
                break
            if follow_up.has_upcoming_session or follow_up.remaining_sessions <= 0:
                continue

            urgency = self.determine_urgency(follow_up)
            if urgency == SuggestionUrgency.NORMAL and len(result.suggestions) >= limit / 2:
                continue

            suggestion, reason = self._best_slot_for_client(client, follow_up, urgency, state, now)
            if suggestion is not None:
                result.suggestions.append(suggestion)
            else:
                result.unschedulable_clients.append(
                    UnschedulableClient(client_id=client.id, reason=reason)
                )

        result.suggestions.sort(key=lambda s: (URGENCY_RANK[s.urgency], -s.score, s.client_id))
        result.suggestions = result.suggestions[:limit]
        logger.debug(
            "Generated %d suggestion(s), %d unschedulable client(s)",
            len(result.suggestions), len(result.unschedulable_clients),
        )
        return result

    def determine_urgency(self, follow_up: FollowUpInfo) -> SuggestionUrgency:
        if follow_up.is_overdue:
            return SuggestionUrgency.OVERDUE
        if follow_up.days_until_due is not None and follow_up.days_until_due <= self.config.due_soon_days:
            return SuggestionUrgency.DUE_SOON
        return SuggestionUrgency.NORMAL

    def eligible_therapists(self, client: Client, therapists: List[Therapist]) -> Tuple[List[Therapist], str]:
        """Therapists who could take the booking, best first, or the reason there are none."""
        if not therapists:
            return [], "No therapists on staff"
        if client.required_certification and not any(
            client.required_certification in t.certifications for t in therapists
        ):
            return [], f"No therapist holds required certification {client.required_certification}"

        serving = []
        reason = ""
        for therapist in therapists:
            check = self.scheduler.can_therapist_serve_client(client, therapist)
            if check.success:
                serving.append(therapist)
            elif not reason:
                reason = check.reason or ""
        if not serving:
            return [], reason

        bookable = [
            t for t in serving
            if t.status not in (TherapistStatus.BURNED_OUT, TherapistStatus.IN_TRAINING)
        ]
        if not bookable:
            return [], "No eligible therapist is available for booking"

        bookable.sort(key=lambda t: (
            t.id != client.assigned_therapist_id,
            -calculate_match_score(client, t).score,
        ))
        return bookable, ""

    def _best_slot_for_client(
        self,
        client: Client,
        follow_up: FollowUpInfo,
        urgency: SuggestionUrgency,
        state: PracticeState,
        now: SimTime,
    ) -> Tuple[Optional[BookingSuggestion], str]:
        therapists, reason = self.eligible_therapists(client, list(state.therapists.values()))
        if not therapists:
            return None, reason

        sessions = list(state.sessions.values())
        is_virtual = client.prefers_virtual and state.telehealth_unlocked
        duration = self.config.default_duration

        for therapist in therapists:
            slots = self.scheduler.find_matching_slots(
                sessions, therapist, client, now.day, self.config.days_ahead, duration
            )
            slot = self._first_bookable(slots, client, is_virtual, duration, state, now)
            if slot is None:
                continue

            breakdown = self.match_breakdown(client, therapist, sessions, now.day)
            headroom = self.capacity_headroom(state, sessions, slot, is_virtual)
            return BookingSuggestion(
                client_id=client.id,
                therapist_id=therapist.id,
                suggested_day=slot.day,
                suggested_hour=slot.hour,
                duration=duration,
                is_virtual=is_virtual,
                urgency=urgency,
                reason=self._reason(urgency, therapist, client),
                score=self.score(
                    urgency, slot.is_preferred, breakdown, slot.day - now.day, headroom
                ),
                follow_up=follow_up,
                is_preferred_slot=slot.is_preferred,
                suggested_recurring_count=min(follow_up.remaining_sessions, self.config.max_recurring_count),
                suggested_interval_days=FREQUENCY_DAYS[client.preferred_frequency] or 7,
                match_breakdown=breakdown,
            ), ""

        return None, "No available slots matching preferences"

    def _first_bookable(
        self,
        slots: List[AvailableSlot],
        client: Client,
        is_virtual: bool,
        duration: int,
        state: PracticeState,
        now: SimTime,
    ) -> Optional[AvailableSlot]:
        for slot in slots:
            request = BookingRequest(
                therapist_id=slot.therapist_id,
                client_id=client.id,
                day=slot.day,
                hour=slot.hour,
                duration_minutes=duration,
                is_virtual=is_virtual,
            )
            if self.scheduler.validate_booking(request, state, now).success:
                return slot
        return None

    @staticmethod
    def capacity_headroom(
        state: PracticeState, sessions, slot: AvailableSlot, is_virtual: bool
    ) -> float:
        """Share of rooms free at the slot's first hour. Virtual sessions need no room."""
        if is_virtual:
            return 1.0
        usage = rooms.room_availability(state.building, sessions, slot.day, slot.hour)
        if usage.total_rooms == 0:
            return 0.0
        return usage.rooms_available / usage.total_rooms

    @staticmethod
    def _reason(urgency: SuggestionUrgency, therapist: Therapist, client: Client) -> SuggestionReason:
        if urgency == SuggestionUrgency.OVERDUE:
            return SuggestionReason.OVERDUE_FOLLOWUP
        if urgency == SuggestionUrgency.DUE_SOON:
            return SuggestionReason.DUE_SOON
        if therapist.id == client.assigned_therapist_id:
            return SuggestionReason.THERAPIST_CONTINUITY
        return SuggestionReason.GOOD_SLOT_AVAILABLE

    def match_breakdown(
        self, client: Client, therapist: Therapist, sessions, day: int
    ) -> MatchBreakdown:
        match = calculate_match_score(client, therapist)
        bonus = modality_match_bonus(therapist, client.condition_category)
        continuing = client.assigned_therapist_id == therapist.id
        specialized = has_relevant_specialization(therapist, client.condition_category)
        forecast = forecast_energy(therapist, sessions, day, self.energy_config)
        good_energy = (
            not forecast.will_burn_out
            and forecast.predicted_end_energy >= self.config.good_energy_floor
        )

        reasons = []
        if continuing:
            reasons.append("Continuing care")
        if bonus > 0:
            reasons.append(f"{MODALITY_NAMES[therapist.primary_modality]} specialty")
        if specialized:
            reasons.append("Specializes in condition")
        if match.trait_match >= 70:
            reasons.append("Strong personality fit")
        if good_energy:
            reasons.append("Available capacity")
        elif forecast.will_burn_out or forecast.at_burnout_risk:
            reasons.append("High workload today")

        strong_factors = sum([
            match.score >= self.config.strong_match_score,
            bonus >= self.config.strong_modality_bonus,
            continuing,
            specialized,
        ])
        if match.score >= self.config.excellent_score_threshold and strong_factors >= 2:
            quality = MatchQuality.EXCELLENT
        elif match.score >= self.config.good_score_threshold or strong_factors >= 1:
            quality = MatchQuality.GOOD
        else:
            quality = MatchQuality.FAIR

        return MatchBreakdown(
            quality=quality,
            match_score=match.score,
            has_modality_match=bonus > 0,
            modality_bonus=bonus,
            is_continuing_therapist=continuing,
            has_specialization=specialized,
            has_good_energy=good_energy,
            match_reasons=reasons,
        )

    def score(
        self,
        urgency: SuggestionUrgency,
        is_preferred: bool,
        breakdown: MatchBreakdown,
        days_until_slot: int,
        headroom: float = 1.0,
    ) -> int:
        score = float(URGENCY_POINTS[urgency] + QUALITY_POINTS[breakdown.quality])
        if breakdown.has_modality_match:
            score += round_half_up(breakdown.modality_bonus * 100 * 0.33)
        if breakdown.is_continuing_therapist:
            score += 40
        if is_preferred:
            score += 30
        score += breakdown.match_score * 0.5
        if breakdown.has_good_energy:
            score += 20
        score += headroom * self.config.capacity_headroom_points
        score -= days_until_slot * self.config.days_until_slot_penalty
        return round_half_up(score)
