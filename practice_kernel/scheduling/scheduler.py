"""
Booking Scheduler — validates and creates, cancels and reschedules sessions.

Behavioral Contract:
- Every check returns a result with a human-readable reason; none raise
- Nothing here mutates the practice state; callers apply returned sessions
- A therapist hour slot is occupied by scheduled, in-progress and completed
  sessions; cancelled sessions free their slots
- Rescheduling validates the target as if the moved session did not exist
"""

import logging
from typing import List, Optional
from uuid import uuid4

from practice_kernel.clock import timeline
from practice_kernel.models.client import Client, TimePreference
from practice_kernel.models.practice import PracticeState
from practice_kernel.models.scheduling import (
    AvailableSlot,
    BookingRequest,
    BookingResult,
    ScheduleConfig,
    ValidationResult,
)
from practice_kernel.models.session import Session, SessionStatus
from practice_kernel.models.therapist import Therapist, TherapistStatus
from practice_kernel.models.time import ClockConfig, SimTime
from practice_kernel.numeric import round_half_up
from practice_kernel.scheduling.rooms import can_book_session_type

logger = logging.getLogger(__name__)

OCCUPYING_STATUSES = (SessionStatus.SCHEDULED, SessionStatus.IN_PROGRESS, SessionStatus.COMPLETED)
ACTIVE_STATUSES = (SessionStatus.SCHEDULED, SessionStatus.IN_PROGRESS)


class BookingScheduler:
    """Slot availability and booking validation over a practice snapshot."""

    def __init__(
        self,
        config: Optional[ScheduleConfig] = None,
        clock_config: Optional[ClockConfig] = None,
    ):
        self.config = config or ScheduleConfig()
        self.clock_config = clock_config or ClockConfig()

    # --- Time and slot checks ---

    def validate_not_in_past(self, now: SimTime, day: int, hour: int) -> ValidationResult:
        """Sessions start on the hour, so the current hour is bookable only at minute 0."""
        if day < now.day:
            return ValidationResult(success=False, reason="Cannot schedule for a previous day")
        if day == now.day:
            if hour < now.hour:
                return ValidationResult(success=False, reason="Cannot schedule for a past hour")
            if hour == now.hour and now.minute > 0:
                return ValidationResult(
                    success=False, reason="Cannot schedule for an hour already in progress"
                )
        return ValidationResult(success=True)

    def within_business_hours(self, hour: int, duration_minutes: int) -> ValidationResult:
        for h in timeline.hour_slots(hour, duration_minutes):
            if not timeline.is_business_hour(h, self.clock_config):
                return ValidationResult(success=False, reason=f"Outside business hours at {h}:00")
        return ValidationResult(success=True)

    def check_therapist_slot(
        self,
        sessions: List[Session],
        therapist: Therapist,
        day: int,
        hour: int,
        duration_minutes: int,
    ) -> ValidationResult:
        """Work hours, breaks and existing bookings for every hour slot the session needs."""
        taken = set()
        for s in sessions:
            if s.therapist_id == therapist.id and s.scheduled_day == day and s.status in OCCUPYING_STATUSES:
                taken.update(s.hour_slots)

        for h in timeline.hour_slots(hour, duration_minutes):
            if not therapist.work_schedule.is_working_hour(h):
                return ValidationResult(success=False, reason=f"Outside therapist work hours at {h}:00")
            if h in taken:
                return ValidationResult(success=False, reason=f"Slot already booked at {h}:00")
        return ValidationResult(success=True)

    def is_slot_available(
        self,
        sessions: List[Session],
        therapist: Therapist,
        day: int,
        hour: int,
        duration_minutes: Optional[int] = None,
    ) -> bool:
        duration = duration_minutes or self.config.default_duration
        return (
            self.within_business_hours(hour, duration).success
            and self.check_therapist_slot(sessions, therapist, day, hour, duration).success
        )

    def available_hours_for_day(
        self,
        sessions: List[Session],
        therapist: Therapist,
        day: int,
        duration_minutes: Optional[int] = None,
    ) -> List[int]:
        return [
            h for h in therapist.work_schedule.working_hours()
            if self.is_slot_available(sessions, therapist, day, h, duration_minutes)
        ]

    @staticmethod
    def matches_time_preference(hour: int, preference: TimePreference) -> bool:
        if preference == TimePreference.MORNING:
            return 8 <= hour < 12
        if preference == TimePreference.AFTERNOON:
            return 12 <= hour < 16
        if preference == TimePreference.EVENING:
            return 16 <= hour < 18
        return True

    def find_matching_slots(
        self,
        sessions: List[Session],
        therapist: Therapist,
        client: Client,
        start_day: int,
        days_to_check: Optional[int] = None,
        duration_minutes: Optional[int] = None,
    ) -> List[AvailableSlot]:
        """Open slots over a horizon, preferred (client availability and time of day) first."""
        days_to_check = days_to_check or self.config.default_days_to_check
        slots = []
        for day in range(start_day, start_day + days_to_check):
            client_hours = client.availability.hours_for(timeline.day_of_week(day))
            for hour in self.available_hours_for_day(sessions, therapist, day, duration_minutes):
                slots.append(AvailableSlot(
                    day=day,
                    hour=hour,
                    therapist_id=therapist.id,
                    is_preferred=(
                        hour in client_hours
                        and self.matches_time_preference(hour, client.preferred_time)
                    ),
                ))
        return sorted(slots, key=lambda s: (not s.is_preferred, s.day, s.hour))

    # --- Entity checks ---

    @staticmethod
    def client_has_conflicting_session(
        sessions: List[Session],
        client_id: str,
        day: int,
        hour: int,
        duration_minutes: int,
    ) -> bool:
        proposed = set(timeline.hour_slots(hour, duration_minutes))
        return any(
            s.client_id == client_id
            and s.scheduled_day == day
            and s.status in ACTIVE_STATUSES
            and proposed.intersection(s.hour_slots)
            for s in sessions
        )

    @staticmethod
    def count_sessions_for_day(sessions: List[Session], therapist_id: str, day: int) -> int:
        return sum(
            1 for s in sessions
            if s.therapist_id == therapist_id
            and s.scheduled_day == day
            and s.status in OCCUPYING_STATUSES
        )

    @staticmethod
    def can_therapist_serve_client(client: Client, therapist: Therapist) -> ValidationResult:
        if client.is_minor and "children_certified" not in therapist.certifications:
            return ValidationResult(
                success=False,
                reason="Client is a minor and therapist lacks children certification",
            )
        if client.is_couple and "couples_certified" not in therapist.certifications:
            return ValidationResult(
                success=False,
                reason="Client is a couple and therapist lacks couples certification",
            )
        if client.required_certification and client.required_certification not in therapist.certifications:
            return ValidationResult(
                success=False,
                reason=(
                    f"Client requires {client.required_certification} "
                    f"certification which therapist lacks"
                ),
            )
        return ValidationResult(success=True)

    # --- Pricing ---

    def calculate_payment(self, session_rate: int, duration_minutes: int) -> int:
        payment = float(session_rate)
        if duration_minutes == 80:
            payment *= self.config.extended_payment_multiplier
        elif duration_minutes == 180:
            payment *= self.config.intensive_payment_multiplier
        return round_half_up(payment)

    def calculate_energy_cost(self, duration_minutes: int, therapist_level: int) -> int:
        """Higher-level therapists spend less energy, down to half the base cost."""
        base = self.config.base_energy_costs.get(
            duration_minutes, self.config.base_energy_costs[self.config.default_duration]
        )
        level = min(therapist_level, self.config.max_level_for_efficiency)
        factor = max(self.config.min_energy_cost_factor, 1 - level * 0.01)
        return round_half_up(base * factor)

    # --- Booking ---

    def validate_booking(
        self,
        request: BookingRequest,
        state: PracticeState,
        now: SimTime,
        exclude_session_id: Optional[str] = None,
    ) -> ValidationResult:
        """
        Run every booking rule in order and report the first failure.

        exclude_session_id drops one session from the snapshot, so a
        session being moved does not conflict with itself.
        """
        therapist = state.therapists.get(request.therapist_id)
        if therapist is None:
            return ValidationResult(success=False, reason="Therapist not found")
        client = state.clients.get(request.client_id)
        if client is None:
            return ValidationResult(success=False, reason="Client not found")

        sessions = [s for s in state.sessions.values() if s.id != exclude_session_id]
        duration = request.duration_minutes
        is_virtual = client.prefers_virtual if request.is_virtual is None else request.is_virtual

        if duration not in self.config.allowed_durations:
            return ValidationResult(success=False, reason="Invalid session duration")
        if therapist.status in (TherapistStatus.BURNED_OUT, TherapistStatus.IN_TRAINING):
            return ValidationResult(
                success=False, reason=f"Therapist is {therapist.status.value.replace('_', ' ')}"
            )

        checks = [
            lambda: self.can_therapist_serve_client(client, therapist),
            lambda: self.validate_not_in_past(now, request.day, request.hour),
            lambda: self.within_business_hours(request.hour, duration),
            lambda: self.check_therapist_slot(sessions, therapist, request.day, request.hour, duration),
        ]
        for check in checks:
            result = check()
            if not result.success:
                return result

        if self.client_has_conflicting_session(sessions, client.id, request.day, request.hour, duration):
            return ValidationResult(
                success=False, reason="Client already has a session scheduled at this time"
            )
        if self.count_sessions_for_day(sessions, therapist.id, request.day) >= self.config.max_sessions_per_day:
            return ValidationResult(success=False, reason="Therapist has reached daily session limit")

        type_check = can_book_session_type(
            state.building,
            sessions,
            state.telehealth_unlocked,
            is_virtual,
            request.day,
            request.hour,
            duration,
        )
        if not type_check.can_book:
            return ValidationResult(success=False, reason=type_check.reason)
        return ValidationResult(success=True)

    def create_session(self, request: BookingRequest, therapist: Therapist, client: Client) -> Session:
        is_virtual = client.prefers_virtual if request.is_virtual is None else request.is_virtual
        return Session(
            id=f"sess_{uuid4().hex[:12]}",
            therapist_id=therapist.id,
            client_id=client.id,
            scheduled_day=request.day,
            scheduled_hour=request.hour,
            duration_minutes=request.duration_minutes,
            is_virtual=is_virtual,
            is_insurance=not client.is_private_pay,
            payment=self.calculate_payment(client.session_rate, request.duration_minutes),
            energy_cost=self.calculate_energy_cost(request.duration_minutes, therapist.level),
        )

    def book(self, request: BookingRequest, state: PracticeState, now: SimTime) -> BookingResult:
        validation = self.validate_booking(request, state, now)
        if not validation.success:
            logger.debug(
                "Booking refused for client %s: %s", request.client_id, validation.reason
            )
            return BookingResult(success=False, reason=validation.reason)

        session = self.create_session(
            request, state.therapists[request.therapist_id], state.clients[request.client_id]
        )
        return BookingResult(success=True, session=session)

    def cancel(self, session_id: str, state: PracticeState, now: SimTime) -> BookingResult:
        session = state.sessions.get(session_id)
        if session is None:
            return BookingResult(success=False, reason="Session not found")
        if session.status != SessionStatus.SCHEDULED:
            return BookingResult(
                success=False, reason=f"Cannot cancel a {session.status.value} session"
            )
        if not self.validate_not_in_past(now, session.scheduled_day, session.scheduled_hour).success:
            return BookingResult(success=False, reason="Cannot cancel a session in the past")
        return BookingResult(
            success=True, session=session.model_copy(update={"status": SessionStatus.CANCELLED})
        )

    def reschedule(
        self,
        session_id: str,
        request: BookingRequest,
        state: PracticeState,
        now: SimTime,
    ) -> BookingResult:
        """Move a scheduled session. The session keeps its id and client."""
        session = state.sessions.get(session_id)
        if session is None:
            return BookingResult(success=False, reason="Session not found")
        if session.status != SessionStatus.SCHEDULED:
            return BookingResult(
                success=False, reason=f"Cannot reschedule a {session.status.value} session"
            )
        if not self.validate_not_in_past(now, session.scheduled_day, session.scheduled_hour).success:
            return BookingResult(success=False, reason="Cannot reschedule a session in the past")

        request = request.model_copy(update={"client_id": session.client_id})
        validation = self.validate_booking(request, state, now, exclude_session_id=session_id)
        if not validation.success:
            return BookingResult(success=False, reason=validation.reason)

        therapist = state.therapists[request.therapist_id]
        client = state.clients[session.client_id]
        moved = self.create_session(request, therapist, client).model_copy(update={"id": session.id})
        return BookingResult(success=True, session=moved)
