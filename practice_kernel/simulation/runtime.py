"""
Simulation — wires the clock, engines and store into one running practice.

Clock events are handled in a fixed order:
  session start  -> outcome engine start_session
  session tick   -> progress, then completion when the session's minutes are used
  day ended      -> day-boundary orchestrator (waiting list, arrivals, training, rest)
  day started    -> working therapists start the day at full energy
  elapsed        -> idle energy recovery for the segment

Engines return results; this layer is the only place they are applied to
the store. Multi-step operations (reschedule, recurring booking) run against
a checkpoint and restore it if anything fails part way.
"""

import asyncio
import logging
import random
from typing import List, Optional

from practice_kernel.clock import timeline
from practice_kernel.clock.engine import Clock
from practice_kernel.data.catalog import get_available_upgrades, get_building
from practice_kernel.models.client import Client, ClientStatus
from practice_kernel.models.day import DayBoundaryReport
from practice_kernel.models.office import Building, RoomAvailability, UnlockCheck, UpgradeCheck
from practice_kernel.models.practice import SimulationConfig
from practice_kernel.models.scheduling import BookingRequest, BookingResult, RecurringBookingResult
from practice_kernel.models.session import DecisionChoice, Session, SessionStatus
from practice_kernel.models.suggestion import SuggestionResult
from practice_kernel.models.therapist import Therapist
from practice_kernel.models.time import AdvanceResult, SimTime
from practice_kernel.models.training import StartTrainingCheck
from practice_kernel.orchestrator.day_boundary import DayBoundaryOrchestrator
from practice_kernel.resources.energy import ResourceProcessor
from practice_kernel.resources.training import TrainingProcessor
from practice_kernel.scheduling import rooms
from practice_kernel.scheduling.recurring import book_recurring
from practice_kernel.scheduling.scheduler import BookingScheduler
from practice_kernel.sessions.outcome import SessionOutcomeEngine
from practice_kernel.suggestions.engine import SuggestionEngine
from practice_kernel.world.store import PracticeStore, SchedulingError

logger = logging.getLogger(__name__)


class Simulation:
    """A practice plus the clock that drives it."""

    def __init__(
        self,
        config: Optional[SimulationConfig] = None,
        store: Optional[PracticeStore] = None,
        start: Optional[SimTime] = None,
    ):
        self.config = config or SimulationConfig()
        self.store = store or PracticeStore()
        self.random = random.Random(self.config.seed)

        self.clock = Clock(self.store, self.config.clock, start)
        self.scheduler = BookingScheduler(self.config.schedule, self.config.clock)
        self.suggestions = SuggestionEngine(
            self.scheduler, self.config.suggestion, self.config.energy
        )
        self.outcomes = SessionOutcomeEngine(self.config.session, self.config.energy, self.random)
        self.resources = ResourceProcessor(self.config.energy)
        self.training = TrainingProcessor(self.store.state.training_programs, self.config.training)
        self.day_boundary = DayBoundaryOrchestrator(
            self.resources,
            self.training,
            self.config.client,
            self.random,
            spawn_enabled=self.config.spawn_clients,
            insurers=self.config.insurers,
        )

        self.reports: List[DayBoundaryReport] = []
        self._running = False

        self.clock.on_session_start(self._on_session_start)
        self.clock.on_session_tick(self._on_session_tick)
        self.clock.on_day_ended(self._on_day_ended)
        self.clock.on_day_started(self._on_day_started)
        self.clock.on_elapsed(self._on_elapsed)

    @property
    def now(self) -> SimTime:
        return self.clock.current

    @property
    def is_running(self) -> bool:
        return self._running

    # --- Roster ---

    def add_therapist(self, therapist: Therapist) -> None:
        self.store.upsert_therapist(therapist)

    def add_client(self, client: Client) -> None:
        self.store.upsert_client(client)

    # --- Time ---

    def tick(self, interval_ms: int) -> Optional[AdvanceResult]:
        return self.clock.tick(interval_ms)

    def skip_to(self, target: SimTime) -> Optional[AdvanceResult]:
        return self.clock.skip_to(target)

    def skip_to_next_session(self) -> bool:
        return self.clock.skip_to_next_session()

    async def run_async(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Drive the clock at the configured tick rate until stop_event is set."""
        self._running = True
        if stop_event is None:
            stop_event = asyncio.Event()
        interval_ms = self.config.clock.tick_rate_ms

        try:
            while not stop_event.is_set():
                self.tick(interval_ms)
                try:
                    await asyncio.wait_for(
                        stop_event.wait(),
                        timeout=interval_ms / 1000,
                    )
                except asyncio.TimeoutError:
                    continue
        finally:
            self._running = False

    # --- Booking ---

    def book(self, request: BookingRequest) -> BookingResult:
        result = self.scheduler.book(request, self.store.state, self.now)
        if result.success:
            self._apply_booking(result.session)
            logger.info(
                "Booked session %s: client %s with therapist %s on day %d at %d:00",
                result.session.id, result.session.client_id, result.session.therapist_id,
                result.session.scheduled_day, result.session.scheduled_hour,
            )
        return result

    def book_recurring(
        self,
        therapist_id: str,
        client_id: str,
        start_day: int,
        start_hour: int,
        count: int,
        interval_days: int = 7,
        duration_minutes: int = 50,
        is_virtual: Optional[bool] = None,
    ) -> RecurringBookingResult:
        result = book_recurring(
            self.scheduler, self.store.state, self.now, therapist_id, client_id,
            start_day, start_hour, duration_minutes, is_virtual, count, interval_days,
        )
        if not result.success:
            return result

        checkpoint = self.store.checkpoint()
        try:
            for session in result.sessions:
                self._apply_booking(session)
        except Exception:
            self.store.restore(checkpoint)
            raise
        logger.info("Booked %d recurring session(s) for client %s", len(result.sessions), client_id)
        return result

    def cancel(self, session_id: str, reason: str = "Cancelled") -> BookingResult:
        result = self.scheduler.cancel(session_id, self.store.state, self.now)
        if not result.success:
            return result

        session = self.store.require_session(session_id)
        cancelled = self.outcomes.cancel_session(
            session,
            self.store.require_therapist(session.therapist_id),
            self.store.require_client(session.client_id),
            reason,
        )
        self.store.upsert_session(cancelled.session)
        self.store.upsert_therapist(cancelled.therapist)
        self.store.upsert_client(cancelled.client)
        logger.info("Cancelled session %s: %s", session_id, reason)
        return BookingResult(success=True, session=cancelled.session)

    def reschedule(self, session_id: str, request: BookingRequest) -> BookingResult:
        checkpoint = self.store.checkpoint()
        try:
            result = self.scheduler.reschedule(session_id, request, self.store.state, self.now)
            if result.success:
                self.store.upsert_session(result.session)
        except Exception:
            self.store.restore(checkpoint)
            raise
        return result

    def suggest(self) -> SuggestionResult:
        return self.suggestions.generate(self.store.state, self.now)

    def room_availability(self, day: int, hour: int) -> RoomAvailability:
        state = self.store.state
        return rooms.room_availability(state.building, self.store.sessions, day, hour)

    def _apply_booking(self, session: Session) -> None:
        self.store.upsert_session(session)
        client = self.store.require_client(session.client_id)
        updates = {}
        if client.assigned_therapist_id is None:
            updates["assigned_therapist_id"] = session.therapist_id
        if client.status == ClientStatus.WAITING:
            updates["status"] = ClientStatus.IN_TREATMENT
        if updates:
            self.store.upsert_client(client.model_copy(update=updates))

    # --- Sessions in flight ---

    def apply_decision(self, session_id: str, choice: DecisionChoice) -> Session:
        session = self.store.require_session(session_id)
        if session.status != SessionStatus.IN_PROGRESS:
            raise SchedulingError(f"Session {session_id} is not in progress")
        updated, therapist = self.outcomes.apply_decision(
            session, self.store.require_therapist(session.therapist_id), choice
        )
        self.store.upsert_session(updated)
        self.store.upsert_therapist(therapist)
        return updated

    # --- Practice ---

    def enroll_training(self, therapist_id: str, program_id: str) -> StartTrainingCheck:
        therapist = self.store.require_therapist(therapist_id)
        program = self.store.state.training_programs.get(program_id)
        if program is None:
            raise SchedulingError(f"Unknown training program: {program_id}")

        state = self.store.state
        check = self.training.can_start_training(
            therapist, program, state.active_trainings, state.balance
        )
        if not check.can_start:
            return check

        training, updated = self.training.start_training(therapist, program, self.now.day)
        self.store.add_active_training(training)
        self.store.upsert_therapist(updated)
        self.store.adjust_balance(-program.cost)
        logger.info("Therapist %s enrolled in %s", therapist_id, program_id)
        return check

    def unlock_telehealth(self) -> UnlockCheck:
        state = self.store.state
        check = rooms.can_unlock_telehealth(state.balance, state.telehealth_unlocked)
        if check.can_unlock:
            self.store.adjust_balance(-rooms.TELEHEALTH_UNLOCK_COST)
            self.store.unlock_telehealth()
        return check

    def available_upgrades(self) -> List[Building]:
        state = self.store.state
        return get_available_upgrades(state.building.id, state.practice_level)

    def upgrade_building(self, building_id: str) -> UpgradeCheck:
        target = get_building(building_id)
        if target is None:
            raise SchedulingError(f"Unknown building: {building_id}")
        state = self.store.state
        check = rooms.can_upgrade_building(
            state.building, target, state.balance, state.practice_level
        )
        if check.can_upgrade:
            self.store.adjust_balance(-target.upgrade_cost)
            self.store.set_building(target)
        return check

    # --- Clock listeners ---

    def _on_session_start(self, session: Session) -> None:
        therapist = self.store.get_therapist(session.therapist_id)
        client = self.store.get_client(session.client_id)
        if therapist is None or client is None:
            logger.warning(
                "Session %s started without therapist %s or client %s",
                session.id, session.therapist_id, session.client_id,
            )
            return
        started = self.outcomes.start_session(session, therapist, client)
        self.store.upsert_session(started.session)
        self.store.upsert_therapist(started.therapist)
        self.store.upsert_client(started.client)

    def _on_session_tick(self, session_id: str, minutes: int) -> None:
        session = self.store.require_session(session_id)
        self.resources.record_session_minutes(
            session.therapist_id, min(minutes, session.minutes_remaining)
        )
        progressed = self.outcomes.progress_session(session, minutes)
        if self.outcomes.is_complete(progressed):
            self._complete(progressed)
        else:
            self.store.upsert_session(progressed)

    def _complete(self, session: Session) -> None:
        therapist = self.store.get_therapist(session.therapist_id)
        client = self.store.get_client(session.client_id)
        if therapist is None or client is None:
            logger.warning("Session %s finished without its therapist or client", session.id)
            self.store.upsert_session(session.model_copy(update={"status": SessionStatus.COMPLETED}))
            return

        end_idx = timeline.to_index(session.start_time, self.config.clock) + session.duration_minutes
        result = self.outcomes.complete_session(
            session,
            therapist,
            client,
            completed_at=timeline.from_index(end_idx, self.config.clock),
            insurance_multiplier=self.store.state.insurance_multiplier,
        )
        self.store.upsert_session(result.session)
        self.store.upsert_therapist(result.therapist)
        self.store.upsert_client(result.client)
        self.store.adjust_balance(result.payment_amount)

        logger.info(
            "Session %s completed: quality %.2f, +%d XP, $%d",
            session.id, result.session.quality, result.xp_gained, result.payment_amount,
        )
        if result.leveled_up:
            logger.info("Therapist %s reached level %d", therapist.id, result.new_level)

    def _on_day_ended(self, day: int) -> None:
        report = self.day_boundary.process_day_end(self.store, day)
        if not report.skipped:
            self.reports.append(report)

    def _on_day_started(self, day: int) -> None:
        for therapist in self.resources.process_start_of_day(self.store.therapists, day):
            self.store.upsert_therapist(therapist)

    def _on_elapsed(self, segment_start: SimTime, segment_end: SimTime, minutes: int) -> None:
        results = self.resources.process_elapsed(
            self.store.therapists, minutes, self.store.state.facility_effects
        )
        for result in results:
            if result.energy_recovered:
                self.store.upsert_therapist(result.therapist)
