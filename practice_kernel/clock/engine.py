"""
Clock — drives simulated time forward.

Every advance, whether a wall-clock tick or an explicit skip, goes through
the same segmented walk:

  1. Sessions scheduled at the current instant are started.
  2. The span is cut into segments at every scheduled session start.
  3. Per segment: in-progress sessions are ticked, crossed days are closed
     and opened in order, elapsed-time hooks run, then sessions starting at
     the segment end are started.
  4. One AdvanceResult is emitted for the whole call.

Guards:
  - skip_to / skip_to_next_session are refused while any session is in progress.
  - A skip never passes over a scheduled session start; it lands on it.
  - A tick arriving while another advance is being applied is queued, not
    interleaved.
"""

import logging
from collections import deque
from typing import Callable, Deque, List, Optional

from practice_kernel.clock import timeline
from practice_kernel.models.session import Session, SessionStatus
from practice_kernel.models.time import AdvanceResult, ClockConfig, SimTime
from practice_kernel.world.store import PracticeStore, SchedulingError

logger = logging.getLogger(__name__)


class Clock:
    """
    The single owner of the current simulated time.

    Collaborators subscribe with the on_* methods; listeners run
    synchronously, in registration order.
    """

    def __init__(
        self,
        store: PracticeStore,
        config: Optional[ClockConfig] = None,
        start: Optional[SimTime] = None,
    ):
        self.store = store
        self.config = config or ClockConfig()

        self._current = timeline.normalize(
            start or timeline.start_of_day(1, self.config), self.config
        )
        self._speed = self.config.speed
        self._paused = False
        self._carry_milli = 0               # sub-minute tick remainder, in 1/1000 minute
        self._busy = False
        self._pending_ticks: Deque[int] = deque()

        self._advance_listeners: List[Callable[[AdvanceResult], None]] = []
        self._day_ended_listeners: List[Callable[[int], None]] = []
        self._day_started_listeners: List[Callable[[int], None]] = []
        self._session_start_listeners: List[Callable[[Session], None]] = []
        self._session_tick_listeners: List[Callable[[str, int], None]] = []
        self._elapsed_listeners: List[Callable[[SimTime, SimTime, int], None]] = []

    # --- State ---

    @property
    def current(self) -> SimTime:
        return self._current

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def speed(self) -> int:
        return self._speed

    @property
    def busy(self) -> bool:
        return self._busy

    def pause(self) -> None:
        self._paused = True

    def resume(self) -> None:
        self._paused = False

    def set_speed(self, speed: int) -> None:
        if speed < 0:
            raise SchedulingError(f"Speed must be >= 0, got {speed}")
        self._speed = speed

    # --- Subscriptions ---

    def on_advance(self, listener: Callable[[AdvanceResult], None]) -> None:
        """Called once per successful advance."""
        self._advance_listeners.append(listener)

    def on_day_ended(self, listener: Callable[[int], None]) -> None:
        self._day_ended_listeners.append(listener)

    def on_day_started(self, listener: Callable[[int], None]) -> None:
        self._day_started_listeners.append(listener)

    def on_session_start(self, listener: Callable[[Session], None]) -> None:
        """Called with the session after it has been marked in_progress."""
        self._session_start_listeners.append(listener)

    def on_session_tick(self, listener: Callable[[str, int], None]) -> None:
        """Called with (session_id, minutes) for each in-progress session, per segment."""
        self._session_tick_listeners.append(listener)

    def on_elapsed(self, listener: Callable[[SimTime, SimTime, int], None]) -> None:
        """Called with (segment_start, segment_end, minutes) after each segment settles."""
        self._elapsed_listeners.append(listener)

    # --- Advancing ---

    def tick(self, interval_ms: int) -> Optional[AdvanceResult]:
        """
        Advance by the simulated minutes worth of interval_ms wall time.

        Returns None when paused, at speed 0, when the interval is still
        below one whole minute, or when the tick was queued behind an
        advance already in flight.
        """
        if interval_ms < 0:
            raise SchedulingError(f"Tick interval must be >= 0, got {interval_ms}")
        if self._busy:
            self._pending_ticks.append(interval_ms)
            logger.debug("Tick of %dms queued behind an advance in flight", interval_ms)
            return None
        return self._run(lambda: self._tick_once(interval_ms))

    def skip_to(self, target: SimTime) -> Optional[AdvanceResult]:
        """
        Jump toward target, stopping at the earliest scheduled session start
        in (now, target]. Returns None if nothing moved.
        """
        if self._busy:
            logger.debug("Skip to %s refused: advance in flight", target.as_tuple())
            return None
        if self._has_in_progress_session():
            logger.debug("Skip to %s blocked: a session is in progress", target.as_tuple())
            return None

        current_idx = self._index(self._current)
        target_idx = self._index(timeline.normalize(target, self.config))
        if target_idx <= current_idx:
            return None
        if self._next_start_index(current_idx - 1, current_idx) is not None:
            # A session due right now starts here; time stays put.
            self._run(self._start_due_sessions)
            return None

        landing_idx = self._next_start_index(current_idx, target_idx)
        if landing_idx is None:
            landing_idx = target_idx
        elif landing_idx < target_idx:
            logger.debug(
                "Skip clamped from %s to session start %s",
                target.as_tuple(), self._time(landing_idx).as_tuple(),
            )
        return self._run(lambda: self._advance(landing_idx - current_idx))

    def skip_to_next_session(self) -> bool:
        """
        Move to the next scheduled session start today, or to the opening
        of the next business day when none remains. A session due right now
        is started in place.
        """
        if self._busy:
            return False
        if self._has_in_progress_session():
            logger.debug("Skip to next session blocked: a session is in progress")
            return False

        now_idx = self._index(self._current)
        if any(self._index(s.start_time) == now_idx for s in self._scheduled()):
            self._run(self._start_due_sessions)
            return True

        today = self._current.day
        upcoming = [
            self._index(s.start_time)
            for s in self._scheduled()
            if s.scheduled_day == today and self._index(s.start_time) > now_idx
        ]
        if upcoming:
            target = self._time(min(upcoming))
        else:
            target = timeline.start_of_day(today + 1, self.config)
        return self.skip_to(target) is not None

    # --- Internals ---

    def _run(self, operation: Callable):
        """Apply one advance exclusively, then drain ticks queued meanwhile."""
        self._busy = True
        try:
            result = operation()
            while self._pending_ticks:
                self._tick_once(self._pending_ticks.popleft())
        finally:
            self._busy = False
        return result

    def _tick_once(self, interval_ms: int) -> Optional[AdvanceResult]:
        if self._paused or self._speed == 0:
            return None
        self._carry_milli += interval_ms * self.config.minutes_per_real_second * self._speed
        whole_minutes, self._carry_milli = divmod(self._carry_milli, 1000)
        if whole_minutes == 0:
            return None
        return self._advance(whole_minutes)

    def _advance(self, minutes: int) -> AdvanceResult:
        previous = self._current
        idx = self._index(previous)
        end_idx = idx + minutes
        days: List[int] = []

        started = self._start_due_sessions()
        while idx < end_idx:
            boundary = self._next_start_index(idx, end_idx)
            segment_end = boundary if boundary is not None else end_idx
            days.extend(self._run_segment(idx, segment_end))
            idx = segment_end
            started.extend(self._start_due_sessions())

        result = AdvanceResult(
            previous_time=previous,
            new_time=self._current,
            minutes_elapsed=minutes,
            days_crossed=days,
            sessions_started=started,
        )
        if result.day_changed:
            logger.info(
                "Clock advanced %d min to %s (%d day(s) crossed)",
                minutes, timeline.format_time(self._current), len(days),
            )
        for listener in self._advance_listeners:
            listener(result)
        return result

    def _run_segment(self, start_idx: int, end_idx: int) -> List[int]:
        step = end_idx - start_idx
        segment_start = self._time(start_idx)
        segment_end = self._time(end_idx)

        for session in self.store.sessions_with_status(SessionStatus.IN_PROGRESS):
            for listener in self._session_tick_listeners:
                listener(session.id, step)

        self._current = segment_end
        crossed = timeline.days_crossed(segment_start, segment_end)
        for day in crossed:
            logger.info("Day %d ended", day)
            for listener in self._day_ended_listeners:
                listener(day)
            for listener in self._day_started_listeners:
                listener(day + 1)

        for listener in self._elapsed_listeners:
            listener(segment_start, segment_end, step)
        return crossed

    def _start_due_sessions(self) -> List[str]:
        now_idx = self._index(self._current)
        due = [s for s in self._scheduled() if self._index(s.start_time) == now_idx]
        started = []
        for session in due:
            session = self.store.mark_session_in_progress(session.id)
            logger.info(
                "Session %s started at %s", session.id, timeline.format_time(self._current)
            )
            for listener in self._session_start_listeners:
                listener(session)
            started.append(session.id)
        return started

    def _next_start_index(self, after_idx: int, until_idx: int) -> Optional[int]:
        """Earliest scheduled start in (after_idx, until_idx], if any."""
        starts = [
            i for i in (self._index(s.start_time) for s in self._scheduled())
            if after_idx < i <= until_idx
        ]
        return min(starts, default=None)

    def _scheduled(self) -> List[Session]:
        return self.store.sessions_with_status(SessionStatus.SCHEDULED)

    def _has_in_progress_session(self) -> bool:
        return bool(self.store.sessions_with_status(SessionStatus.IN_PROGRESS))

    def _index(self, time: SimTime) -> int:
        return timeline.to_index(time, self.config)

    def _time(self, index: int) -> SimTime:
        return timeline.from_index(index, self.config)
