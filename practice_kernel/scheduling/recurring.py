"""
Recurring bookings — plan a series of sessions, then book it all or nothing.

Policy:
- Occurrence 0 must book exactly at (start_day, start_hour).
- Occurrence i targets start_day + i * interval_days.
- Later occurrences fall back to the closest valid hour on their target day.
- Each planned occurrence reserves its slot for the ones after it.
"""

from typing import List, Optional

from practice_kernel.models.practice import PracticeState
from practice_kernel.models.scheduling import (
    BookingRequest,
    PlannedSlot,
    RecurringBookingResult,
    RecurringFailure,
    RecurringPlan,
)
from practice_kernel.models.session import Session
from practice_kernel.models.time import SimTime
from practice_kernel.scheduling.scheduler import BookingScheduler


def _ordered_candidates(hours: List[int], preferred: int, first: bool) -> List[int]:
    if first:
        return [preferred] if preferred in hours else []
    if preferred in hours:
        return [preferred] + [h for h in hours if h != preferred]
    closest = sorted(hours, key=lambda h: (abs(h - preferred), h))[0]
    return [closest] + [h for h in hours if h != closest]


def plan_recurring_bookings(
    scheduler: BookingScheduler,
    state: PracticeState,
    now: SimTime,
    therapist_id: str,
    client_id: str,
    start_day: int,
    start_hour: int,
    duration_minutes: int,
    is_virtual: Optional[bool],
    count: int,
    interval_days: int,
) -> RecurringPlan:
    plan = RecurringPlan()
    if count <= 0:
        plan.failures.append(RecurringFailure(
            index=0, target_day=start_day, preferred_hour=start_hour,
            reason="Count must be at least 1",
        ))
        return plan
    if interval_days < 0:
        plan.failures.append(RecurringFailure(
            index=0, target_day=start_day, preferred_hour=start_hour,
            reason="Interval must be 0 or greater",
        ))
        return plan

    therapist = state.therapists.get(therapist_id)
    client = state.clients.get(client_id)
    if therapist is None or client is None:
        plan.failures.append(RecurringFailure(
            index=0, target_day=start_day, preferred_hour=start_hour,
            reason="Therapist not found" if therapist is None else "Client not found",
        ))
        return plan

    working = state.model_copy(update={"sessions": dict(state.sessions)})

    for i in range(count):
        target_day = start_day + i * interval_days
        hours = sorted({
            s.hour for s in scheduler.find_matching_slots(
                list(working.sessions.values()), therapist, client, target_day, 1, duration_minutes
            )
            if s.day == target_day
        })
        if not hours:
            plan.failures.append(RecurringFailure(
                index=i, target_day=target_day, preferred_hour=start_hour,
                reason="No therapist-available slots on this day",
            ))
            continue

        reason = "No valid slot found"
        booked = False
        for hour in _ordered_candidates(hours, start_hour, first=(i == 0)):
            request = BookingRequest(
                therapist_id=therapist_id,
                client_id=client_id,
                day=target_day,
                hour=hour,
                duration_minutes=duration_minutes,
                is_virtual=is_virtual,
            )
            validation = scheduler.validate_booking(request, working, now)
            if not validation.success:
                reason = validation.reason or reason
                continue

            stub = scheduler.create_session(request, therapist, client)
            working.sessions[stub.id] = stub
            plan.planned.append(PlannedSlot(day=target_day, hour=hour))
            booked = True
            break

        if not booked:
            plan.failures.append(RecurringFailure(
                index=i, target_day=target_day, preferred_hour=start_hour, reason=reason,
            ))

    return plan


def book_recurring(
    scheduler: BookingScheduler,
    state: PracticeState,
    now: SimTime,
    therapist_id: str,
    client_id: str,
    start_day: int,
    start_hour: int,
    duration_minutes: int,
    is_virtual: Optional[bool],
    count: int,
    interval_days: int,
) -> RecurringBookingResult:
    """Sessions for the whole series, or none when any occurrence cannot be placed."""
    plan = plan_recurring_bookings(
        scheduler, state, now, therapist_id, client_id,
        start_day, start_hour, duration_minutes, is_virtual, count, interval_days,
    )
    if not plan.complete:
        first = plan.failures[0]
        return RecurringBookingResult(
            success=False,
            plan=plan,
            reason=f"Occurrence {first.index + 1} on day {first.target_day}: {first.reason}",
        )

    therapist = state.therapists[therapist_id]
    client = state.clients[client_id]
    sessions: List[Session] = [
        scheduler.create_session(
            BookingRequest(
                therapist_id=therapist_id,
                client_id=client_id,
                day=slot.day,
                hour=slot.hour,
                duration_minutes=duration_minutes,
                is_virtual=is_virtual,
            ),
            therapist,
            client,
        )
        for slot in plan.planned
    ]
    return RecurringBookingResult(success=True, plan=plan, sessions=sessions)
