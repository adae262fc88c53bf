"""
Room capacity and facility checks.

A session of d minutes occupies ceil(d / 60) consecutive hour slots from
its scheduled hour. Only in-person sessions that are neither cancelled nor
completed hold a room. Virtual sessions never do.
"""

from typing import List

from practice_kernel.clock.timeline import hour_slots
from practice_kernel.models.office import (
    BookingCheck,
    Building,
    RoomAvailability,
    UnlockCheck,
    UpgradeCheck,
)
from practice_kernel.models.session import Session, SessionStatus

TELEHEALTH_UNLOCK_COST = 750


def _holds_room(session: Session, day: int, hour: int) -> bool:
    return (
        session.scheduled_day == day
        and not session.is_virtual
        and session.status not in (SessionStatus.CANCELLED, SessionStatus.COMPLETED)
        and hour in session.hour_slots
    )


def room_availability(
    building: Building, sessions: List[Session], day: int, hour: int
) -> RoomAvailability:
    """Room usage at one (day, hour) slot."""
    in_use = sum(1 for s in sessions if _holds_room(s, day, hour))
    available = max(0, building.rooms - in_use)
    return RoomAvailability(
        total_rooms=building.rooms,
        rooms_in_use=in_use,
        rooms_available=available,
        can_book_in_person=available > 0,
        can_book_virtual=True,
    )


def can_book_in_person(
    building: Building,
    sessions: List[Session],
    day: int,
    hour: int,
    duration_minutes: int,
) -> BookingCheck:
    """Every hour slot the session would occupy needs a free room. Fails at the first full one."""
    for h in hour_slots(hour, duration_minutes):
        if not room_availability(building, sessions, day, h).can_book_in_person:
            return BookingCheck(can_book=False, reason=f"No rooms available at hour {h}")
    return BookingCheck(can_book=True)


def can_book_session_type(
    building: Building,
    sessions: List[Session],
    telehealth_unlocked: bool,
    is_virtual: bool,
    day: int,
    hour: int,
    duration_minutes: int,
) -> BookingCheck:
    if is_virtual:
        if not telehealth_unlocked:
            return BookingCheck(can_book=False, reason="Telehealth is not unlocked")
        return BookingCheck(can_book=True)

    check = can_book_in_person(building, sessions, day, hour, duration_minutes)
    if not check.can_book:
        return BookingCheck(can_book=False, reason=check.reason or "No rooms available")
    return check


def can_unlock_telehealth(balance: int, already_unlocked: bool) -> UnlockCheck:
    if already_unlocked:
        return UnlockCheck(can_unlock=False, reason="Telehealth already unlocked")
    if balance < TELEHEALTH_UNLOCK_COST:
        return UnlockCheck(
            can_unlock=False, reason=f"Need ${TELEHEALTH_UNLOCK_COST - balance} more"
        )
    return UnlockCheck(can_unlock=True)


def can_upgrade_building(
    current: Building, target: Building, balance: int, practice_level: int
) -> UpgradeCheck:
    if practice_level < target.required_level:
        return UpgradeCheck(
            can_upgrade=False, reason=f"Requires practice level {target.required_level}"
        )
    if target.tier < current.tier:
        return UpgradeCheck(can_upgrade=False, reason="Cannot downgrade to a lower tier building")
    if target.tier == current.tier and target.rooms <= current.rooms:
        return UpgradeCheck(can_upgrade=False, reason="Target building is not an upgrade")
    if balance < target.upgrade_cost:
        return UpgradeCheck(
            can_upgrade=False, reason=f"Need ${target.upgrade_cost - balance} more"
        )
    return UpgradeCheck(can_upgrade=True)
