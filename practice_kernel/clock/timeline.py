"""
Timeline arithmetic over business hours.

Simulated time only exists inside [business_start_hour, business_end_hour).
Every instant maps to a business-minute index, which makes advancing,
comparing and measuring elapsed time plain integer arithmetic:

  index = (day - 1) * minutes_per_day + (hour - start) * 60 + minute

Reaching business_end_hour:00 is the same instant as business_start_hour:00
of the next day.
"""

from typing import List, Optional

from practice_kernel.models.time import ClockConfig, SimTime

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday")

_DEFAULT_CONFIG = ClockConfig()


def normalize(time: SimTime, config: Optional[ClockConfig] = None) -> SimTime:
    """Clamp a time into business hours (before opening -> opening, after close -> next day)."""
    config = config or _DEFAULT_CONFIG
    if time.hour < config.business_start_hour:
        return SimTime(day=time.day, hour=config.business_start_hour, minute=0)
    if time.hour >= config.business_end_hour:
        return SimTime(day=time.day + 1, hour=config.business_start_hour, minute=0)
    return time


def to_index(time: SimTime, config: Optional[ClockConfig] = None) -> int:
    """Business-minute index of a time."""
    config = config or _DEFAULT_CONFIG
    time = normalize(time, config)
    return (
        (time.day - 1) * config.minutes_per_day
        + (time.hour - config.business_start_hour) * 60
        + time.minute
    )


def from_index(index: int, config: Optional[ClockConfig] = None) -> SimTime:
    config = config or _DEFAULT_CONFIG
    day_offset, minute_of_day = divmod(index, config.minutes_per_day)
    hours, minutes = divmod(minute_of_day, 60)
    return SimTime(
        day=day_offset + 1,
        hour=config.business_start_hour + hours,
        minute=minutes,
    )


def add_minutes(time: SimTime, minutes: int, config: Optional[ClockConfig] = None) -> SimTime:
    """Advance by business minutes, carrying overflow into the next day without a gap."""
    if minutes < 0:
        raise ValueError("cannot add a negative number of minutes")
    return from_index(to_index(time, config) + minutes, config)


def business_minutes_between(
    start: SimTime, end: SimTime, config: Optional[ClockConfig] = None
) -> int:
    """Business minutes from start to end. 0 when end is not after start."""
    return max(0, to_index(end, config) - to_index(start, config))


def start_of_day(day: int, config: Optional[ClockConfig] = None) -> SimTime:
    config = config or _DEFAULT_CONFIG
    return SimTime(day=day, hour=config.business_start_hour, minute=0)


def days_crossed(start: SimTime, end: SimTime) -> List[int]:
    """Day numbers that end between start and end."""
    return list(range(start.day, end.day))


def is_business_hour(hour: int, config: Optional[ClockConfig] = None) -> bool:
    config = config or _DEFAULT_CONFIG
    return config.business_start_hour <= hour < config.business_end_hour


def hour_slots(hour: int, duration_minutes: int) -> List[int]:
    """Consecutive hour slots a booking occupies: ceil(duration / 60)."""
    return list(range(hour, hour + -(-duration_minutes // 60)))


def day_of_week(day: int) -> str:
    """Day 1 is monday; the five-day week repeats."""
    return WEEKDAYS[(day - 1) % len(WEEKDAYS)]


def format_time(time: SimTime) -> str:
    """e.g. 'Day 5, 2:30 PM'"""
    period = "PM" if time.hour >= 12 else "AM"
    display_hour = 12 if time.hour == 0 else time.hour - 12 if time.hour > 12 else time.hour
    return f"Day {time.day}, {display_hour}:{time.minute:02d} {period}"


def format_hour(hour: int) -> str:
    period = "PM" if hour >= 12 else "AM"
    display_hour = 12 if hour == 0 else hour - 12 if hour > 12 else hour
    return f"{display_hour}:00 {period}"
