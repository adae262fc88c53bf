"""Tests for core data models."""

import pytest

from practice_kernel.models import (
    Client,
    ClockConfig,
    ConditionCategory,
    DayAvailability,
    Session,
    SessionStatus,
    SimTime,
    Therapist,
    WorkSchedule,
)


class TestSimTime:
    def test_ordering(self):
        assert SimTime(day=1, hour=9) < SimTime(day=1, hour=10)
        assert SimTime(day=1, hour=16, minute=59) < SimTime(day=2, hour=8)
        assert SimTime(day=3, hour=8) == SimTime(day=3, hour=8, minute=0)

    def test_bounds(self):
        with pytest.raises(Exception):
            SimTime(day=1, hour=24)
        with pytest.raises(Exception):
            SimTime(day=0, hour=8)
        with pytest.raises(Exception):
            SimTime(day=1, hour=8, minute=60)

    def test_frozen_and_hashable(self):
        t = SimTime(day=2, hour=9, minute=15)
        assert len({t, SimTime(day=2, hour=9, minute=15)}) == 1
        with pytest.raises(Exception):
            t.hour = 10


class TestClockConfig:
    def test_minutes_per_day(self):
        assert ClockConfig().minutes_per_day == 540
        assert ClockConfig(business_start_hour=0, business_end_hour=24).minutes_per_day == 1440

    def test_start_before_end(self):
        with pytest.raises(Exception):
            ClockConfig(business_start_hour=17, business_end_hour=17)
        with pytest.raises(Exception):
            ClockConfig(business_start_hour=18, business_end_hour=9)


class TestTherapist:
    def test_defaults(self):
        therapist = Therapist(id="t1", display_name="Dr. Test")
        assert therapist.energy == 100
        assert therapist.level == 1
        assert therapist.status.value == "available"

    def test_energy_cannot_exceed_max(self):
        with pytest.raises(Exception):
            Therapist(id="t1", display_name="Dr. Test", energy=120, max_energy=100)

    def test_negative_energy_rejected(self):
        with pytest.raises(Exception):
            Therapist(id="t1", display_name="Dr. Test", energy=-1)


class TestWorkSchedule:
    def test_working_hours_skip_breaks(self):
        schedule = WorkSchedule(work_start_hour=9, work_end_hour=13, break_hours=[11])
        assert schedule.working_hours() == [9, 10, 12]
        assert schedule.is_working_hour(10)
        assert not schedule.is_working_hour(11)
        assert not schedule.is_working_hour(13)

    def test_at_most_three_break_hours(self):
        with pytest.raises(Exception):
            WorkSchedule(break_hours=[10, 11, 12, 13])

    def test_start_before_end(self):
        with pytest.raises(Exception):
            WorkSchedule(work_start_hour=12, work_end_hour=12)


class TestSession:
    def _make_session(self, **kwargs) -> Session:
        defaults = dict(
            id="s1", therapist_id="t1", client_id="c1", scheduled_day=1, scheduled_hour=9,
        )
        defaults.update(kwargs)
        return Session(**defaults)

    def test_hour_slots(self):
        assert self._make_session(duration_minutes=50).hour_slots == [9]
        assert self._make_session(duration_minutes=80).hour_slots == [9, 10]
        assert self._make_session(duration_minutes=180).hour_slots == [9, 10, 11]

    def test_minutes_remaining(self):
        session = self._make_session(progress=0.4)
        assert session.minutes_remaining == 30

    def test_quality_bounds(self):
        with pytest.raises(Exception):
            self._make_session(quality=1.3)

    def test_active_statuses(self):
        assert self._make_session().is_active
        assert not self._make_session(status=SessionStatus.CANCELLED).is_active


class TestClient:
    def test_remaining_sessions(self):
        client = Client(
            id="c1",
            display_name="Client AB",
            condition_category=ConditionCategory.ANXIETY,
            sessions_required=8,
            sessions_completed=3,
        )
        assert client.remaining_sessions == 5

    def test_availability_lookup(self):
        availability = DayAvailability(monday=[9, 10])
        assert availability.hours_for("monday") == [9, 10]
        assert availability.hours_for("friday") == []
