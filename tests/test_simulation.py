"""Tests for the wired simulation: clock events applied through the engines."""

import asyncio

import pytest

from practice_kernel.models.client import Client, ClientStatus, ConditionCategory
from practice_kernel.models.practice import SimulationConfig
from practice_kernel.models.scheduling import BookingRequest
from practice_kernel.models.session import DecisionChoice, SessionStatus
from practice_kernel.models.therapist import Therapist, TherapistStatus
from practice_kernel.models.time import ClockConfig, SimTime
from practice_kernel.simulation.runtime import Simulation
from practice_kernel.world.store import SchedulingError


def _make_simulation(energy: int = 100, **config) -> Simulation:
    sim = Simulation(SimulationConfig(spawn_clients=False, seed=7, **config))
    sim.add_therapist(Therapist(id="t1", display_name="Dr. Test", energy=energy))
    sim.add_client(Client(id="c1", display_name="Client", condition_category=ConditionCategory.STRESS))
    return sim


def _book(sim: Simulation, hour: int = 9, day: int = 1, **overrides):
    request = BookingRequest(therapist_id="t1", client_id="c1", day=day, hour=hour, **overrides)
    result = sim.book(request)
    assert result.success, result.reason
    return result.session


class TestSessionFlow:
    def test_booking_assigns_client(self):
        sim = _make_simulation()
        _book(sim)
        client = sim.store.get_client("c1")
        assert client.status == ClientStatus.IN_TREATMENT
        assert client.assigned_therapist_id == "t1"
        assert sim.store.state.waiting_list == []

    def test_failed_booking_changes_nothing(self):
        sim = _make_simulation()
        result = sim.book(BookingRequest(therapist_id="t1", client_id="c1", day=1, hour=20))
        assert not result.success
        assert sim.store.sessions == []
        assert sim.store.get_client("c1").status == ClientStatus.WAITING

    def test_session_runs_to_completion(self):
        sim = _make_simulation()
        session = _book(sim)

        sim.skip_to(SimTime(day=1, hour=12))
        assert sim.now == SimTime(day=1, hour=9)
        assert sim.store.get_session(session.id).status == SessionStatus.IN_PROGRESS
        assert sim.store.get_therapist("t1").status == TherapistStatus.IN_SESSION

        sim.tick(25_000)                            # 50 minutes
        finished = sim.store.get_session(session.id)
        assert finished.status == SessionStatus.COMPLETED
        assert finished.completed_at == SimTime(day=1, hour=9, minute=50)
        assert sim.store.get_therapist("t1").status == TherapistStatus.AVAILABLE
        assert sim.store.get_client("c1").sessions_completed == 1
        assert sim.store.state.balance == finished.payment

    @pytest.mark.parametrize("ticks", [[105_000], [500] * 210, [30_000, 45_000, 30_000]])
    def test_tick_granularity_does_not_change_outcome(self, ticks):
        sim = _make_simulation(energy=60)
        session = _book(sim)
        for interval in ticks:
            sim.tick(interval)

        assert sim.now == SimTime(day=1, hour=11, minute=30)
        therapist = sim.store.get_therapist("t1")
        assert therapist.energy == 71
        assert therapist.xp == sim.store.get_session(session.id).xp_gained
        assert sim.resources.remainder_for("t1") == 40_000

    def test_skip_blocked_during_session(self):
        sim = _make_simulation()
        _book(sim, hour=8)
        assert sim.skip_to(SimTime(day=1, hour=12)) is None
        assert sim.store.sessions[0].status == SessionStatus.IN_PROGRESS
        assert sim.skip_to(SimTime(day=1, hour=12)) is None
        assert sim.skip_to_next_session() is False

    def test_cancel(self):
        sim = _make_simulation()
        session = _book(sim, hour=10)
        result = sim.cancel(session.id, "Client called in sick")
        assert result.success
        assert sim.store.get_session(session.id).status == SessionStatus.CANCELLED
        assert sim.store.get_client("c1").satisfaction == 60
        assert not sim.cancel(session.id).success

    def test_reschedule_is_all_or_nothing(self):
        sim = _make_simulation()
        sim.add_client(Client(id="c2", display_name="Other", condition_category=ConditionCategory.STRESS))
        first = _book(sim, hour=10)
        sim.book(BookingRequest(therapist_id="t1", client_id="c2", day=1, hour=14))

        refused = sim.reschedule(first.id, BookingRequest(
            therapist_id="t1", client_id="c1", day=1, hour=14,
        ))
        assert not refused.success
        assert sim.store.get_session(first.id).scheduled_hour == 10

        moved = sim.reschedule(first.id, BookingRequest(
            therapist_id="t1", client_id="c1", day=2, hour=11,
        ))
        assert moved.success
        stored = sim.store.get_session(first.id)
        assert (stored.scheduled_day, stored.scheduled_hour) == (2, 11)
        assert len(sim.store.sessions) == 2

    def test_recurring_booking(self):
        sim = _make_simulation()
        result = sim.book_recurring("t1", "c1", start_day=1, start_hour=10, count=3)
        assert result.success
        assert len(sim.store.sessions) == 3
        assert sim.store.get_client("c1").status == ClientStatus.IN_TREATMENT

        failed = sim.book_recurring("t1", "c1", start_day=1, start_hour=10, count=2)
        assert not failed.success
        assert len(sim.store.sessions) == 3

    def test_decisions_only_in_progress(self):
        sim = _make_simulation()
        session = _book(sim)
        choice = DecisionChoice(event_id="resistance", quality=0.05, energy=-3, text="Gently explore")
        with pytest.raises(SchedulingError):
            sim.apply_decision(session.id, choice)

        sim.skip_to_next_session()
        before = sim.store.get_session(session.id).quality
        updated = sim.apply_decision(session.id, choice)
        assert updated.quality == pytest.approx(before + 0.05)
        assert sim.store.get_therapist("t1").energy == 97


class TestDayBoundaries:
    def test_waiting_client_dropped_after_max_wait(self):
        sim = _make_simulation()
        sim.add_client(Client(
            id="c_wait", display_name="Waiting", condition_category=ConditionCategory.STRESS,
            max_wait_days=7,
        ))
        result = sim.skip_to(SimTime(day=9, hour=8))
        assert result.days_crossed == list(range(1, 9))
        assert sim.store.get_client("c_wait").status == ClientStatus.DROPPED
        assert sim.store.state.reputation == 17
        assert [r.day for r in sim.reports] == list(range(2, 10))

    def test_training_completes_over_three_boundaries(self):
        sim = _make_simulation()
        sim.store.adjust_balance(2000)
        check = sim.enroll_training("t1", "cbt_training")
        assert check.can_start
        assert sim.store.state.balance == 500
        assert sim.store.get_therapist("t1").status == TherapistStatus.IN_TRAINING

        sim.skip_to(SimTime(day=4, hour=8))
        therapist = sim.store.get_therapist("t1")
        assert "cbt_certified" in therapist.certifications
        assert therapist.status == TherapistStatus.AVAILABLE
        assert sim.store.state.reputation == 22
        assert sim.store.state.active_trainings == []

    def test_enroll_refusals(self):
        sim = _make_simulation()
        assert sim.enroll_training("t1", "cbt_training").reason == "Insufficient funds (need $1500)"
        with pytest.raises(SchedulingError):
            sim.enroll_training("t1", "no_such_program")

    def test_new_day_starts_at_full_energy(self):
        sim = _make_simulation(energy=40)
        sim.skip_to(SimTime(day=2, hour=8))
        assert sim.store.get_therapist("t1").energy == 100

    def test_arrivals_when_enabled(self):
        sim = Simulation(SimulationConfig(seed=3))
        sim.skip_to(SimTime(day=40, hour=8))
        assert sim.store.clients
        assert all(r.steps for r in sim.reports)


class TestPracticeUpgrades:
    def test_unlock_telehealth(self):
        sim = _make_simulation()
        assert sim.unlock_telehealth().reason == "Need $750 more"
        sim.store.adjust_balance(1000)
        assert sim.unlock_telehealth().can_unlock
        assert sim.store.state.telehealth_unlocked
        assert sim.store.state.balance == 250

    def test_available_upgrades_follow_practice_level(self):
        sim = _make_simulation()
        assert [b.id for b in sim.available_upgrades()] == []
        sim.store.state.practice_level = 3
        assert [b.id for b in sim.available_upgrades()] == ["small_office", "professional_suite"]

    def test_upgrade_building(self):
        sim = _make_simulation()
        sim.store.adjust_balance(10_000)
        assert sim.upgrade_building("small_office").reason == "Requires practice level 2"
        sim.store.state.practice_level = 2
        assert sim.upgrade_building("small_office").can_upgrade
        assert sim.store.state.building.rooms == 2
        assert sim.available_upgrades() == []
        assert sim.room_availability(1, 9).rooms_available == 2
        with pytest.raises(SchedulingError):
            sim.upgrade_building("castle")


class TestRunAsync:
    def test_runs_until_stopped(self):
        sim = _make_simulation(clock=ClockConfig(tick_rate_ms=50, speed=10))

        async def scenario():
            stop = asyncio.Event()
            task = asyncio.create_task(sim.run_async(stop))
            await asyncio.sleep(0.2)
            assert sim.is_running
            stop.set()
            await task

        asyncio.run(scenario())
        assert not sim.is_running
        assert sim.now > SimTime(day=1, hour=8)
