"""Tests for booking validation, room capacity and facility checks."""

from practice_kernel.data.catalog import BUILDINGS
from practice_kernel.models.client import (
    Client,
    ConditionCategory,
    DayAvailability,
    TimePreference,
)
from practice_kernel.models.scheduling import BookingRequest
from practice_kernel.models.session import Session, SessionStatus
from practice_kernel.models.therapist import Therapist, TherapistStatus, WorkSchedule
from practice_kernel.models.time import SimTime
from practice_kernel.scheduling import rooms
from practice_kernel.scheduling.scheduler import BookingScheduler
from practice_kernel.world.store import PracticeStore

NOW = SimTime(day=1, hour=8)


def _make_therapist(therapist_id: str = "t1", **overrides) -> Therapist:
    return Therapist(id=therapist_id, display_name=f"Dr. {therapist_id}", **overrides)


def _make_client(client_id: str = "c1", **overrides) -> Client:
    defaults = dict(
        display_name=f"Client {client_id}",
        condition_category=ConditionCategory.ANXIETY,
        session_rate=150,
    )
    defaults.update(overrides)
    return Client(id=client_id, **defaults)


def _make_store(*entities) -> PracticeStore:
    store = PracticeStore()
    for entity in entities:
        if isinstance(entity, Therapist):
            store.upsert_therapist(entity)
        elif isinstance(entity, Client):
            store.upsert_client(entity)
        else:
            store.upsert_session(entity)
    return store


def _request(**overrides) -> BookingRequest:
    defaults = dict(therapist_id="t1", client_id="c1", day=1, hour=9)
    defaults.update(overrides)
    return BookingRequest(**defaults)


def _session(session_id: str, **overrides) -> Session:
    defaults = dict(therapist_id="t1", client_id="c1", scheduled_day=1, scheduled_hour=9)
    defaults.update(overrides)
    return Session(id=session_id, **defaults)


class TestValidateBooking:
    def test_valid_booking(self):
        store = _make_store(_make_therapist(), _make_client())
        result = BookingScheduler().book(_request(), store.state, NOW)
        assert result.success
        session = result.session
        assert session.status == SessionStatus.SCHEDULED
        assert session.payment == 150
        assert session.energy_cost == 15
        assert not session.is_virtual
        assert not session.is_insurance

    def test_unknown_entities(self):
        store = _make_store(_make_therapist(), _make_client())
        scheduler = BookingScheduler()
        assert scheduler.book(_request(therapist_id="x"), store.state, NOW).reason == "Therapist not found"
        assert scheduler.book(_request(client_id="x"), store.state, NOW).reason == "Client not found"

    def test_duration_checked_before_therapist_status(self):
        store = _make_store(_make_therapist(status=TherapistStatus.BURNED_OUT), _make_client())
        scheduler = BookingScheduler()
        result = scheduler.book(_request(duration_minutes=60), store.state, NOW)
        assert result.reason == "Invalid session duration"
        assert scheduler.book(_request(), store.state, NOW).reason == "Therapist is burned out"

    def test_therapist_in_training(self):
        store = _make_store(_make_therapist(status=TherapistStatus.IN_TRAINING), _make_client())
        result = BookingScheduler().book(_request(), store.state, NOW)
        assert result.reason == "Therapist is in training"

    def test_certification_requirements(self):
        scheduler = BookingScheduler()
        store = _make_store(_make_therapist(), _make_client(is_minor=True))
        assert scheduler.book(_request(), store.state, NOW).reason == (
            "Client is a minor and therapist lacks children certification"
        )

        store = _make_store(_make_therapist(), _make_client(required_certification="trauma_certified"))
        assert scheduler.book(_request(), store.state, NOW).reason == (
            "Client requires trauma_certified certification which therapist lacks"
        )

        store = _make_store(
            _make_therapist(certifications=["trauma_certified"]),
            _make_client(required_certification="trauma_certified"),
        )
        assert scheduler.book(_request(), store.state, NOW).success

    def test_past_slots(self):
        store = _make_store(_make_therapist(), _make_client())
        scheduler = BookingScheduler()
        assert scheduler.book(
            _request(day=1), store.state, SimTime(day=2, hour=8)
        ).reason == "Cannot schedule for a previous day"
        assert scheduler.book(
            _request(hour=9), store.state, SimTime(day=1, hour=10)
        ).reason == "Cannot schedule for a past hour"
        assert scheduler.book(
            _request(hour=9), store.state, SimTime(day=1, hour=9, minute=1)
        ).reason == "Cannot schedule for an hour already in progress"
        assert scheduler.book(_request(hour=9), store.state, SimTime(day=1, hour=9)).success

    def test_business_and_work_hours(self):
        therapist = _make_therapist(
            work_schedule=WorkSchedule(work_start_hour=10, work_end_hour=15, break_hours=[12])
        )
        store = _make_store(therapist, _make_client())
        scheduler = BookingScheduler()

        assert scheduler.book(
            _request(hour=15, duration_minutes=180), store.state, NOW
        ).reason == "Outside business hours at 17:00"
        assert scheduler.book(_request(hour=9), store.state, NOW).reason == (
            "Outside therapist work hours at 9:00"
        )
        assert scheduler.book(
            _request(hour=11, duration_minutes=80), store.state, NOW
        ).reason == "Outside therapist work hours at 12:00"

    def test_slot_conflicts(self):
        store = _make_store(
            _make_therapist(), _make_client(), _make_client("c2"),
            _session("s1", client_id="c2", scheduled_hour=9, duration_minutes=80),
        )
        scheduler = BookingScheduler()
        assert scheduler.book(_request(hour=10), store.state, NOW).reason == (
            "Slot already booked at 10:00"
        )

    def test_cancelled_sessions_free_slots(self):
        store = _make_store(
            _make_therapist(), _make_client(), _make_client("c2"),
            _session("s1", client_id="c2", status=SessionStatus.CANCELLED),
        )
        assert BookingScheduler().book(_request(), store.state, NOW).success

    def test_client_conflict(self):
        store = _make_store(
            _make_therapist(), _make_therapist("t2"), _make_client(),
            _session("s1", therapist_id="t2", is_virtual=True),
        )
        store.unlock_telehealth()
        result = BookingScheduler().book(_request(), store.state, NOW)
        assert result.reason == "Client already has a session scheduled at this time"

    def test_daily_limit(self):
        sessions = [
            _session(f"s{h}", client_id=f"other{h}", scheduled_hour=h, is_virtual=True)
            for h in range(8, 16)
        ]
        store = _make_store(
            _make_therapist(work_schedule=WorkSchedule(work_start_hour=8, work_end_hour=17)),
            _make_client(),
            *sessions,
        )
        result = BookingScheduler().book(_request(hour=16), store.state, NOW)
        assert result.reason == "Therapist has reached daily session limit"

    def test_room_capacity_and_telehealth(self):
        store = _make_store(
            _make_therapist(), _make_therapist("t2"), _make_client(), _make_client("c2"),
            _session("s1", therapist_id="t2", client_id="c2"),
        )
        scheduler = BookingScheduler()
        assert scheduler.book(_request(), store.state, NOW).reason == "No rooms available at hour 9"
        assert scheduler.book(_request(is_virtual=True), store.state, NOW).reason == (
            "Telehealth is not unlocked"
        )
        store.unlock_telehealth()
        result = scheduler.book(_request(is_virtual=True), store.state, NOW)
        assert result.success
        assert result.session.is_virtual

    def test_virtual_defaults_to_client_preference(self):
        store = _make_store(_make_therapist(), _make_client(prefers_virtual=True))
        store.unlock_telehealth()
        result = BookingScheduler().book(_request(), store.state, NOW)
        assert result.session.is_virtual


class TestPricing:
    def test_payment_by_duration(self):
        scheduler = BookingScheduler()
        assert scheduler.calculate_payment(150, 50) == 150
        assert scheduler.calculate_payment(150, 80) == 225
        assert scheduler.calculate_payment(150, 180) == 450

    def test_energy_cost_falls_with_level(self):
        scheduler = BookingScheduler()
        assert scheduler.calculate_energy_cost(50, 1) == 15
        assert scheduler.calculate_energy_cost(50, 20) == 12
        assert scheduler.calculate_energy_cost(180, 60) == 25

    def test_half_unit_ties_round_up(self):
        scheduler = BookingScheduler()
        assert scheduler.calculate_payment(123, 80) == 185
        assert scheduler.calculate_energy_cost(80, 10) == 23

    def test_insurance_session(self):
        store = _make_store(
            _make_therapist(), _make_client(is_private_pay=False, insurance_provider="aetna")
        )
        result = BookingScheduler().book(_request(), store.state, NOW)
        assert result.session.is_insurance


class TestCancelAndReschedule:
    def test_cancel(self):
        store = _make_store(_make_therapist(), _make_client(), _session("s1"))
        result = BookingScheduler().cancel("s1", store.state, NOW)
        assert result.success
        assert result.session.status == SessionStatus.CANCELLED
        # Nothing is applied until the caller stores the result.
        assert store.get_session("s1").status == SessionStatus.SCHEDULED

    def test_cancel_refusals(self):
        store = _make_store(
            _make_therapist(), _make_client(), _session("s1"),
            _session("s2", scheduled_hour=10, status=SessionStatus.COMPLETED),
        )
        scheduler = BookingScheduler()
        assert scheduler.cancel("nope", store.state, NOW).reason == "Session not found"
        assert scheduler.cancel("s2", store.state, NOW).reason == "Cannot cancel a completed session"
        assert scheduler.cancel("s1", store.state, SimTime(day=1, hour=11)).reason == (
            "Cannot cancel a session in the past"
        )

    def test_reschedule_keeps_id_and_ignores_itself(self):
        store = _make_store(_make_therapist(), _make_client(), _session("s1"))
        result = BookingScheduler().reschedule(
            "s1", _request(hour=10, duration_minutes=80), store.state, NOW
        )
        assert result.success
        assert result.session.id == "s1"
        assert result.session.scheduled_hour == 10
        assert result.session.payment == 225

    def test_reschedule_uses_session_client(self):
        store = _make_store(_make_therapist(), _make_client(), _session("s1"))
        result = BookingScheduler().reschedule(
            "s1", _request(client_id="someone_else", day=2), store.state, NOW
        )
        assert result.success
        assert result.session.client_id == "c1"

    def test_reschedule_rejected_target(self):
        store = _make_store(
            _make_therapist(), _make_client(), _make_client("c2"),
            _session("s1"), _session("s2", client_id="c2", scheduled_hour=11),
        )
        result = BookingScheduler().reschedule("s1", _request(hour=11), store.state, NOW)
        assert not result.success
        assert result.reason == "Slot already booked at 11:00"


class TestSlotSearch:
    def test_available_hours_skip_bookings(self):
        store = _make_store(_make_therapist(), _make_client(), _session("s1"))
        hours = BookingScheduler().available_hours_for_day(
            store.sessions, store.get_therapist("t1"), 1
        )
        assert 9 not in hours
        assert hours[0] == 8
        assert hours[-1] == 16

    def test_preferred_slots_first(self):
        client = _make_client(
            availability=DayAvailability(tuesday=[14, 15]),
            preferred_time=TimePreference.AFTERNOON,
        )
        store = _make_store(_make_therapist(), client)
        slots = BookingScheduler().find_matching_slots(
            store.sessions, store.get_therapist("t1"), client, start_day=1, days_to_check=3
        )
        assert [(s.day, s.hour) for s in slots[:2]] == [(2, 14), (2, 15)]
        assert all(s.is_preferred for s in slots[:2])
        assert not slots[2].is_preferred
        assert (slots[2].day, slots[2].hour) == (1, 8)

    def test_time_preference_windows(self):
        assert BookingScheduler.matches_time_preference(11, TimePreference.MORNING)
        assert not BookingScheduler.matches_time_preference(12, TimePreference.MORNING)
        assert BookingScheduler.matches_time_preference(16, TimePreference.EVENING)
        assert BookingScheduler.matches_time_preference(3, TimePreference.ANY)


class TestRooms:
    def test_multi_hour_session_holds_room(self):
        building = BUILDINGS["starter_suite"]
        sessions = [_session("s1", duration_minutes=180)]
        assert rooms.room_availability(building, sessions, 1, 11).rooms_in_use == 1
        assert rooms.room_availability(building, sessions, 1, 12).rooms_in_use == 0
        check = rooms.can_book_in_person(building, sessions, 1, 8, 180)
        assert check.reason == "No rooms available at hour 9"

    def test_overbooked_slot_never_goes_negative(self):
        building = BUILDINGS["starter_suite"]
        sessions = [_session("s1"), _session("s2", therapist_id="t2", client_id="c2")]
        availability = rooms.room_availability(building, sessions, 1, 9)
        assert availability.rooms_in_use == 2
        assert availability.rooms_available == 0
        assert not availability.can_book_in_person

    def test_virtual_and_finished_sessions_hold_no_room(self):
        building = BUILDINGS["starter_suite"]
        sessions = [
            _session("s1", is_virtual=True),
            _session("s2", status=SessionStatus.COMPLETED),
            _session("s3", status=SessionStatus.CANCELLED),
        ]
        availability = rooms.room_availability(building, sessions, 1, 9)
        assert availability.rooms_available == 1
        assert availability.can_book_in_person

    def test_unlock_telehealth(self):
        assert rooms.can_unlock_telehealth(1000, False).can_unlock
        assert rooms.can_unlock_telehealth(500, False).reason == "Need $250 more"
        assert rooms.can_unlock_telehealth(5000, True).reason == "Telehealth already unlocked"

    def test_upgrade_building(self):
        starter, small = BUILDINGS["starter_suite"], BUILDINGS["small_office"]
        assert rooms.can_upgrade_building(starter, small, 6000, 2).can_upgrade
        assert rooms.can_upgrade_building(starter, small, 6000, 1).reason == (
            "Requires practice level 2"
        )
        assert rooms.can_upgrade_building(starter, small, 4000, 2).reason == "Need $1000 more"
        assert rooms.can_upgrade_building(small, starter, 6000, 2).reason == (
            "Target building is not an upgrade"
        )
        assert rooms.can_upgrade_building(
            BUILDINGS["professional_suite"], small, 6000, 5
        ).reason == "Cannot downgrade to a lower tier building"
