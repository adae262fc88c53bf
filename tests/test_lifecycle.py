"""Tests for waiting-list decay and new-client generation."""

import random

import pytest

from practice_kernel.clients.lifecycle import (
    DISSATISFIED,
    WAIT_EXCEEDED,
    generate_client,
    process_waiting_list,
    spawn_attempts,
    spawn_chance,
    spawn_clients,
)
from practice_kernel.models.client import Client, ClientStatus, ConditionCategory


class FixedRandom(random.Random):
    def __init__(self, value: float):
        self.value = value
        super().__init__(0)

    def random(self):
        return self.value


def _make_client(client_id: str = "c1", **overrides) -> Client:
    defaults = dict(display_name="Waiting", condition_category=ConditionCategory.STRESS)
    defaults.update(overrides)
    return Client(id=client_id, **defaults)


class TestWaitingList:
    def test_satisfaction_decays(self):
        result = process_waiting_list([_make_client(arrival_day=1)], current_day=3)
        client = result.remaining_clients[0]
        assert client.satisfaction == 68
        assert client.days_waiting == 2
        change = result.satisfaction_changes[0]
        assert (change.old_satisfaction, change.new_satisfaction) == (70, 68)
        assert result.dropped_clients == []

    def test_days_waiting_never_decreases(self):
        result = process_waiting_list([_make_client(days_waiting=5)], current_day=2)
        assert result.remaining_clients[0].days_waiting == 5

    def test_dissatisfied_dropout(self):
        result = process_waiting_list([_make_client(satisfaction=32)], current_day=2)
        dropped = result.dropped_clients[0]
        assert dropped.reason == DISSATISFIED
        assert dropped.client.status == ClientStatus.DROPPED
        assert dropped.client.satisfaction == 30
        assert result.remaining_clients == []

    def test_wait_exceeded_takes_precedence(self):
        client = _make_client(max_wait_days=7, satisfaction=31)
        result = process_waiting_list([client], current_day=8)
        assert result.dropped_clients[0].reason == WAIT_EXCEEDED

    def test_non_waiting_clients_untouched(self):
        client = _make_client(status=ClientStatus.IN_TREATMENT, satisfaction=40)
        result = process_waiting_list([client], current_day=30)
        assert result.remaining_clients == [client]
        assert result.satisfaction_changes == []


class TestArrivals:
    def test_spawn_chance_grows(self):
        assert spawn_chance(5, 20) == pytest.approx(0.29)
        assert spawn_chance(100, 100) == pytest.approx(0.7)
        assert spawn_chance(10, 0) < spawn_chance(20, 0)

    def test_spawn_attempts(self):
        assert [spawn_attempts(d) for d in (1, 9, 10, 29, 30, 59, 60)] == [1, 1, 2, 2, 3, 3, 4]

    def test_no_arrivals_before_day_two(self):
        assert spawn_clients(1, 100, FixedRandom(0.0)) == []

    def test_arrivals_follow_rng(self):
        spawned = spawn_clients(2, 20, FixedRandom(0.0))
        assert len(spawned) == 1
        assert spawned[0].arrival_day == 2
        assert spawned[0].status == ClientStatus.WAITING
        assert spawn_clients(2, 20, FixedRandom(0.99)) == []

    def test_generated_client(self):
        client = generate_client(4, FixedRandom(0.0))
        assert client.id.startswith("client_")
        assert len(client.id) == len("client_") + 12
        assert client.display_name == "Client AA"
        assert client.condition_category == ConditionCategory.ANXIETY
        assert client.condition_type == "Generalized Anxiety"
        assert client.severity == 1
        assert client.sessions_required == 4
        assert client.is_private_pay
        assert client.insurance_provider is None
        assert client.session_rate == 120
        assert client.is_minor
        assert client.required_certification == "children_certified"
        assert client.availability.hours_for("friday") == [9, 10, 11]
        assert client.max_wait_days == 14
        assert client.arrival_day == 4

    def test_insured_client(self):
        client = generate_client(4, FixedRandom(0.5), insurers=["aetna"])
        assert not client.is_private_pay
        assert client.insurance_provider == "aetna"
        assert client.session_rate == 115
        assert client.required_certification is None

    def test_seeded_generation_is_reproducible(self):
        first = generate_client(3, random.Random(42), insurers=["aetna", "cigna"])
        second = generate_client(3, random.Random(42), insurers=["aetna", "cigna"])
        assert first == second
