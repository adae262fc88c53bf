"""
Day-Boundary Orchestrator — batch effects applied when a business day closes.

Strict order per day crossing:
  1. Waiting-list decay and dropouts
  2. New-client arrivals
  3. Training progression
  4. Overnight resource recovery

Each day number is processed at most once; a re-delivered day-ended
notification yields a report marked skipped and changes nothing.
"""

import logging
import random
from typing import List, Optional

from practice_kernel.clients.lifecycle import process_waiting_list, spawn_clients
from practice_kernel.models.client import ClientConfig
from practice_kernel.models.day import DayBoundaryReport
from practice_kernel.models.training import ClinicBonus, ClinicBonusType
from practice_kernel.resources.energy import ResourceProcessor
from practice_kernel.resources.training import TrainingProcessor
from practice_kernel.world.store import PracticeStore

logger = logging.getLogger(__name__)

STEPS = ("waiting_list", "client_arrivals", "training", "overnight_recovery")


class DayBoundaryOrchestrator:
    """
    Runs the day-boundary steps against the practice store.

    Owns the last-processed-day guard; callers must not reset it.
    """

    def __init__(
        self,
        resources: ResourceProcessor,
        training: TrainingProcessor,
        client_config: Optional[ClientConfig] = None,
        rng: Optional[random.Random] = None,
        spawn_enabled: bool = True,
        insurers: Optional[List[str]] = None,
    ):
        self.resources = resources
        self.training = training
        self.client_config = client_config or ClientConfig()
        self.random = rng or random.Random()
        self.spawn_enabled = spawn_enabled
        self.insurers = insurers or []
        self._last_processed_day = 0

    @property
    def last_processed_day(self) -> int:
        return self._last_processed_day

    def process_day_end(self, store: PracticeStore, ended_day: int) -> DayBoundaryReport:
        """Apply every step for the boundary after ended_day."""
        new_day = ended_day + 1
        report = DayBoundaryReport(day=new_day)
        if ended_day <= self._last_processed_day:
            logger.debug("Day %d boundary already processed", ended_day)
            report.skipped = True
            return report
        self._last_processed_day = ended_day

        self._process_waiting_list(store, new_day, report)
        self._spawn_clients(store, new_day, report)
        self._process_training(store, report)
        self._process_rest(store, ended_day, report)

        logger.info(
            "Day %d boundary: %d dropped, %d arrived, %d training(s) completed",
            ended_day,
            len(report.dropped_clients),
            len(report.spawned_clients),
            len(report.completed_trainings),
        )
        return report

    # --- Steps ---

    def _process_waiting_list(self, store: PracticeStore, day: int, report: DayBoundaryReport) -> None:
        result = process_waiting_list(store.waiting_clients(), day, self.client_config)
        for client in result.remaining_clients:
            store.upsert_client(client)
        for dropped in result.dropped_clients:
            store.upsert_client(dropped.client)
            report.reputation_change -= self.client_config.dropout_reputation_penalty
            store.adjust_reputation(-self.client_config.dropout_reputation_penalty)
        report.dropped_clients = result.dropped_clients
        report.steps.append(STEPS[0])

    def _spawn_clients(self, store: PracticeStore, day: int, report: DayBoundaryReport) -> None:
        if self.spawn_enabled:
            spawned = spawn_clients(
                day, store.state.reputation, self.random, self.insurers, self.client_config
            )
            for client in spawned:
                store.upsert_client(client)
            report.spawned_clients = spawned
        report.steps.append(STEPS[1])

    def _process_training(self, store: PracticeStore, report: DayBoundaryReport) -> None:
        result = self.training.process_daily_training(
            store.state.active_trainings, store.therapists
        )
        store.set_active_trainings(result.updated_trainings)
        for therapist in result.updated_therapists:
            store.upsert_therapist(therapist)
        for completed in result.completed_trainings:
            if completed.clinic_bonus:
                report.reputation_change += self._apply_clinic_bonus(store, completed.clinic_bonus)
        report.completed_trainings = result.completed_trainings
        report.steps.append(STEPS[2])

    def _process_rest(self, store: PracticeStore, ended_day: int, report: DayBoundaryReport) -> None:
        for rest in self.resources.process_end_of_day(store.therapists, ended_day):
            store.upsert_therapist(rest.therapist)
            report.therapists_rested += 1
            if rest.recovered_from_burnout:
                report.recovered_from_burnout.append(rest.therapist.id)
        report.steps.append(STEPS[3])

    @staticmethod
    def _apply_clinic_bonus(store: PracticeStore, bonus: ClinicBonus) -> float:
        """Apply a completed training's practice-wide bonus. Returns the reputation change."""
        state = store.state
        if bonus.type == ClinicBonusType.REPUTATION_BONUS:
            before = state.reputation
            return store.adjust_reputation(bonus.value) - before
        if bonus.type == ClinicBonusType.INSURANCE_MULTIPLIER:
            state.insurance_multiplier += bonus.value
        elif bonus.type == ClinicBonusType.HIRING_CAPACITY:
            state.hiring_capacity_bonus += int(bonus.value)
        return 0.0
