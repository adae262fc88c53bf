"""
Training progression — daily hour accrual and enrollment checks.

Trainings advance by a fixed hour budget per business day. Completion
grants the program's certification and skill bonus and hands the clinic
bonus back to the caller to apply.
"""

import logging
from typing import Dict, List, Optional

from practice_kernel.models.therapist import Therapist, TherapistStatus
from practice_kernel.models.training import (
    ActiveTraining,
    CompletedTraining,
    StartTrainingCheck,
    TrainingConfig,
    TrainingProgram,
    TrainingProgressResult,
)
from practice_kernel.numeric import round_half_up

logger = logging.getLogger(__name__)


class TrainingProcessor:
    """Advances active trainings and validates new enrollments."""

    def __init__(
        self,
        programs: Dict[str, TrainingProgram],
        config: Optional[TrainingConfig] = None,
    ):
        self.programs = programs
        self.config = config or TrainingConfig()

    def process_daily_training(
        self,
        active_trainings: List[ActiveTraining],
        therapists: List[Therapist],
    ) -> TrainingProgressResult:
        """
        Advance every active training by one day of hours.

        Trainings whose therapist or program cannot be found are passed
        through unchanged.
        """
        by_id = {t.id: t for t in therapists}
        result = TrainingProgressResult()

        for training in active_trainings:
            program = self.programs.get(training.program_id)
            therapist = by_id.get(training.therapist_id)
            if program is None or therapist is None:
                logger.warning(
                    "Orphaned training %s for therapist %s kept as-is",
                    training.program_id, training.therapist_id,
                )
                result.updated_trainings.append(training)
                continue

            hours = training.hours_completed + self.config.hours_per_day
            if hours < program.duration_hours:
                result.updated_trainings.append(
                    training.model_copy(update={"hours_completed": hours})
                )
                continue

            completed, updated = self._complete(training, program, therapist)
            result.completed_trainings.append(completed)
            result.updated_therapists.append(updated)
            logger.info("Therapist %s completed training %s", therapist.id, program.id)

        return result

    def _complete(self, training: ActiveTraining, program: TrainingProgram, therapist: Therapist):
        gained = []
        certifications = list(therapist.certifications)
        cert = program.grants.certification
        if cert and cert not in certifications:
            certifications.append(cert)
            gained.append(cert)

        updated = therapist.model_copy(update={
            "certifications": certifications,
            "base_skill": min(self.config.max_skill, therapist.base_skill + program.grants.skill_bonus),
            "status": TherapistStatus.AVAILABLE,
        })
        completed = CompletedTraining(
            training=training.model_copy(update={"hours_completed": program.duration_hours}),
            program=program,
            therapist_id=therapist.id,
            certifications_gained=gained,
            skill_gained=program.grants.skill_bonus,
            clinic_bonus=program.grants.clinic_bonus,
        )
        return completed, updated

    def can_start_training(
        self,
        therapist: Therapist,
        program: TrainingProgram,
        active_trainings: List[ActiveTraining],
        balance: int,
    ) -> StartTrainingCheck:
        if any(t.therapist_id == therapist.id for t in active_trainings):
            return StartTrainingCheck(can_start=False, reason="Therapist is already in training")
        if balance < program.cost:
            return StartTrainingCheck(
                can_start=False, reason=f"Insufficient funds (need ${program.cost})"
            )
        if therapist.status != TherapistStatus.AVAILABLE:
            return StartTrainingCheck(can_start=False, reason="Therapist is not available")

        prereq = program.prerequisites
        if prereq.min_skill and therapist.base_skill < prereq.min_skill:
            return StartTrainingCheck(
                can_start=False, reason=f"Requires skill level {prereq.min_skill}"
            )
        missing = [c for c in prereq.certifications if c not in therapist.certifications]
        if missing:
            return StartTrainingCheck(
                can_start=False, reason=f"Missing certifications: {', '.join(missing)}"
            )
        if prereq.required_credentials and therapist.credential not in prereq.required_credentials:
            return StartTrainingCheck(
                can_start=False,
                reason=f"Requires credential: {', '.join(prereq.required_credentials)}",
            )
        if program.grants.certification and program.grants.certification in therapist.certifications:
            return StartTrainingCheck(can_start=False, reason="Already has this certification")

        return StartTrainingCheck(can_start=True)

    def start_training(
        self, therapist: Therapist, program: TrainingProgram, current_day: int
    ) -> tuple:
        """Returns (ActiveTraining, therapist set to in_training)."""
        training = ActiveTraining(
            program_id=program.id,
            therapist_id=therapist.id,
            start_day=current_day,
            hours_completed=0,
            total_hours=program.duration_hours,
        )
        return training, therapist.model_copy(update={"status": TherapistStatus.IN_TRAINING})

    def days_remaining(self, training: ActiveTraining) -> int:
        hours_left = training.total_hours - training.hours_completed
        if hours_left <= 0:
            return 0
        return -(-hours_left // self.config.hours_per_day)

    def progress_percent(self, training: ActiveTraining) -> int:
        if training.total_hours == 0:
            return 100
        return round_half_up(training.hours_completed / training.total_hours * 100)
