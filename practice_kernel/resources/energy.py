"""
Resource Processor — therapist energy over elapsed simulated time.

Idle recovery is integer arithmetic in 1/60000 energy units:

  units     = idle_minutes * recovery_per_hour * multiplier_milli + remainder
  recovered = units // 60000
  remainder = units %  60000

so recovering over one long span or many short ones gives the same
energy. The remainder is dropped whenever energy sits at its cap, and at
both day boundaries.
"""

import logging
from typing import Dict, List, Optional

from practice_kernel.models.therapist import (
    EnergyConfig,
    FacilityEffects,
    IdleRecoveryResult,
    RestResult,
    Therapist,
    TherapistStatus,
)

logger = logging.getLogger(__name__)

UNITS_PER_ENERGY = 60 * 1000                # minutes per hour * milli-multiplier


def recovery_multiplier(therapist: Therapist, effects: Optional[FacilityEffects] = None) -> float:
    """Facility multiplier that applies to this therapist's current status."""
    effects = effects or FacilityEffects()
    if therapist.status == TherapistStatus.ON_BREAK:
        return effects.break_energy_multiplier
    if therapist.status == TherapistStatus.IN_TRAINING:
        return effects.training_energy_multiplier
    return effects.idle_energy_multiplier


def apply_idle_energy_recovery(
    therapist: Therapist,
    idle_minutes: int,
    remainder_units: int = 0,
    multiplier: float = 1.0,
    config: Optional[EnergyConfig] = None,
) -> IdleRecoveryResult:
    """
    Recover energy for idle minutes, carrying the sub-unit remainder.

    Never banks recovery while capped: the remainder is cleared once
    energy reaches max_energy.
    """
    config = config or EnergyConfig()
    if idle_minutes <= 0:
        return IdleRecoveryResult(
            therapist=therapist, energy_recovered=0, remainder_units=remainder_units
        )
    if therapist.energy >= therapist.max_energy:
        return IdleRecoveryResult(therapist=therapist, energy_recovered=0, remainder_units=0)

    multiplier_milli = round(multiplier * 1000)
    total_units = idle_minutes * config.recovery_per_hour * multiplier_milli + remainder_units
    recovered, remainder = divmod(total_units, UNITS_PER_ENERGY)

    new_energy = min(therapist.max_energy, therapist.energy + recovered)
    if new_energy >= therapist.max_energy:
        remainder = 0

    return IdleRecoveryResult(
        therapist=therapist.model_copy(update={"energy": new_energy}),
        energy_recovered=new_energy - therapist.energy,
        remainder_units=remainder,
    )


def process_rest(therapist: Therapist, config: Optional[EnergyConfig] = None) -> RestResult:
    """Overnight rest: burnout recovery progress, or a large energy top-up."""
    config = config or EnergyConfig()

    if therapist.status == TherapistStatus.BURNED_OUT:
        progress = therapist.burnout_recovery_progress + config.burnout_recovery_per_day
        recovered = progress >= 100
        updated = therapist.model_copy(update={
            "burnout_recovery_progress": 0 if recovered else progress,
            "status": TherapistStatus.AVAILABLE if recovered else TherapistStatus.BURNED_OUT,
            "energy": therapist.max_energy if recovered else therapist.energy,
        })
        return RestResult(
            therapist=updated,
            energy_recovered=updated.energy - therapist.energy,
            recovered_from_burnout=recovered,
        )

    amount = config.overnight_rest_hours * config.recovery_per_hour
    new_energy = min(therapist.max_energy, therapist.energy + amount)
    status = therapist.status
    if status == TherapistStatus.ON_BREAK and new_energy >= config.break_release_energy:
        status = TherapistStatus.AVAILABLE

    return RestResult(
        therapist=therapist.model_copy(update={"energy": new_energy, "status": status}),
        energy_recovered=new_energy - therapist.energy,
    )


class ResourceProcessor:
    """
    Applies energy effects to therapists as time passes.

    Owns the per-therapist remainder carry, the session minutes recorded
    for the segment being processed, and the last-processed-day guards.
    Returns updated therapists; the caller writes them back.
    """

    def __init__(self, config: Optional[EnergyConfig] = None):
        self.config = config or EnergyConfig()
        self._remainders: Dict[str, int] = {}
        self._session_minutes: Dict[str, int] = {}
        self._last_rested_day = 0
        self._last_started_day = 0

    @property
    def last_rested_day(self) -> int:
        return self._last_rested_day

    @property
    def last_started_day(self) -> int:
        return self._last_started_day

    def remainder_for(self, therapist_id: str) -> int:
        return self._remainders.get(therapist_id, 0)

    def record_session_minutes(self, therapist_id: str, minutes: int) -> None:
        """Minutes spent in session during the current segment; they earn no recovery."""
        if minutes <= 0:
            return
        self._session_minutes[therapist_id] = self._session_minutes.get(therapist_id, 0) + minutes

    def process_elapsed(
        self,
        therapists: List[Therapist],
        minutes: int,
        effects: Optional[FacilityEffects] = None,
    ) -> List[IdleRecoveryResult]:
        """Recover energy for the idle part of an elapsed span."""
        results = []
        try:
            if minutes <= 0:
                return results
            for therapist in therapists:
                if therapist.status in (TherapistStatus.IN_SESSION, TherapistStatus.BURNED_OUT):
                    continue
                idle = max(0, minutes - self._session_minutes.get(therapist.id, 0))
                if idle <= 0:
                    continue
                result = apply_idle_energy_recovery(
                    therapist,
                    idle,
                    self._remainders.get(therapist.id, 0),
                    recovery_multiplier(therapist, effects),
                    self.config,
                )
                self._remainders[therapist.id] = result.remainder_units
                results.append(result)
        finally:
            self._session_minutes.clear()
        return results

    def process_end_of_day(self, therapists: List[Therapist], day: int) -> List[RestResult]:
        """Overnight rest, at most once per day number."""
        if day <= self._last_rested_day:
            logger.debug("End of day %d already processed, skipping rest", day)
            return []
        self._last_rested_day = day

        results = []
        for therapist in therapists:
            rest = process_rest(therapist, self.config)
            self._remainders[therapist.id] = 0
            if rest.recovered_from_burnout:
                logger.info("Therapist %s recovered from burnout", therapist.id)
            results.append(rest)
        return results

    def process_start_of_day(self, therapists: List[Therapist], day: int) -> List[Therapist]:
        """Working therapists start the day at full energy. Burned-out ones do not."""
        if day <= self._last_started_day:
            logger.debug("Start of day %d already processed", day)
            return []
        self._last_started_day = day

        updated = []
        for therapist in therapists:
            if therapist.status == TherapistStatus.BURNED_OUT:
                continue
            self._remainders[therapist.id] = 0
            if therapist.energy != therapist.max_energy:
                updated.append(therapist.model_copy(update={"energy": therapist.max_energy}))
        return updated
