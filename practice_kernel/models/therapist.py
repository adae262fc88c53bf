"""Therapist — the worker entity and its energy bookkeeping results."""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field, field_validator, model_validator


class TherapistStatus(str, Enum):
    AVAILABLE = "available"
    IN_SESSION = "in_session"
    ON_BREAK = "on_break"
    IN_TRAINING = "in_training"
    BURNED_OUT = "burned_out"


class Modality(str, Enum):
    CBT = "CBT"
    DBT = "DBT"
    PSYCHODYNAMIC = "Psychodynamic"
    HUMANISTIC = "Humanistic"
    EMDR = "EMDR"
    SOMATIC = "Somatic"
    FAMILY_SYSTEMS = "FamilySystems"
    INTEGRATIVE = "Integrative"


class TherapistTraits(BaseModel):
    """Personality traits used for client matching."""
    warmth: int = Field(ge=1, le=10, default=5)
    analytical: int = Field(ge=1, le=10, default=5)
    creativity: int = Field(ge=1, le=10, default=5)


class WorkSchedule(BaseModel):
    """
    Per-therapist working hours.

    A therapist is bookable at hour h when start <= h < end and h is not a
    break hour.
    """
    work_start_hour: int = Field(ge=0, le=23, default=8)
    work_end_hour: int = Field(ge=1, le=24, default=17)
    break_hours: List[int] = Field(default=[], max_length=3)

    @field_validator("break_hours")
    @classmethod
    def _unique_break_hours(cls, value: List[int]) -> List[int]:
        if any(h < 0 or h > 23 for h in value):
            raise ValueError("break hours must be within 0-23")
        return sorted(set(value))

    @model_validator(mode="after")
    def _start_before_end(self) -> "WorkSchedule":
        if self.work_start_hour >= self.work_end_hour:
            raise ValueError("work_start_hour must be before work_end_hour")
        return self

    def is_working_hour(self, hour: int) -> bool:
        return self.work_start_hour <= hour < self.work_end_hour and hour not in self.break_hours

    def working_hours(self) -> List[int]:
        return [
            h for h in range(self.work_start_hour, self.work_end_hour)
            if h not in self.break_hours
        ]


class Therapist(BaseModel):
    """A worker who runs sessions, recovers energy and trains."""

    id: str
    display_name: str
    credential: str = "LPC"                 # e.g., "LMFT", "LCSW", "PsyD"
    primary_modality: Modality = Modality.INTEGRATIVE
    secondary_modalities: List[Modality] = []
    energy: int = Field(ge=0, default=100)
    max_energy: int = Field(gt=0, default=100)
    base_skill: int = Field(ge=1, le=100, default=50)
    level: int = Field(ge=1, le=50, default=1)
    xp: int = Field(ge=0, default=0)
    certifications: List[str] = []
    specializations: List[str] = []
    status: TherapistStatus = TherapistStatus.AVAILABLE
    burnout_recovery_progress: int = Field(ge=0, le=100, default=0)
    traits: TherapistTraits = TherapistTraits()
    work_schedule: WorkSchedule = WorkSchedule()

    @model_validator(mode="after")
    def _energy_within_max(self) -> "Therapist":
        if self.energy > self.max_energy:
            raise ValueError("energy cannot exceed max_energy")
        return self


class EnergyConfig(BaseModel):
    """Configuration for therapist energy recovery and burnout."""

    recovery_per_hour: int = 10
    overnight_rest_hours: int = 16
    burnout_recovery_per_day: int = 50
    forced_break_threshold: int = 10
    burnout_threshold: int = 20
    break_release_energy: int = 50          # on_break therapists at or above this become available


class FacilityEffects(BaseModel):
    """Recovery multipliers supplied by facility upgrades. 1.0 = no change."""

    idle_energy_multiplier: float = Field(ge=0, default=1.0)
    break_energy_multiplier: float = Field(ge=0, default=1.0)
    training_energy_multiplier: float = Field(ge=0, default=1.0)


class IdleRecoveryResult(BaseModel):
    """Outcome of applying idle recovery to one therapist."""

    therapist: Therapist
    energy_recovered: int
    remainder_units: int                    # carried sub-unit recovery, in 1/60000 energy


class RestResult(BaseModel):
    """Outcome of overnight rest for one therapist."""

    therapist: Therapist
    energy_recovered: int
    recovered_from_burnout: bool = False
