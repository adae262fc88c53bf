"""Training — programs, enrollments and their daily progression."""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from practice_kernel.models.therapist import Therapist


class ClinicBonusType(str, Enum):
    HIRING_CAPACITY = "hiring_capacity"
    INSURANCE_MULTIPLIER = "insurance_multiplier"
    REPUTATION_BONUS = "reputation_bonus"


class ClinicBonus(BaseModel):
    type: ClinicBonusType
    value: float


class TrainingPrerequisites(BaseModel):
    min_skill: Optional[int] = None
    certifications: List[str] = []
    required_credentials: List[str] = []    # any one of these qualifies


class TrainingGrants(BaseModel):
    skill_bonus: int = 0
    certification: Optional[str] = None
    clinic_bonus: Optional[ClinicBonus] = None


class TrainingProgram(BaseModel):
    """A catalog entry. Read-only input to the training processor."""

    id: str
    name: str
    track: str = "clinical"                 # "clinical" | "business"
    cost: int = Field(ge=0)
    duration_hours: int = Field(gt=0)
    prerequisites: TrainingPrerequisites = TrainingPrerequisites()
    grants: TrainingGrants = TrainingGrants()


class ActiveTraining(BaseModel):
    """An enrollment in progress."""

    program_id: str
    therapist_id: str
    start_day: int = Field(ge=1)
    hours_completed: int = Field(ge=0, default=0)
    total_hours: int = Field(ge=0)


class CompletedTraining(BaseModel):
    training: ActiveTraining
    program: TrainingProgram
    therapist_id: str
    certifications_gained: List[str] = []
    skill_gained: int = 0
    clinic_bonus: Optional[ClinicBonus] = None


class TrainingProgressResult(BaseModel):
    """Result of one day of training progression across all enrollments."""

    updated_trainings: List[ActiveTraining] = []
    completed_trainings: List[CompletedTraining] = []
    updated_therapists: List[Therapist] = []


class StartTrainingCheck(BaseModel):
    can_start: bool
    reason: Optional[str] = None


class TrainingConfig(BaseModel):
    hours_per_day: int = Field(gt=0, default=8)
    max_skill: int = 100
