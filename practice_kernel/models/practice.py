"""Practice state — the in-memory snapshot every component reads."""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from practice_kernel.models.client import Client, ClientConfig
from practice_kernel.models.office import Building
from practice_kernel.models.scheduling import ScheduleConfig
from practice_kernel.models.session import Session, SessionConfig
from practice_kernel.models.suggestion import SuggestionConfig
from practice_kernel.models.therapist import EnergyConfig, FacilityEffects, Therapist
from practice_kernel.models.time import ClockConfig
from practice_kernel.models.training import ActiveTraining, TrainingConfig, TrainingProgram


class PracticeState(BaseModel):
    """The whole practice at one instant. Insertion order of dicts is preserved."""

    therapists: Dict[str, Therapist] = {}
    clients: Dict[str, Client] = {}
    sessions: Dict[str, Session] = {}
    waiting_list: List[str] = []
    active_trainings: List[ActiveTraining] = []
    building: Building
    telehealth_unlocked: bool = False
    balance: int = 0
    reputation: float = Field(ge=0, le=100, default=20.0)
    practice_level: int = Field(ge=1, le=5, default=1)
    insurance_multiplier: float = 1.0
    hiring_capacity_bonus: int = 0
    facility_effects: FacilityEffects = FacilityEffects()
    training_programs: Dict[str, TrainingProgram] = {}


class SimulationConfig(BaseModel):
    """Aggregate configuration for a wired simulation."""

    clock: ClockConfig = ClockConfig()
    energy: EnergyConfig = EnergyConfig()
    schedule: ScheduleConfig = ScheduleConfig()
    session: SessionConfig = SessionConfig()
    suggestion: SuggestionConfig = SuggestionConfig()
    client: ClientConfig = ClientConfig()
    training: TrainingConfig = TrainingConfig()
    seed: Optional[int] = None
    spawn_clients: bool = True
    insurers: List[str] = []                # insurance panels new clients may use
