"""Day-boundary records — what happened when a business day closed."""

from typing import List

from pydantic import BaseModel

from practice_kernel.models.client import Client
from practice_kernel.models.training import CompletedTraining


class DroppedClient(BaseModel):
    client: Client
    reason: str                             # "wait_exceeded" | "dissatisfied"


class SatisfactionChange(BaseModel):
    client_id: str
    old_satisfaction: int
    new_satisfaction: int


class WaitingListResult(BaseModel):
    remaining_clients: List[Client] = []
    dropped_clients: List[DroppedClient] = []
    satisfaction_changes: List[SatisfactionChange] = []


class DayBoundaryReport(BaseModel):
    """Summary of the batch effects applied for one day crossing."""

    day: int
    skipped: bool = False                   # True when this day was already processed
    dropped_clients: List[DroppedClient] = []
    spawned_clients: List[Client] = []
    completed_trainings: List[CompletedTraining] = []
    therapists_rested: int = 0
    recovered_from_burnout: List[str] = []
    reputation_change: float = 0.0
    steps: List[str] = []
