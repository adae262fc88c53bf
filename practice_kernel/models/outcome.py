"""Session outcome results — returned by the outcome engine, applied by callers."""

from pydantic import BaseModel

from practice_kernel.models.client import Client
from practice_kernel.models.session import ProgressType, Session
from practice_kernel.models.therapist import Therapist


class SessionStartResult(BaseModel):
    session: Session
    therapist: Therapist
    client: Client


class SessionCompleteResult(BaseModel):
    """Everything a caller needs to apply a finished session."""

    session: Session
    therapist: Therapist
    client: Client
    xp_gained: int
    leveled_up: bool
    new_level: int
    satisfaction_change: int
    treatment_progress_gained: float
    progress_type: ProgressType = ProgressType.NORMAL
    progress_description: str = ""
    payment_amount: int
    burned_out: bool = False


class SessionCancelResult(BaseModel):
    session: Session
    therapist: Therapist
    client: Client
