"""
Practice Store — holds the in-memory practice state.

Updated by: Simulation runtime (applying engine results) + Clock (session starts)
Queried by: Scheduler, Suggestion Engine, Day-Boundary Orchestrator, API
"""

import logging
from typing import List, Optional

from practice_kernel.data.catalog import BUILDINGS, DEFAULT_BUILDING_ID, TRAINING_PROGRAMS
from practice_kernel.models.client import Client, ClientStatus
from practice_kernel.models.office import Building
from practice_kernel.models.practice import PracticeState
from practice_kernel.models.session import Session, SessionStatus
from practice_kernel.models.therapist import Therapist
from practice_kernel.models.training import ActiveTraining

logger = logging.getLogger(__name__)


class SchedulingError(Exception):
    """Raised on programmer errors: unknown ids, invalid clock input."""
    pass


class PracticeStore:
    """
    In-memory practice store.
    Persistence is left to whoever owns the snapshot.
    """

    def __init__(
        self,
        building: Optional[Building] = None,
        state: Optional[PracticeState] = None,
    ):
        self._state = state or PracticeState(
            building=building or BUILDINGS[DEFAULT_BUILDING_ID],
            training_programs=dict(TRAINING_PROGRAMS),
        )

    @property
    def state(self) -> PracticeState:
        """Get the current practice state."""
        return self._state

    # --- Therapists ---

    def upsert_therapist(self, therapist: Therapist) -> None:
        self._state.therapists[therapist.id] = therapist

    def get_therapist(self, therapist_id: str) -> Optional[Therapist]:
        return self._state.therapists.get(therapist_id)

    def require_therapist(self, therapist_id: str) -> Therapist:
        therapist = self._state.therapists.get(therapist_id)
        if therapist is None:
            raise SchedulingError(f"Unknown therapist: {therapist_id}")
        return therapist

    @property
    def therapists(self) -> List[Therapist]:
        return list(self._state.therapists.values())

    # --- Clients ---

    def upsert_client(self, client: Client) -> None:
        """Insert or update a client. Waiting clients are kept on the waiting list."""
        self._state.clients[client.id] = client
        on_list = client.id in self._state.waiting_list
        if client.status == ClientStatus.WAITING and not on_list:
            self._state.waiting_list.append(client.id)
        elif client.status != ClientStatus.WAITING and on_list:
            self._state.waiting_list.remove(client.id)

    def get_client(self, client_id: str) -> Optional[Client]:
        return self._state.clients.get(client_id)

    def require_client(self, client_id: str) -> Client:
        client = self._state.clients.get(client_id)
        if client is None:
            raise SchedulingError(f"Unknown client: {client_id}")
        return client

    @property
    def clients(self) -> List[Client]:
        return list(self._state.clients.values())

    def waiting_clients(self) -> List[Client]:
        """Clients on the waiting list, in arrival order."""
        return [
            self._state.clients[cid]
            for cid in self._state.waiting_list
            if cid in self._state.clients
        ]

    # --- Sessions ---

    def upsert_session(self, session: Session) -> None:
        self._state.sessions[session.id] = session

    def get_session(self, session_id: str) -> Optional[Session]:
        return self._state.sessions.get(session_id)

    def require_session(self, session_id: str) -> Session:
        session = self._state.sessions.get(session_id)
        if session is None:
            raise SchedulingError(f"Unknown session: {session_id}")
        return session

    @property
    def sessions(self) -> List[Session]:
        return list(self._state.sessions.values())

    def sessions_with_status(self, *statuses: SessionStatus) -> List[Session]:
        return [s for s in self._state.sessions.values() if s.status in statuses]

    def mark_session_in_progress(self, session_id: str) -> Session:
        """Flip a scheduled session to in_progress. Used by the clock at its start instant."""
        session = self.require_session(session_id)
        if session.status != SessionStatus.SCHEDULED:
            raise SchedulingError(
                f"Cannot start session {session_id}: status is {session.status.value}"
            )
        started = session.model_copy(update={"status": SessionStatus.IN_PROGRESS})
        self._state.sessions[session_id] = started
        return started

    # --- Trainings and practice scalars ---

    def set_active_trainings(self, trainings: List[ActiveTraining]) -> None:
        self._state.active_trainings = list(trainings)

    def add_active_training(self, training: ActiveTraining) -> None:
        self._state.active_trainings.append(training)

    def adjust_balance(self, delta: int) -> None:
        self._state.balance += delta

    def adjust_reputation(self, delta: float) -> float:
        """Apply a reputation change, clamped to 0-100. Returns the new value."""
        self._state.reputation = max(0.0, min(100.0, self._state.reputation + delta))
        return self._state.reputation

    def unlock_telehealth(self) -> None:
        self._state.telehealth_unlocked = True

    def set_building(self, building: Building) -> None:
        logger.info("Building changed: %s -> %s", self._state.building.id, building.id)
        self._state.building = building

    # --- Snapshots ---

    def get_state_snapshot(self) -> dict:
        """Get a serializable snapshot of the current practice state."""
        return self._state.model_dump(mode="json")

    def checkpoint(self) -> PracticeState:
        """Deep copy of the state, for all-or-nothing multi-step updates."""
        return self._state.model_copy(deep=True)

    def restore(self, checkpoint: PracticeState) -> None:
        self._state = checkpoint
