"""
Practice Kernel API — FastAPI endpoints.

Exposes a running simulation via a REST API for:
- Clock inspection and control
- Room availability
- Booking, cancelling and rescheduling sessions
- Booking suggestions
- Roster inspection
- Training enrollment
"""

from typing import Optional

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from practice_kernel.clock import timeline
from practice_kernel.models.client import Client
from practice_kernel.models.scheduling import BookingRequest
from practice_kernel.models.therapist import Therapist
from practice_kernel.models.time import SimTime
from practice_kernel.simulation.runtime import Simulation


# --- Request/Response Models ---

class TickRequest(BaseModel):
    interval_ms: int = Field(ge=0)


class SkipRequest(BaseModel):
    day: int = Field(ge=1)
    hour: int = Field(ge=0, le=23)
    minute: int = Field(ge=0, le=59, default=0)


class RescheduleRequest(BaseModel):
    therapist_id: str
    day: int = Field(ge=1)
    hour: int = Field(ge=0, le=23)
    duration_minutes: int = 50
    is_virtual: Optional[bool] = None


class TrainingEnrollRequest(BaseModel):
    therapist_id: str
    program_id: str


def _time_payload(time: SimTime) -> dict:
    return {**time.model_dump(), "formatted": timeline.format_time(time)}


# --- Application Factory ---

def create_app(simulation: Optional[Simulation] = None) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Practice Kernel API",
        description="Therapy practice simulation kernel",
        version="0.1.0",
    )

    sim = simulation or Simulation()
    store = sim.store

    app.state.simulation = sim
    app.state.store = store

    # === HEALTH ===

    @app.get("/health")
    def health():
        return {
            "status": "healthy",
            "time": _time_payload(sim.now),
            "running": sim.is_running,
            "therapists": len(store.therapists),
            "clients": len(store.clients),
        }

    # === CLOCK ===

    @app.get("/time")
    def get_time():
        """Current simulated time."""
        return {
            "time": _time_payload(sim.now),
            "paused": sim.clock.paused,
            "speed": sim.clock.speed,
        }

    @app.post("/clock/tick")
    def tick(req: TickRequest):
        """Advance by the simulated minutes worth of a wall-clock interval."""
        result = sim.tick(req.interval_ms)
        return {
            "advanced": result is not None,
            "result": result.model_dump(mode="json") if result else None,
            "time": _time_payload(sim.now),
        }

    @app.post("/clock/skip")
    def skip(req: SkipRequest):
        """Skip toward a time, stopping at the first scheduled session start."""
        result = sim.skip_to(SimTime(day=req.day, hour=req.hour, minute=req.minute))
        if result is None:
            raise HTTPException(409, "Skip refused")
        return result.model_dump(mode="json")

    @app.post("/clock/skip-next")
    def skip_next():
        """Skip to the next session today, or to the next business day."""
        if not sim.skip_to_next_session():
            raise HTTPException(409, "Skip refused")
        return {"time": _time_payload(sim.now)}

    # === ROOMS ===

    @app.get("/rooms/{day}/{hour}")
    def get_rooms(day: int, hour: int):
        """Room usage at one slot."""
        return sim.room_availability(day, hour).model_dump()

    @app.get("/buildings/upgrades")
    def list_upgrades():
        """Buildings the practice may move to at its current level."""
        return [b.model_dump() for b in sim.available_upgrades()]

    # === SESSIONS ===

    @app.get("/sessions")
    def list_sessions():
        return [s.model_dump(mode="json") for s in store.sessions]

    @app.post("/sessions")
    def book_session(req: BookingRequest):
        """Book a session."""
        if not store.get_therapist(req.therapist_id):
            raise HTTPException(404, "Therapist not found")
        if not store.get_client(req.client_id):
            raise HTTPException(404, "Client not found")
        result = sim.book(req)
        if not result.success:
            raise HTTPException(409, result.reason)
        return result.session.model_dump(mode="json")

    @app.delete("/sessions/{session_id}")
    def cancel_session(session_id: str, reason: str = "Cancelled"):
        """Cancel a scheduled session."""
        if not store.get_session(session_id):
            raise HTTPException(404, "Session not found")
        result = sim.cancel(session_id, reason)
        if not result.success:
            raise HTTPException(409, result.reason)
        return result.session.model_dump(mode="json")

    @app.post("/sessions/{session_id}/reschedule")
    def reschedule_session(session_id: str, req: RescheduleRequest):
        """Move a scheduled session to a new slot."""
        session = store.get_session(session_id)
        if not session:
            raise HTTPException(404, "Session not found")
        if not store.get_therapist(req.therapist_id):
            raise HTTPException(404, "Therapist not found")
        request = BookingRequest(
            therapist_id=req.therapist_id,
            client_id=session.client_id,
            day=req.day,
            hour=req.hour,
            duration_minutes=req.duration_minutes,
            is_virtual=req.is_virtual,
        )
        result = sim.reschedule(session_id, request)
        if not result.success:
            raise HTTPException(409, result.reason)
        return result.session.model_dump(mode="json")

    # === SUGGESTIONS ===

    @app.get("/suggestions")
    def get_suggestions():
        """Ranked booking suggestions for clients who need a session."""
        return sim.suggest().model_dump(mode="json")

    # === ROSTER ===

    @app.get("/therapists")
    def list_therapists():
        return [t.model_dump(mode="json") for t in store.therapists]

    @app.post("/therapists")
    def add_therapist(therapist: Therapist):
        sim.add_therapist(therapist)
        return {"status": "added", "therapist_id": therapist.id}

    @app.get("/clients")
    def list_clients():
        return [c.model_dump(mode="json") for c in store.clients]

    @app.post("/clients")
    def add_client(client: Client):
        sim.add_client(client)
        return {"status": "added", "client_id": client.id}

    # === TRAINING ===

    @app.post("/trainings")
    def enroll_training(req: TrainingEnrollRequest):
        """Enroll a therapist in a training program."""
        if not store.get_therapist(req.therapist_id):
            raise HTTPException(404, "Therapist not found")
        if req.program_id not in store.state.training_programs:
            raise HTTPException(404, "Training program not found")
        check = sim.enroll_training(req.therapist_id, req.program_id)
        if not check.can_start:
            raise HTTPException(409, check.reason)
        return {
            "status": "enrolled",
            "therapist_id": req.therapist_id,
            "program_id": req.program_id,
            "active_trainings": len(store.state.active_trainings),
        }

    @app.get("/reports")
    def list_reports():
        """Day-boundary reports, oldest first."""
        return [r.model_dump(mode="json") for r in sim.reports]

    return app
