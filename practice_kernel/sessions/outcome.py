"""
Session Outcome Engine — quality, progress and rewards for a session's lifecycle.

Behavioral Contract:
- Never mutates its inputs; every operation returns updated copies
- Quality accumulates from signed, source-tagged modifiers clamped to [0, 1]
- Completion consumes the accumulated quality, it does not recompute it
- Level is derived from total XP: level = floor(sqrt(xp / 10)) + 1
"""

import logging
import math
import random
from typing import List, Optional, Tuple

from practice_kernel.models.client import Client, ClientStatus, ConditionCategory
from practice_kernel.models.outcome import (
    SessionCancelResult,
    SessionCompleteResult,
    SessionStartResult,
)
from practice_kernel.models.session import (
    DecisionChoice,
    ProgressType,
    QualityModifier,
    Session,
    SessionConfig,
    SessionStatus,
)
from practice_kernel.models.therapist import EnergyConfig, Therapist, TherapistStatus
from practice_kernel.models.time import SimTime
from practice_kernel.numeric import round_half_up

logger = logging.getLogger(__name__)

SPECIALIZATION_MATCHES = {
    ConditionCategory.ANXIETY: ["anxiety_disorders", "stress_management"],
    ConditionCategory.DEPRESSION: ["depression", "grief"],
    ConditionCategory.TRAUMA: ["trauma", "ptsd"],
    ConditionCategory.STRESS: ["stress_management"],
    ConditionCategory.RELATIONSHIP: ["couples"],
    ConditionCategory.BEHAVIORAL: ["substance_abuse", "eating_disorders", "ocd"],
}

CRISIS_MARKERS = ("crisis", "trauma")


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class SessionOutcomeEngine:
    """
    Starts, advances, completes and cancels sessions.

    Randomness (breakthroughs, plateaus, regressions) comes from the
    injected Random so runs are reproducible.
    """

    def __init__(
        self,
        config: Optional[SessionConfig] = None,
        energy_config: Optional[EnergyConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.config = config or SessionConfig()
        self.energy_config = energy_config or EnergyConfig()
        self.random = rng or random.Random()

    # --- Start ---

    def initial_quality_modifiers(
        self, session: Session, therapist: Therapist, client: Client
    ) -> List[QualityModifier]:
        modifiers = [
            QualityModifier(
                source="therapist_skill",
                value=therapist.base_skill / 100 * 0.3,
                description=f"Therapist skill ({therapist.base_skill})",
            ),
        ]

        energy_ratio = therapist.energy / therapist.max_energy
        modifiers.append(QualityModifier(
            source="therapist_energy",
            value=(energy_ratio - 0.5) * 0.2,
            description="Well-rested therapist" if energy_ratio >= 0.5 else "Tired therapist",
        ))
        modifiers.append(QualityModifier(
            source="client_engagement",
            value=client.engagement / 100 * 0.15,
            description=f"Client engagement ({client.engagement}%)",
        ))

        matches = SPECIALIZATION_MATCHES.get(client.condition_category, [])
        if any(s in matches for s in therapist.specializations):
            modifiers.append(QualityModifier(
                source="specialization_match",
                value=0.1,
                description="Therapist specialization matches condition",
            ))
        if client.required_certification and client.required_certification in therapist.certifications:
            modifiers.append(QualityModifier(
                source="certification_match",
                value=0.05,
                description="Required certification held",
            ))
        if session.is_virtual and not client.prefers_virtual:
            modifiers.append(QualityModifier(
                source="virtual_mismatch",
                value=-0.05,
                description="Client prefers in-person sessions",
            ))
        if client.severity >= 7:
            modifiers.append(QualityModifier(
                source="high_severity",
                value=-0.05 * ((client.severity - 6) / 4),
                description=f"High severity case ({client.severity}/10)",
            ))
        return modifiers

    def start_session(self, session: Session, therapist: Therapist, client: Client) -> SessionStartResult:
        modifiers = self.initial_quality_modifiers(session, therapist, client)
        quality = _clamp(self.config.base_quality + sum(m.value for m in modifiers))
        return SessionStartResult(
            session=session.model_copy(update={
                "status": SessionStatus.IN_PROGRESS,
                "progress": 0.0,
                "quality": quality,
                "quality_modifiers": modifiers,
            }),
            therapist=therapist.model_copy(update={"status": TherapistStatus.IN_SESSION}),
            client=client.model_copy(update={
                "status": ClientStatus.IN_TREATMENT,
                "assigned_therapist_id": client.assigned_therapist_id or therapist.id,
            }),
        )

    # --- During ---

    def progress_session(self, session: Session, minutes: int) -> Session:
        """
        Advance by whole minutes. Progress is kept as elapsed/duration so
        it lands on exactly 1.0 at the end, however the minutes are split.
        """
        if session.status != SessionStatus.IN_PROGRESS or minutes <= 0:
            return session
        elapsed = round(session.progress * session.duration_minutes) + minutes
        elapsed = min(elapsed, session.duration_minutes)
        return session.model_copy(update={"progress": elapsed / session.duration_minutes})

    @staticmethod
    def is_complete(session: Session) -> bool:
        return session.status == SessionStatus.IN_PROGRESS and session.progress >= 1

    def apply_quality_modifier(self, session: Session, modifier: QualityModifier) -> Session:
        return session.model_copy(update={
            "quality": _clamp(session.quality + modifier.value),
            "quality_modifiers": session.quality_modifiers + [modifier],
        })

    def apply_decision(
        self, session: Session, therapist: Therapist, choice: DecisionChoice
    ) -> Tuple[Session, Therapist]:
        """Record an in-session decision and apply its quality and energy effects."""
        updated = session.model_copy(update={"decisions_made": session.decisions_made + [choice]})
        if choice.quality:
            updated = self.apply_quality_modifier(updated, QualityModifier(
                source=f"decision_{choice.event_id}",
                value=choice.quality,
                description=choice.text[:50],
            ))
        if choice.energy:
            therapist = therapist.model_copy(update={
                "energy": int(_clamp(therapist.energy + choice.energy, 0, therapist.max_energy)),
            })
        return updated, therapist

    # --- Completion ---

    def calculate_treatment_progress(
        self, quality: float, client_satisfaction: int, had_crisis_decision: bool
    ) -> Tuple[float, ProgressType, str]:
        """Non-linear progress: regression after crises, breakthroughs, plateaus."""
        cfg = self.config
        base = cfg.progress_per_quality * quality

        if had_crisis_decision and self.random.random() < cfg.regression_chance:
            return (
                max(0.0, base - cfg.regression_amount),
                ProgressType.REGRESSION,
                "Processing difficult material caused a temporary setback",
            )
        if quality >= cfg.breakthrough_quality_threshold and self.random.random() < cfg.breakthrough_chance:
            return (
                base * cfg.breakthrough_multiplier,
                ProgressType.BREAKTHROUGH,
                "A major breakthrough! Client made exceptional progress",
            )
        if (
            client_satisfaction < cfg.plateau_satisfaction_threshold
            and self.random.random() < cfg.plateau_chance
        ):
            return (
                base * cfg.plateau_multiplier,
                ProgressType.PLATEAU,
                "Client is struggling to engage - progress has plateaued",
            )
        return base, ProgressType.NORMAL, "Steady progress in treatment"

    def calculate_xp(self, session: Session, quality: float) -> int:
        multiplier = (
            self.config.high_quality_xp_multiplier
            if quality >= self.config.high_quality_threshold
            else 1
        )
        return round_half_up(
            self.config.base_xp * (session.duration_minutes / 50) * multiplier * (1 + quality)
        )

    def complete_session(
        self,
        session: Session,
        therapist: Therapist,
        client: Client,
        completed_at: SimTime,
        insurance_multiplier: float = 1.0,
    ) -> SessionCompleteResult:
        quality = _clamp(session.quality)
        xp_gained = self.calculate_xp(session, quality)
        satisfaction_change = round_half_up(
            self.config.base_satisfaction_change * (quality * 2 - 0.5)
        )
        had_crisis = any(
            marker in d.event_id for d in session.decisions_made for marker in CRISIS_MARKERS
        )
        progress_gained, progress_type, description = self.calculate_treatment_progress(
            quality, client.satisfaction, had_crisis
        )

        new_xp = therapist.xp + xp_gained
        new_level = max(therapist.level, self.calculate_level(new_xp))
        new_energy = max(0, therapist.energy - session.energy_cost)
        burned_out = new_energy <= self.energy_config.forced_break_threshold
        if burned_out:
            status = TherapistStatus.BURNED_OUT
        elif therapist.status == TherapistStatus.IN_SESSION:
            status = TherapistStatus.AVAILABLE
        else:
            status = therapist.status

        treatment_progress = min(1.0, client.treatment_progress + progress_gained)
        sessions_completed = client.sessions_completed + 1
        finished = sessions_completed >= client.sessions_required or treatment_progress >= 1

        payment = session.payment
        if session.is_insurance:
            payment = round_half_up(payment * insurance_multiplier)

        if burned_out:
            logger.info("Therapist %s burned out after session %s", therapist.id, session.id)

        return SessionCompleteResult(
            session=session.model_copy(update={
                "status": SessionStatus.COMPLETED,
                "progress": 1.0,
                "quality": quality,
                "xp_gained": xp_gained,
                "completed_at": completed_at,
            }),
            therapist=therapist.model_copy(update={
                "energy": new_energy,
                "xp": new_xp,
                "level": new_level,
                "status": status,
                "burnout_recovery_progress": 0 if burned_out else therapist.burnout_recovery_progress,
            }),
            client=client.model_copy(update={
                "satisfaction": int(_clamp(client.satisfaction + satisfaction_change, 0, 100)),
                "treatment_progress": treatment_progress,
                "sessions_completed": sessions_completed,
                "status": ClientStatus.COMPLETED if finished else ClientStatus.IN_TREATMENT,
            }),
            xp_gained=xp_gained,
            leveled_up=new_level > therapist.level,
            new_level=new_level,
            satisfaction_change=satisfaction_change,
            treatment_progress_gained=progress_gained,
            progress_type=progress_type,
            progress_description=description,
            payment_amount=payment,
            burned_out=burned_out,
        )

    def cancel_session(
        self, session: Session, therapist: Therapist, client: Client, reason: str = "Cancelled"
    ) -> SessionCancelResult:
        """The therapist is released only when this session is the one they are in."""
        releases = (
            session.status == SessionStatus.IN_PROGRESS
            and therapist.status == TherapistStatus.IN_SESSION
        )
        return SessionCancelResult(
            session=session.model_copy(update={
                "status": SessionStatus.CANCELLED,
                "quality_modifiers": session.quality_modifiers + [
                    QualityModifier(source="cancelled", value=0, description=reason)
                ],
            }),
            therapist=therapist.model_copy(update={
                "status": TherapistStatus.AVAILABLE if releases else therapist.status,
            }),
            client=client.model_copy(update={
                "satisfaction": max(
                    0, client.satisfaction - self.config.cancellation_satisfaction_penalty
                ),
            }),
        )

    # --- Levels ---

    def calculate_level(self, xp: int) -> int:
        """
        Level 1: 0 XP, level 2: 10 XP, level 3: 40 XP, level 4: 90 XP.

        Capped at max_level, so xp_for_level(n) maps back to n only up to
        the cap; any XP past the cap threshold stays at max_level.
        """
        return min(self.config.max_level, math.isqrt(max(0, xp) // 10) + 1)

    @staticmethod
    def xp_for_level(level: int) -> int:
        return (level - 1) * (level - 1) * 10
