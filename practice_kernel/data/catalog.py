"""
Static lookup tables: buildings and training programs.

The core only reads these. Callers may pass their own catalogs instead.
"""

from typing import Dict, List, Optional

from practice_kernel.models.office import Building
from practice_kernel.models.training import (
    ClinicBonus,
    ClinicBonusType,
    TrainingGrants,
    TrainingPrerequisites,
    TrainingProgram,
)

BUILDINGS: Dict[str, Building] = {
    b.id: b
    for b in [
        Building(id="starter_suite", name="Starter Suite", tier=1, rooms=1,
                 monthly_rent=1500, upgrade_cost=0, required_level=1),
        Building(id="small_office", name="Small Office", tier=1, rooms=2,
                 monthly_rent=2500, upgrade_cost=5000, required_level=2),
        Building(id="professional_suite", name="Professional Suite", tier=2, rooms=3,
                 monthly_rent=4000, upgrade_cost=15000, required_level=3),
        Building(id="medical_building", name="Medical Building Office", tier=2, rooms=4,
                 monthly_rent=6000, upgrade_cost=30000, required_level=4),
        Building(id="premium_clinic", name="Premium Clinic", tier=3, rooms=6,
                 monthly_rent=10000, upgrade_cost=75000, required_level=5),
    ]
}

DEFAULT_BUILDING_ID = "starter_suite"


def _program(
    id: str,
    name: str,
    cost: int,
    hours: int,
    track: str = "clinical",
    min_skill: Optional[int] = None,
    requires: Optional[List[str]] = None,
    certification: Optional[str] = None,
    skill_bonus: int = 0,
    bonus: Optional[ClinicBonus] = None,
) -> TrainingProgram:
    return TrainingProgram(
        id=id,
        name=name,
        track=track,
        cost=cost,
        duration_hours=hours,
        prerequisites=TrainingPrerequisites(min_skill=min_skill, certifications=requires or []),
        grants=TrainingGrants(
            skill_bonus=skill_bonus,
            certification=certification,
            clinic_bonus=bonus,
        ),
    )


def _reputation(value: float) -> ClinicBonus:
    return ClinicBonus(type=ClinicBonusType.REPUTATION_BONUS, value=value)


TRAINING_PROGRAMS: Dict[str, TrainingProgram] = {
    p.id: p
    for p in [
        # Clinical track: certifications
        _program("trauma_training", "Trauma-Informed Care Certification", 2500, 40,
                 min_skill=40, certification="trauma_certified", bonus=_reputation(3)),
        _program("couples_training", "Couples & Family Therapy Certification", 2000, 32,
                 min_skill=35, certification="couples_certified", bonus=_reputation(2)),
        _program("children_training", "Child & Adolescent Therapy Certification", 2200, 36,
                 min_skill=40, certification="children_certified", bonus=_reputation(2)),
        _program("substance_training", "Substance Abuse Counseling Certification", 1800, 28,
                 min_skill=35, certification="substance_certified", bonus=_reputation(2)),
        _program("telehealth_training", "Telehealth Certification", 500, 8,
                 certification="telehealth_certified", bonus=_reputation(1)),
        _program("cbt_training", "Cognitive Behavioral Therapy (CBT) Certification", 1500, 24,
                 min_skill=30, certification="cbt_certified", skill_bonus=3,
                 bonus=_reputation(2)),
        _program("dbt_training", "Dialectical Behavior Therapy (DBT) Certification", 2800, 48,
                 min_skill=50, requires=["cbt_certified"], certification="dbt_certified",
                 skill_bonus=5, bonus=_reputation(4)),
        _program("emdr_training", "EMDR Certification", 3000, 50,
                 min_skill=45, requires=["trauma_certified"], certification="emdr_certified",
                 skill_bonus=4, bonus=_reputation(4)),
        _program("supervisor_training", "Clinical Supervisor Certification", 3500, 60,
                 min_skill=70, certification="supervisor_certified", bonus=_reputation(5)),
        # Clinical track: skill only
        _program("clinical_foundations", "Clinical Foundations Workshop", 400, 8, skill_bonus=2),
        _program("advanced_assessment", "Advanced Assessment Techniques", 800, 16,
                 min_skill=40, skill_bonus=4),
        _program("crisis_intervention", "Crisis Intervention Training", 600, 12,
                 min_skill=35, skill_bonus=3),
        # Business track
        _program("practice_management", "Practice Management Essentials", 350, 6,
                 track="business", bonus=_reputation(5)),
        _program("insurance_billing", "Insurance Billing Mastery", 450, 8, track="business",
                 bonus=ClinicBonus(type=ClinicBonusType.INSURANCE_MULTIPLIER, value=0.1)),
        _program("leadership_training", "Clinical Leadership Program", 800, 16, track="business",
                 min_skill=50,
                 bonus=ClinicBonus(type=ClinicBonusType.HIRING_CAPACITY, value=1)),
    ]
}


def get_building(building_id: str) -> Optional[Building]:
    return BUILDINGS.get(building_id)


def get_available_upgrades(current_building_id: str, practice_level: int) -> List[Building]:
    current = BUILDINGS.get(current_building_id)
    if not current:
        return []
    candidates = [
        b for b in BUILDINGS.values()
        if b.required_level <= practice_level
        and (b.tier > current.tier or (b.tier == current.tier and b.rooms > current.rooms))
    ]
    return sorted(candidates, key=lambda b: (b.tier, b.monthly_rent))
