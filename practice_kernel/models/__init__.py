"""Practice Kernel data models."""

from practice_kernel.models.client import (
    FREQUENCY_DAYS,
    Client,
    ClientConfig,
    ClientStatus,
    ConditionCategory,
    DayAvailability,
    FollowUpInfo,
    SessionFrequency,
    TimePreference,
)
from practice_kernel.models.day import (
    DayBoundaryReport,
    DroppedClient,
    SatisfactionChange,
    WaitingListResult,
)
from practice_kernel.models.office import (
    BookingCheck,
    Building,
    RoomAvailability,
    UnlockCheck,
    UpgradeCheck,
)
from practice_kernel.models.outcome import (
    SessionCancelResult,
    SessionCompleteResult,
    SessionStartResult,
)
from practice_kernel.models.practice import PracticeState, SimulationConfig
from practice_kernel.models.scheduling import (
    AvailableSlot,
    BookingRequest,
    BookingResult,
    PlannedSlot,
    RecurringBookingResult,
    RecurringFailure,
    RecurringPlan,
    ScheduleConfig,
    ValidationResult,
)
from practice_kernel.models.session import (
    ALLOWED_DURATIONS,
    DecisionChoice,
    ProgressType,
    QualityModifier,
    Session,
    SessionConfig,
    SessionStatus,
)
from practice_kernel.models.suggestion import (
    BookingSuggestion,
    EnergyForecast,
    MatchBreakdown,
    MatchQuality,
    MatchScore,
    SuggestionConfig,
    SuggestionReason,
    SuggestionResult,
    SuggestionUrgency,
    UnschedulableClient,
)
from practice_kernel.models.therapist import (
    EnergyConfig,
    FacilityEffects,
    IdleRecoveryResult,
    Modality,
    RestResult,
    Therapist,
    TherapistStatus,
    TherapistTraits,
    WorkSchedule,
)
from practice_kernel.models.time import AdvanceResult, ClockConfig, SimTime
from practice_kernel.models.training import (
    ActiveTraining,
    ClinicBonus,
    ClinicBonusType,
    CompletedTraining,
    StartTrainingCheck,
    TrainingConfig,
    TrainingGrants,
    TrainingPrerequisites,
    TrainingProgram,
    TrainingProgressResult,
)

__all__ = [
    "ALLOWED_DURATIONS",
    "ActiveTraining",
    "AdvanceResult",
    "AvailableSlot",
    "BookingCheck",
    "BookingRequest",
    "BookingResult",
    "BookingSuggestion",
    "Building",
    "Client",
    "ClientConfig",
    "ClientStatus",
    "ClinicBonus",
    "ClinicBonusType",
    "ClockConfig",
    "CompletedTraining",
    "ConditionCategory",
    "DayAvailability",
    "DayBoundaryReport",
    "DecisionChoice",
    "DroppedClient",
    "EnergyConfig",
    "EnergyForecast",
    "FREQUENCY_DAYS",
    "FacilityEffects",
    "FollowUpInfo",
    "IdleRecoveryResult",
    "MatchBreakdown",
    "MatchQuality",
    "MatchScore",
    "Modality",
    "PlannedSlot",
    "PracticeState",
    "ProgressType",
    "QualityModifier",
    "RecurringBookingResult",
    "RecurringFailure",
    "RecurringPlan",
    "RestResult",
    "RoomAvailability",
    "SatisfactionChange",
    "ScheduleConfig",
    "Session",
    "SessionCancelResult",
    "SessionCompleteResult",
    "SessionConfig",
    "SessionFrequency",
    "SessionStartResult",
    "SessionStatus",
    "SimTime",
    "SimulationConfig",
    "StartTrainingCheck",
    "SuggestionConfig",
    "SuggestionReason",
    "SuggestionResult",
    "SuggestionUrgency",
    "Therapist",
    "TherapistStatus",
    "TherapistTraits",
    "TimePreference",
    "TrainingConfig",
    "TrainingGrants",
    "TrainingPrerequisites",
    "TrainingProgram",
    "TrainingProgressResult",
    "UnlockCheck",
    "UnschedulableClient",
    "UpgradeCheck",
    "ValidationResult",
    "WaitingListResult",
    "WorkSchedule",
]
