"""Data models for the Triage Assist core."""

from triage.models.assessment import (
    ExtractionResult,
    LLMResponse,
    NextAction,
    OtcOption,
    PossibleCause,
    TriageResult,
)
from triage.models.enums import (
    BloodType,
    EndemicRiskTier,
    FeverType,
    Language,
    OnboardingStep,
    OperatorRole,
    RecordSource,
    RiskLevel,
    ScreeningPhase,
    Sex,
)
from triage.models.patient import (
    AgeSex,
    EmergencyContact,
    HospitalRecord,
    Patient,
    PatientDraft,
    PatientLocation,
)
from triage.models.record import Attachment, MedicalRecord, Vitals
from triage.models.screening import (
    DANGER_SIGN_FIELDS,
    EndemicAssessment,
    ScreeningAnswers,
    ScreeningResult,
    apply_danger_override,
)
from triage.models.wizard import TransitionResult

__all__ = [
    "AgeSex",
    "Attachment",
    "BloodType",
    "DANGER_SIGN_FIELDS",
    "EmergencyContact",
    "EndemicAssessment",
    "EndemicRiskTier",
    "ExtractionResult",
    "FeverType",
    "HospitalRecord",
    "Language",
    "LLMResponse",
    "MedicalRecord",
    "NextAction",
    "OnboardingStep",
    "OperatorRole",
    "OtcOption",
    "Patient",
    "PatientDraft",
    "PatientLocation",
    "PossibleCause",
    "RecordSource",
    "RiskLevel",
    "ScreeningAnswers",
    "ScreeningPhase",
    "ScreeningResult",
    "Sex",
    "TransitionResult",
    "TriageResult",
    "Vitals",
    "apply_danger_override",
]
