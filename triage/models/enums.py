"""
Triage Assist - Enumerations

Centralized enum definitions shared by models, repositories and wizards.
"""

from enum import Enum, IntEnum


class Sex(str, Enum):
    """Patient sex as captured by the onboarding wizard."""

    FEMALE = "Female"
    MALE = "Male"
    INTERSEX = "Intersex / Differences of Sex Development"


class BloodType(str, Enum):
    """ABO/Rh blood group."""

    A_POS = "A+"
    A_NEG = "A-"
    B_POS = "B+"
    B_NEG = "B-"
    O_POS = "O+"
    O_NEG = "O-"
    AB_POS = "AB+"
    AB_NEG = "AB-"
    UNKNOWN = "Unknown"


class OperatorRole(str, Enum):
    """Who is operating the device when a record is written."""

    PATIENT = "Patient"
    CAREGIVER = "Caregiver"
    CLINICIAN = "Clinician"


class RecordSource(str, Enum):
    """How a medical record entered the timeline."""

    MANUAL = "manual"
    AI_SUMMARY = "ai_summary"
    ATTACHMENT = "attachment"
    SCREENING = "screening"


class Language(str, Enum):
    """UI language preference."""

    EN = "en"
    PT = "pt"


class RiskLevel(str, Enum):
    """Symptom triage risk levels returned by the RiskAssessor."""

    LOW = "LOW RISK"
    MODERATE = "MODERATE RISK"
    HIGH = "HIGH RISK / EMERGENCY"

    @classmethod
    def from_text(cls, text: str) -> "RiskLevel":
        """Map free-text assessor output onto a level, erring high."""
        upper = (text or "").upper()
        if "HIGH" in upper or "EMERGENCY" in upper or "RED" in upper:
            return cls.HIGH
        if "LOW" in upper or "GREEN" in upper:
            return cls.LOW
        return cls.MODERATE


class EndemicRiskTier(str, Enum):
    """Categorization produced by the endemic screening questionnaire."""

    SEVERE = "Severe Endemic Disease Suspected"
    NON_SEVERE = "Non-severe Disease Suspected"
    RESPIRATORY = "Respiratory"
    DIARRHEAL = "Diarrheal"
    OTHER = "Other"

    @property
    def severity(self) -> int:
        """Higher is more severe."""
        return _TIER_SEVERITY[self]

    @classmethod
    def most_severe(cls) -> "EndemicRiskTier":
        return max(cls, key=lambda tier: tier.severity)

    @classmethod
    def from_text(cls, text: str) -> "EndemicRiskTier":
        """Normalize free-text assessor output onto a tier."""
        lower = (text or "").lower().replace("_", "-")
        if "non-severe" in lower or "non severe" in lower or "nonsevere" in lower:
            return cls.NON_SEVERE
        if "severe" in lower or "critical" in lower or "emergency" in lower:
            return cls.SEVERE
        if "respirat" in lower:
            return cls.RESPIRATORY
        if "diarrh" in lower:
            return cls.DIARRHEAL
        return cls.OTHER


_TIER_SEVERITY = {
    EndemicRiskTier.OTHER: 0,
    EndemicRiskTier.DIARRHEAL: 1,
    EndemicRiskTier.RESPIRATORY: 1,
    EndemicRiskTier.NON_SEVERE: 2,
    EndemicRiskTier.SEVERE: 3,
}


class FeverType(str, Enum):
    """Fever pattern reported in the screening questionnaire."""

    CONTINUOUS = "continuous"
    INTERMITTENT = "intermittent"
    NONE = "none"


class OnboardingStep(str, Enum):
    """Steps of the patient onboarding wizard, in order."""

    IDENTITY = "identity"
    EMERGENCY_CONTACT = "emergency_contact"
    PHYSICALS = "physicals"
    CLINICAL_CONTEXT = "clinical_context"
    BACKGROUND = "background"
    ADMIN = "admin"
    LOCATION = "location"
    REVIEW = "review"


class ScreeningPhase(IntEnum):
    """Phases of the endemic screening questionnaire."""

    PRIMARY = 1
    FEVER_SYMPTOMS = 2
    DANGER_SIGNS = 3
    RESULTS = 4
