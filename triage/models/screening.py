"""
Triage Assist - Endemic screening models

Answers collected by the screening wizard and the assessment attached to
them. The danger-sign override lives here so that any code path building a
final classification goes through the same rule.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from triage.models.enums import EndemicRiskTier, FeverType


DANGER_SIGN_FIELDS: tuple[str, ...] = (
    "confusion",
    "breathing",
    "dark_urine",
    "jaundice",
    "cant_stand",
    "seizures",
    "severe_abdominal_pain",
)

ORAL_INTAKE_FIELDS: tuple[str, ...] = ("eat_normal", "drink_normal")

HOSPITAL_REFERRAL = "Referral to Hospital"


class ScreeningAnswers(BaseModel):
    """Full answer set of the endemic screening questionnaire."""

    # Phase 1: epidemiological
    travel: bool = False
    travel_where: str = ""
    exposure: bool = False
    close_contact: bool = False
    chills: bool = False

    # Phase 2: fever and symptoms
    fever_now: bool = False
    fever_temp: Optional[float] = Field(default=None, ge=30, le=45)
    fever_days: Optional[int] = Field(default=None, ge=0, le=365)
    fever_type: FeverType = FeverType.NONE
    headache: bool = False
    muscle_aches: bool = False
    fatigue: bool = False
    vomiting: bool = False
    diarrhea: bool = False
    abdominal_pain: bool = False

    # Phase 3: oral intake and danger signs
    eat_normal: bool = True
    drink_normal: bool = True
    confusion: bool = False
    breathing: bool = False
    dark_urine: bool = False
    jaundice: bool = False
    cant_stand: bool = False
    seizures: bool = False
    severe_abdominal_pain: bool = False

    @field_validator("fever_temp", "fever_days", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def danger_signs(self) -> list[str]:
        return [name for name in DANGER_SIGN_FIELDS if getattr(self, name)]

    @property
    def has_danger_signs(self) -> bool:
        return bool(self.danger_signs)

    def relevant(self) -> "ScreeningAnswers":
        """
        Copy with gated sub-fields blanked when their gate is off.

        travel_where only matters if travel is true; fever details only
        if fever_now is true.
        """
        update: dict = {}
        if not self.travel:
            update["travel_where"] = ""
        if not self.fever_now:
            update.update(fever_temp=None, fever_days=None, fever_type=FeverType.NONE)
        return self.model_copy(update=update)

    def as_prompt(self) -> str:
        """Render the answers the way the screening protocol lists them."""
        a = self.relevant()
        travel = f"{a.travel} ({a.travel_where})" if a.travel_where else f"{a.travel}"
        oral = (
            f"{'Normal' if a.eat_normal else 'Impaired'}/"
            f"{'Normal' if a.drink_normal else 'Impaired'}"
        )
        return (
            f"1. Epidemiological: Travel={travel}, Exposure={a.exposure}, "
            f"Contact={a.close_contact}, Chills={a.chills}\n"
            f"2. Fever: Current={a.fever_now}, Temp={a.fever_temp or ''}, "
            f"Duration={a.fever_days or ''}, Type={a.fever_type.value}\n"
            f"3. Symptoms: Headache={a.headache}, Muscle={a.muscle_aches}, "
            f"Fatigue={a.fatigue}, Vomiting={a.vomiting}, Diarrhea={a.diarrhea}, "
            f"Pain={a.abdominal_pain}\n"
            f"4. Danger Signs: Confusion={a.confusion}, Respiratory={a.breathing}, "
            f"Dark Urine={a.dark_urine}, Jaundice={a.jaundice}, "
            f"Prostration={a.cant_stand}, Seizures={a.seizures}, "
            f"Severe Pain={a.severe_abdominal_pain}, Oral Intake={oral}"
        )


class EndemicAssessment(BaseModel):
    """Raw answer of the EndemicAssessor collaborator."""

    risk_level: str
    recommendation: str = ""
    summary: str = ""


class ScreeningResult(BaseModel):
    """Final classification recorded for a screening."""

    tier: EndemicRiskTier
    assessor_risk_level: str = Field(..., description="Classification as returned by the assessor")
    recommendation: str = ""
    summary: str = ""
    danger_override: bool = False
    recommendation_override: bool = False
    assessor_recommendation: str = ""
    danger_signs: list[str] = Field(default_factory=list)


def apply_danger_override(
    answers: ScreeningAnswers,
    assessment: EndemicAssessment,
) -> ScreeningResult:
    """
    Build the final classification, forcing the most severe tier when any
    danger sign is present regardless of the assessor's answer.
    """
    tier = EndemicRiskTier.from_text(assessment.risk_level)
    recommendation = assessment.recommendation
    signs = answers.danger_signs
    override = False
    referral_forced = False

    if signs:
        most_severe = EndemicRiskTier.most_severe()
        override = tier != most_severe
        referral_forced = HOSPITAL_REFERRAL.lower() not in recommendation.lower()
        tier = most_severe
        recommendation = HOSPITAL_REFERRAL

    return ScreeningResult(
        tier=tier,
        assessor_risk_level=assessment.risk_level,
        recommendation=recommendation,
        summary=assessment.summary,
        danger_override=override,
        recommendation_override=referral_forced,
        assessor_recommendation=assessment.recommendation,
        danger_signs=signs,
    )
