"""
Triage Assist - Patient models

The finalized Patient owned by the PatientRepository, and the PatientDraft
edited by the onboarding wizard before it is committed.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from triage.models.enums import BloodType, Sex


DEFAULT_COUNTRY = "Moçambique"


class PatientLocation(BaseModel):
    """Structured address of a patient."""

    model_config = ConfigDict(frozen=True)

    street: str = ""
    bairro: str = Field(default="", description="Neighborhood")
    distrito: str = Field(default="", description="Municipal district")
    cidade: str = Field(default="", description="City / province")
    country: str = DEFAULT_COUNTRY

    @property
    def is_empty(self) -> bool:
        return not any((self.street, self.bairro, self.distrito, self.cidade))

    def one_line(self) -> str:
        parts = [self.street, self.bairro, self.distrito, self.cidade, self.country]
        return ", ".join(p for p in parts if p)


class EmergencyContact(BaseModel):
    """Person to call in an emergency."""

    model_config = ConfigDict(frozen=True)

    name: str = ""
    phone: str = ""
    relationship: str = ""


class HospitalRecord(BaseModel):
    """A patient's file number at a given facility."""

    model_config = ConfigDict(frozen=True)

    hospital: str
    record_number: str = ""


class Patient(BaseModel):
    """
    A finalized patient profile.

    Immutable: edits go through PatientDraft and PatientRepository.upsert.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    full_name: str = Field(..., min_length=1)
    age: int = Field(default=0, ge=0, le=150)
    sex: Sex = Sex.FEMALE

    height_cm: Optional[float] = Field(default=None, ge=0, le=300)
    weight_kg: Optional[float] = Field(default=None, ge=0, le=700)
    blood_type: Optional[BloodType] = None

    is_pregnant_or_breastfeeding: Optional[bool] = None
    pregnancy_weeks: Optional[int] = Field(default=None, ge=0, le=45)

    known_conditions: tuple[str, ...] = ()
    allergies: str = ""
    current_medications: str = ""
    medical_history: str = ""

    emergency_contact: EmergencyContact = Field(default_factory=EmergencyContact)
    hospital_records: tuple[HospitalRecord, ...] = ()
    location: PatientLocation = Field(default_factory=PatientLocation)

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator("full_name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("full_name must not be blank")
        return value

    @model_validator(mode="before")
    @classmethod
    def _no_pregnancy_for_male(cls, data):
        if isinstance(data, dict) and data.get("sex") == Sex.MALE:
            data = {**data, "is_pregnant_or_breastfeeding": None, "pregnancy_weeks": None}
        return data

    def age_sex(self) -> "AgeSex":
        return AgeSex(age=self.age, sex=self.sex)

    def profile_text(self) -> str:
        """Plain-text profile used as collaborator context."""
        lines = [
            f"Age: {self.age}",
            f"Sex: {self.sex.value}",
            f"Known Conditions: {', '.join(self.known_conditions) or 'None'}",
        ]
        if self.is_pregnant_or_breastfeeding:
            weeks = f" ({self.pregnancy_weeks} weeks)" if self.pregnancy_weeks else ""
            lines.append(f"Pregnant or breastfeeding{weeks}")
        if self.allergies:
            lines.append(f"Allergies: {self.allergies}")
        if self.current_medications:
            lines.append(f"Current Medications: {self.current_medications}")
        if self.medical_history:
            lines.append(f"History: {self.medical_history}")
        return "\n".join(lines)


class PatientDraft(BaseModel):
    """
    Mutable, partially-filled patient used by the onboarding wizard.

    Never stored by a repository; `to_patient` produces the finalized model.
    """

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    id: Optional[str] = None
    full_name: str = ""
    age: int = Field(default=0, ge=0, le=150)
    sex: Sex = Sex.FEMALE

    height_cm: Optional[float] = Field(default=None, ge=0, le=300)
    weight_kg: Optional[float] = Field(default=None, ge=0, le=700)
    blood_type: Optional[BloodType] = None

    is_pregnant_or_breastfeeding: Optional[bool] = None
    pregnancy_weeks: Optional[int] = Field(default=None, ge=0, le=45)

    known_conditions: list[str] = Field(default_factory=list)
    allergies: str = ""
    current_medications: str = ""
    medical_history: str = ""

    emergency_contact: EmergencyContact = Field(default_factory=EmergencyContact)
    hospital_records: list[HospitalRecord] = Field(default_factory=list)
    location: PatientLocation = Field(default_factory=PatientLocation)

    created_at: Optional[datetime] = None

    @classmethod
    def from_patient(cls, patient: Patient) -> "PatientDraft":
        data = patient.model_dump(exclude={"updated_at"})
        return cls.model_validate(data)

    def to_patient(self, patient_id: str, now: Optional[datetime] = None) -> Patient:
        now = now or datetime.now()
        data = self.model_dump(exclude={"id", "created_at"})
        return Patient(
            id=patient_id,
            created_at=self.created_at or now,
            updated_at=now,
            **data,
        )


class AgeSex(BaseModel):
    """Minimal demographic context sent to collaborators."""

    age: int
    sex: Sex
