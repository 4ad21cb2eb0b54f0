"""Patient and record API schemas."""

from typing import Optional
from pydantic import BaseModel, Field

from triage.models import Language, MedicalRecord, OperatorRole, Patient, Vitals
from triage.models.record import MAX_NOTE_LENGTH


class PatientListResponse(BaseModel):
    """All patients plus the active pointer."""
    patients: list[Patient]
    active_id: Optional[str] = None


class NoteRequest(BaseModel):
    """Manual note for a patient's timeline."""
    content: str = Field(..., max_length=MAX_NOTE_LENGTH)
    operator_role: OperatorRole = OperatorRole.PATIENT
    vitals: Optional[Vitals] = None


class DocumentUpload(BaseModel):
    """Uploaded clinical document."""
    filename: str
    content_type: str
    content_base64: str  # Base64 encoded file content
    operator_role: OperatorRole = OperatorRole.PATIENT


class RecordListResponse(BaseModel):
    patient_id: str
    records: list[MedicalRecord]


class LanguageRequest(BaseModel):
    language: Language


class LanguageResponse(BaseModel):
    language: Language
