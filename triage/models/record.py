"""
Triage Assist - Medical record models

Records are immutable once created. Corrections are new records.
"""

import base64
import uuid
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from triage.models.enums import OperatorRole, RecordSource


MAX_NOTE_LENGTH = 2000


def new_record_id(prefix: str = "rec") -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


class Vitals(BaseModel):
    """Optional vital signs. Blank inputs are treated as missing."""

    model_config = ConfigDict(frozen=True)

    systolic: Optional[int] = Field(default=None, ge=0, le=400)
    diastolic: Optional[int] = Field(default=None, ge=0, le=300)
    heart_rate: Optional[int] = Field(default=None, ge=0, le=400)
    spo2: Optional[int] = Field(default=None, ge=0, le=100)
    temperature: Optional[float] = Field(default=None, ge=20, le=50)

    @field_validator("*", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in type(self).model_fields)

    def summary(self) -> str:
        parts = []
        if self.systolic is not None or self.diastolic is not None:
            parts.append(f"BP {self.systolic or '?'}/{self.diastolic or '?'}")
        if self.heart_rate is not None:
            parts.append(f"HR {self.heart_rate}")
        if self.spo2 is not None:
            parts.append(f"SpO2 {self.spo2}%")
        if self.temperature is not None:
            parts.append(f"T {self.temperature}°C")
        return ", ".join(parts)


class Attachment(BaseModel):
    """A file attached to a record. The payload is opaque to the core."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    name: str
    mime_type: str
    content_base64: str = ""

    @classmethod
    def from_bytes(cls, name: str, mime_type: str, data: bytes) -> "Attachment":
        return cls(
            name=name,
            mime_type=mime_type,
            content_base64=base64.b64encode(data).decode("ascii"),
        )

    @property
    def content(self) -> bytes:
        return base64.b64decode(self.content_base64)


class MedicalRecord(BaseModel):
    """A single append-only clinical timeline entry."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_record_id)
    patient_id: str = Field(..., min_length=1)
    operator_role: OperatorRole = OperatorRole.PATIENT
    source: RecordSource = RecordSource.MANUAL
    created_at: datetime = Field(default_factory=datetime.now)
    document_date: Optional[datetime] = None
    content: str = ""
    vitals: Optional[Vitals] = None
    attachments: tuple[Attachment, ...] = ()

    @field_validator("vitals", mode="after")
    @classmethod
    def _drop_empty_vitals(cls, value: Optional[Vitals]) -> Optional[Vitals]:
        if value is not None and value.is_empty:
            return None
        return value

    @model_validator(mode="after")
    def _unique_attachment_ids(self) -> "MedicalRecord":
        ids = [a.id for a in self.attachments]
        if len(ids) != len(set(ids)):
            raise ValueError("attachment ids must be unique within a record")
        return self

    @property
    def sort_date(self) -> datetime:
        return self.document_date or self.created_at
