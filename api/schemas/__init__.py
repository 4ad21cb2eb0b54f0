"""API schema modules."""

from api.schemas.records import (
    DocumentUpload,
    LanguageRequest,
    LanguageResponse,
    NoteRequest,
    PatientListResponse,
    RecordListResponse,
)
from api.schemas.wizards import (
    AddressQuery,
    FieldsRequest,
    JumpRequest,
    OnboardingStartRequest,
    OnboardingState,
    ScreeningStartRequest,
    ScreeningState,
    TransitionResponse,
)

__all__ = [
    "AddressQuery",
    "DocumentUpload",
    "FieldsRequest",
    "JumpRequest",
    "LanguageRequest",
    "LanguageResponse",
    "NoteRequest",
    "OnboardingStartRequest",
    "OnboardingState",
    "PatientListResponse",
    "RecordListResponse",
    "ScreeningStartRequest",
    "ScreeningState",
    "TransitionResponse",
]
