"""Onboarding and screening session schemas."""

from typing import Any, Optional
from pydantic import BaseModel, Field

from triage.models import (
    OnboardingStep,
    PatientDraft,
    PatientLocation,
    ScreeningAnswers,
    ScreeningPhase,
    ScreeningResult,
    TransitionResult,
)


class TransitionResponse(BaseModel):
    """Outcome of a wizard command."""
    accepted: bool
    state: str
    message: Optional[str] = None
    retryable: bool = False

    @classmethod
    def from_result(cls, result: TransitionResult) -> "TransitionResponse":
        state = result.state
        return cls(
            accepted=result.accepted,
            state=state.name if isinstance(state, ScreeningPhase) else state.value,
            message=result.message,
            retryable=result.retryable,
        )


class OnboardingStartRequest(BaseModel):
    """Start a new draft, or edit an existing patient."""
    patient_id: Optional[str] = None


class OnboardingState(BaseModel):
    session_id: str
    step: OnboardingStep
    path: list[OnboardingStep]
    progress: float
    editing: bool
    draft: PatientDraft
    suggestions: list[PatientLocation] = Field(default_factory=list)
    last_error: Optional[str] = None


class FieldsRequest(BaseModel):
    """Field name -> new value."""
    fields: dict[str, Any]


class JumpRequest(BaseModel):
    step: OnboardingStep


class AddressQuery(BaseModel):
    partial: str


class ScreeningStartRequest(BaseModel):
    """Patient to screen; the active patient if omitted."""
    patient_id: Optional[str] = None


class ScreeningState(BaseModel):
    session_id: str
    patient_id: str
    phase: ScreeningPhase
    progress: float
    answers: ScreeningAnswers
    danger_signs_present: bool
    result: Optional[ScreeningResult] = None
    last_error: Optional[str] = None
