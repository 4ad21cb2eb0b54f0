"""Onboarding wizard API routes."""

import uuid

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_address_suggester, get_clinical, get_settings
from api.schemas import (
    AddressQuery,
    FieldsRequest,
    JumpRequest,
    OnboardingStartRequest,
    OnboardingState,
    TransitionResponse,
)
from triage.collaborators import AddressSuggester
from triage.config import Settings
from triage.models import Patient, PatientLocation
from triage.repositories import ClinicalStore
from triage.wizards import OnboardingWizard

router = APIRouter()

# In-memory wizard sessions; a draft never outlives the process
onboarding_sessions: dict[str, OnboardingWizard] = {}


def _get_session(session_id: str) -> OnboardingWizard:
    wizard = onboarding_sessions.get(session_id)
    if wizard is None:
        raise HTTPException(status_code=404, detail=f"Onboarding session not found: {session_id}")
    return wizard


def _state(session_id: str, wizard: OnboardingWizard) -> OnboardingState:
    return OnboardingState(
        session_id=session_id,
        step=wizard.step,
        path=wizard.path,
        progress=wizard.progress,
        editing=wizard.editing,
        draft=wizard.draft,
        suggestions=wizard.suggestions,
        last_error=wizard.last_error,
    )


@router.post("/onboarding", response_model=OnboardingState, status_code=201)
async def start_onboarding(
    request: OnboardingStartRequest,
    clinical: ClinicalStore = Depends(get_clinical),
    settings: Settings = Depends(get_settings),
) -> OnboardingState:
    """Start a new patient draft, or edit an existing patient."""
    options = {
        "address_min_chars": settings.address_min_chars,
        "max_address_suggestions": settings.max_address_suggestions,
    }
    if request.patient_id:
        wizard = OnboardingWizard.for_patient(clinical.patients, request.patient_id, **options)
    else:
        wizard = OnboardingWizard(clinical.patients, **options)

    session_id = str(uuid.uuid4())[:12]
    onboarding_sessions[session_id] = wizard
    return _state(session_id, wizard)


@router.get("/onboarding/{session_id}", response_model=OnboardingState)
async def get_onboarding(session_id: str) -> OnboardingState:
    return _state(session_id, _get_session(session_id))


@router.patch("/onboarding/{session_id}", response_model=TransitionResponse)
async def update_draft(session_id: str, request: FieldsRequest) -> TransitionResponse:
    return TransitionResponse.from_result(_get_session(session_id).update(**request.fields))


@router.post("/onboarding/{session_id}/next", response_model=TransitionResponse)
async def next_step(session_id: str) -> TransitionResponse:
    return TransitionResponse.from_result(_get_session(session_id).next())


@router.post("/onboarding/{session_id}/back", response_model=TransitionResponse)
async def previous_step(session_id: str) -> TransitionResponse:
    return TransitionResponse.from_result(_get_session(session_id).back())


@router.post("/onboarding/{session_id}/jump", response_model=TransitionResponse)
async def jump(session_id: str, request: JumpRequest) -> TransitionResponse:
    return TransitionResponse.from_result(_get_session(session_id).jump_to(request.step))


@router.post("/onboarding/{session_id}/review", response_model=TransitionResponse)
async def return_to_review(session_id: str) -> TransitionResponse:
    return TransitionResponse.from_result(_get_session(session_id).return_to_review())


@router.post("/onboarding/{session_id}/address-suggestions", response_model=list[PatientLocation])
async def suggest_address(
    session_id: str,
    request: AddressQuery,
    suggester: AddressSuggester = Depends(get_address_suggester),
) -> list[PatientLocation]:
    wizard = _get_session(session_id)
    wizard.address_suggester = suggester
    return await wizard.suggest_address(request.partial)


@router.post("/onboarding/{session_id}/select-address", response_model=TransitionResponse)
async def select_address(session_id: str, candidate: PatientLocation) -> TransitionResponse:
    return TransitionResponse.from_result(_get_session(session_id).select_suggestion(candidate))


@router.post("/onboarding/{session_id}/finalize", response_model=Patient)
async def finalize(session_id: str) -> Patient:
    """Commit the draft; the new or edited patient becomes active."""
    wizard = _get_session(session_id)
    patient = wizard.finalize()
    if patient is None:
        raise HTTPException(status_code=409, detail=wizard.last_error)
    del onboarding_sessions[session_id]
    return patient


@router.delete("/onboarding/{session_id}")
async def cancel(session_id: str):
    """Discard the draft without touching the repository."""
    _get_session(session_id).cancel()
    del onboarding_sessions[session_id]
    return {"cancelled": session_id}


def drop_sessions_for_patient(patient_id: str) -> int:
    """Forget edit sessions of a deleted patient. Returns how many were dropped."""
    stale = [sid for sid, wizard in onboarding_sessions.items() if wizard.draft.id == patient_id]
    for session_id in stale:
        del onboarding_sessions[session_id]
    return len(stale)
