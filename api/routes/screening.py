"""Endemic screening API routes."""

import uuid

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_clinical, get_endemic_assessor
from api.schemas import FieldsRequest, ScreeningStartRequest, ScreeningState, TransitionResponse
from triage.collaborators import EndemicAssessor
from triage.models import MedicalRecord
from triage.repositories import ClinicalStore
from triage.wizards import ScreeningWizard

router = APIRouter()

# In-memory screening sessions
screening_sessions: dict[str, ScreeningWizard] = {}


def _get_session(session_id: str) -> ScreeningWizard:
    wizard = screening_sessions.get(session_id)
    if wizard is None:
        raise HTTPException(status_code=404, detail=f"Screening session not found: {session_id}")
    return wizard


def _state(session_id: str, wizard: ScreeningWizard) -> ScreeningState:
    return ScreeningState(
        session_id=session_id,
        patient_id=wizard.patient.id,
        phase=wizard.phase,
        progress=wizard.progress,
        answers=wizard.answers,
        danger_signs_present=wizard.danger_signs_present,
        result=wizard.result,
        last_error=wizard.last_error,
    )


@router.post("/screening", response_model=ScreeningState, status_code=201)
async def start_screening(
    request: ScreeningStartRequest,
    clinical: ClinicalStore = Depends(get_clinical),
    assessor: EndemicAssessor = Depends(get_endemic_assessor),
) -> ScreeningState:
    """Start a questionnaire for the given or the active patient."""
    if request.patient_id:
        patient = clinical.patients.require(request.patient_id)
    else:
        patient = clinical.active_patient()
        if patient is None:
            raise HTTPException(status_code=409, detail="Select a patient first")

    wizard = ScreeningWizard(clinical.records, assessor, patient)
    session_id = str(uuid.uuid4())[:12]
    screening_sessions[session_id] = wizard
    return _state(session_id, wizard)


@router.get("/screening/{session_id}", response_model=ScreeningState)
async def get_screening(session_id: str) -> ScreeningState:
    return _state(session_id, _get_session(session_id))


@router.patch("/screening/{session_id}", response_model=TransitionResponse)
async def update_answers(session_id: str, request: FieldsRequest) -> TransitionResponse:
    return TransitionResponse.from_result(_get_session(session_id).update(**request.fields))


@router.post("/screening/{session_id}/next", response_model=TransitionResponse)
async def next_phase(session_id: str) -> TransitionResponse:
    return TransitionResponse.from_result(_get_session(session_id).next())


@router.post("/screening/{session_id}/back", response_model=TransitionResponse)
async def previous_phase(session_id: str) -> TransitionResponse:
    return TransitionResponse.from_result(_get_session(session_id).back())


@router.post("/screening/{session_id}/analyze", response_model=ScreeningState)
async def analyze(session_id: str) -> ScreeningState:
    """
    Classify the answers. A failed assessment keeps the session in the
    danger-signs phase with last_error set; post again to retry.
    """
    wizard = _get_session(session_id)
    await wizard.analyze()
    return _state(session_id, wizard)


@router.post("/screening/{session_id}/commit", response_model=MedicalRecord, status_code=201)
async def commit(session_id: str) -> MedicalRecord:
    wizard = _get_session(session_id)
    record = wizard.commit()
    if record is None:
        raise HTTPException(status_code=409, detail=wizard.last_error or "Analyze the screening first")
    del screening_sessions[session_id]
    return record


@router.post("/screening/{session_id}/reset", response_model=TransitionResponse)
async def reset(session_id: str) -> TransitionResponse:
    return TransitionResponse.from_result(_get_session(session_id).reset())


@router.delete("/screening/{session_id}")
async def discard(session_id: str):
    """Drop the session; nothing is persisted."""
    _get_session(session_id).reset()
    del screening_sessions[session_id]
    return {"discarded": session_id}


def drop_sessions_for_patient(patient_id: str) -> int:
    """Forget screenings of a deleted patient. Returns how many were dropped."""
    stale = [sid for sid, wizard in screening_sessions.items() if wizard.patient.id == patient_id]
    for session_id in stale:
        del screening_sessions[session_id]
    return len(stale)
