"""Symptom assessment API routes."""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from api.deps import get_clinical, get_risk_assessor, get_settings
from triage.collaborators import RiskAssessor
from triage.config import Settings
from triage.models import MedicalRecord, OperatorRole, RiskLevel, TriageResult
from triage.repositories import ClinicalStore
from triage.services import AssistSession

router = APIRouter()


class AssistRequest(BaseModel):
    """Narrative to assess for the active patient."""
    narrative: str
    save: bool = False
    operator_role: OperatorRole = OperatorRole.PATIENT


class AssistResponse(BaseModel):
    result: TriageResult
    record: Optional[MedicalRecord] = None
    emergency_script: Optional[str] = None


@router.post("/assist", response_model=AssistResponse)
async def assess_symptoms(
    request: AssistRequest,
    clinical: ClinicalStore = Depends(get_clinical),
    assessor: RiskAssessor = Depends(get_risk_assessor),
    settings: Settings = Depends(get_settings),
) -> AssistResponse:
    """
    Assess symptoms for the active patient, optionally saving the summary
    to the timeline.
    """
    if clinical.active_patient() is None:
        raise HTTPException(status_code=409, detail="Select a patient first")
    if not request.narrative.strip():
        raise HTTPException(status_code=422, detail="Describe the symptoms first")

    session = AssistSession(clinical, assessor, history_limit=settings.recent_history_limit)
    result = await session.run(request.narrative)
    if result is None:
        raise HTTPException(status_code=503, detail=session.last_error)

    record = session.save_summary(request.operator_role) if request.save else None
    script = session.emergency_script() if result.risk_level == RiskLevel.HIGH else None
    return AssistResponse(result=result, record=record, emergency_script=script)
