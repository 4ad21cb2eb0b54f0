"""Patient API routes."""

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_clinical
from api.routes import onboarding, screening
from api.schemas import PatientListResponse
from triage.models import Patient
from triage.repositories import ClinicalStore

router = APIRouter()


@router.get("/patients", response_model=PatientListResponse)
async def list_patients(clinical: ClinicalStore = Depends(get_clinical)) -> PatientListResponse:
    """All patients in insertion order, with the active pointer."""
    return PatientListResponse(
        patients=clinical.patients.list(),
        active_id=clinical.patients.active_id,
    )


@router.get("/patients/active", response_model=Patient)
async def get_active_patient(clinical: ClinicalStore = Depends(get_clinical)) -> Patient:
    patient = clinical.active_patient()
    if patient is None:
        raise HTTPException(status_code=404, detail="No active patient")
    return patient


@router.get("/patients/{patient_id}", response_model=Patient)
async def get_patient(patient_id: str, clinical: ClinicalStore = Depends(get_clinical)) -> Patient:
    return clinical.patients.require(patient_id)


@router.delete("/patients/{patient_id}")
async def delete_patient(patient_id: str, clinical: ClinicalStore = Depends(get_clinical)):
    """Delete a patient and, by cascade, all of their records."""
    if not clinical.patients.remove(patient_id):
        raise HTTPException(status_code=404, detail=f"Patient not found: {patient_id}")
    screening.drop_sessions_for_patient(patient_id)
    onboarding.drop_sessions_for_patient(patient_id)
    return {"deleted": patient_id, "active_id": clinical.patients.active_id}


@router.post("/patients/{patient_id}/activate", response_model=PatientListResponse)
async def activate_patient(
    patient_id: str,
    clinical: ClinicalStore = Depends(get_clinical),
) -> PatientListResponse:
    if not clinical.patients.switch_active(patient_id):
        raise HTTPException(status_code=404, detail=f"Patient not found: {patient_id}")
    return PatientListResponse(
        patients=clinical.patients.list(),
        active_id=clinical.patients.active_id,
    )
