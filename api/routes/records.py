"""Medical record API routes."""

import base64
import binascii

from fastapi import APIRouter, Depends, HTTPException

from api.deps import get_clinical, get_document_extractor
from api.schemas import DocumentUpload, NoteRequest, RecordListResponse
from triage.collaborators import DocumentExtractor
from triage.models import MedicalRecord
from triage.repositories import ClinicalStore
from triage.services import RecordIntake

router = APIRouter()


@router.get("/patients/{patient_id}/records", response_model=RecordListResponse)
async def list_records(
    patient_id: str,
    clinical: ClinicalStore = Depends(get_clinical),
) -> RecordListResponse:
    """Timeline of one patient, newest document date first."""
    clinical.patients.require(patient_id)
    return RecordListResponse(patient_id=patient_id, records=clinical.records.query(patient_id))


@router.post("/patients/{patient_id}/records", response_model=MedicalRecord, status_code=201)
async def add_note(
    patient_id: str,
    request: NoteRequest,
    clinical: ClinicalStore = Depends(get_clinical),
) -> MedicalRecord:
    clinical.patients.require(patient_id)
    intake = RecordIntake(clinical.records)
    record = intake.add_note(patient_id, request.content, request.operator_role, request.vitals)
    if record is None:
        raise HTTPException(status_code=422, detail=intake.last_error)
    return record


@router.post("/patients/{patient_id}/documents", response_model=MedicalRecord, status_code=201)
async def upload_document(
    patient_id: str,
    request: DocumentUpload,
    clinical: ClinicalStore = Depends(get_clinical),
    extractor: DocumentExtractor = Depends(get_document_extractor),
) -> MedicalRecord:
    """
    Attach a document. The summary degrades to a generic message when
    extraction fails; the file is saved either way.
    """
    clinical.patients.require(patient_id)
    try:
        content = base64.b64decode(request.content_base64, validate=True)
    except (binascii.Error, ValueError) as e:
        raise HTTPException(
            status_code=400,
            detail=f"Failed to decode file {request.filename}: {str(e)}"
        )

    intake = RecordIntake(clinical.records, extractor)
    record = await intake.attach_document(
        patient_id,
        request.filename,
        request.content_type,
        content,
        request.operator_role,
    )
    if record is None:
        raise HTTPException(status_code=409, detail=intake.last_error)
    return record
