"""Preference API routes."""

from fastapi import APIRouter, Depends

from api.deps import get_clinical
from api.schemas import LanguageRequest, LanguageResponse
from triage.repositories import ClinicalStore

router = APIRouter()


@router.get("/settings/language", response_model=LanguageResponse)
async def get_language(clinical: ClinicalStore = Depends(get_clinical)) -> LanguageResponse:
    return LanguageResponse(language=clinical.language)


@router.put("/settings/language", response_model=LanguageResponse)
async def set_language(
    request: LanguageRequest,
    clinical: ClinicalStore = Depends(get_clinical),
) -> LanguageResponse:
    return LanguageResponse(language=clinical.set_language(request.language))
