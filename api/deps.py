"""
FastAPI dependencies.

The clinical store and settings live on app.state; collaborators are built
per request from settings so tests can swap them with
app.dependency_overrides.
"""

from fastapi import Depends, HTTPException, Request

from triage.collaborators import (
    LLMAddressSuggester,
    LLMDocumentExtractor,
    LLMEndemicAssessor,
    LLMRiskAssessor,
)
from triage.config import Settings
from triage.llm import LLMClient
from triage.repositories import ClinicalStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_clinical(request: Request) -> ClinicalStore:
    return request.app.state.clinical


def get_llm_client(settings: Settings = Depends(get_settings)) -> LLMClient:
    try:
        return LLMClient(api_key=settings.openrouter_api_key)
    except ValueError as e:
        raise HTTPException(status_code=503, detail=str(e))


def get_endemic_assessor(
    settings: Settings = Depends(get_settings),
    clinical: ClinicalStore = Depends(get_clinical),
    llm: LLMClient = Depends(get_llm_client),
) -> LLMEndemicAssessor:
    return LLMEndemicAssessor(llm, model=settings.endemic_model, language=clinical.language)


def get_risk_assessor(
    settings: Settings = Depends(get_settings),
    llm: LLMClient = Depends(get_llm_client),
) -> LLMRiskAssessor:
    return LLMRiskAssessor(llm, model=settings.triage_model)


def get_document_extractor(
    settings: Settings = Depends(get_settings),
    llm: LLMClient = Depends(get_llm_client),
) -> LLMDocumentExtractor:
    return LLMDocumentExtractor(llm, model=settings.extraction_model)


def get_address_suggester(
    settings: Settings = Depends(get_settings),
    llm: LLMClient = Depends(get_llm_client),
) -> LLMAddressSuggester:
    return LLMAddressSuggester(
        llm,
        model=settings.address_model,
        limit=settings.max_address_suggestions,
    )
