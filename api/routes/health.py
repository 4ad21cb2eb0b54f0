"""Health check endpoints."""

from fastapi import APIRouter, Depends

from api.deps import get_clinical, get_settings
from triage import __version__
from triage.config import Settings
from triage.repositories import ClinicalStore

router = APIRouter()


@router.get("/health")
async def health_check(
    clinical: ClinicalStore = Depends(get_clinical),
    settings: Settings = Depends(get_settings),
):
    """Basic health check."""
    return {
        "status": "healthy",
        "service": "triage-assist",
        "patients": clinical.patients.count(),
        "encrypted": settings.encrypted,
    }


@router.get("/")
async def root():
    """API root."""
    return {
        "name": "Triage Assist API",
        "version": __version__,
        "docs": "/docs",
    }
