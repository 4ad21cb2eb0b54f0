"""Onboarding and screening state machines."""

from triage.wizards.base import RequestSequencer, SingleFlight
from triage.wizards.onboarding import (
    OnboardingWizard,
    effective_path,
    next_step,
    previous_step,
)
from triage.wizards.screening import ScreeningWizard, screening_report

__all__ = [
    "OnboardingWizard",
    "RequestSequencer",
    "ScreeningWizard",
    "SingleFlight",
    "effective_path",
    "next_step",
    "previous_step",
    "screening_report",
]
