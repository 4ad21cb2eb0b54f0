"""Clinician-facing services built on the repositories and collaborators."""

from triage.services.assist import AssistSession
from triage.services.intake import RecordIntake, apply_template

__all__ = ["AssistSession", "RecordIntake", "apply_template"]
