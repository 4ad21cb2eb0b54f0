"""Store-backed repositories for patients and medical records."""

from triage.repositories.clinical import ClinicalStore
from triage.repositories.patients import PatientRepository
from triage.repositories.records import RecordRepository

__all__ = ["ClinicalStore", "PatientRepository", "RecordRepository"]
