"""
Clinical Store - the injectable container for all persisted state.

Replaces a shared global store: callers create one ClinicalStore, pass it
to wizards and services, and reset it explicitly.
"""

import logging
from typing import Optional

from triage.config import Settings
from triage.models.enums import Language
from triage.models.patient import Patient
from triage.models.record import MedicalRecord
from triage.repositories.patients import PatientRepository
from triage.repositories.records import RecordRepository
from triage.storage.codec import Base64Codec, cipher_for
from triage.storage.store import PersistentStore, StoreKey


logger = logging.getLogger(__name__)


class ClinicalStore:
    """Patients, records and preferences backed by one PersistentStore."""

    def __init__(self, store: PersistentStore):
        self.store = store
        self.records = RecordRepository(store)
        self.patients = PatientRepository(store, self.records)
        self._language: Language = store.load(StoreKey.LANGUAGE)

    @classmethod
    def open(cls, settings: Settings) -> "ClinicalStore":
        """Open the on-disk store described by settings."""
        store = PersistentStore(
            storage_dir=settings.data_path,
            cipher=cipher_for(settings.store_passphrase),
        )
        logger.info(
            f"Opened clinical store at {settings.data_path} "
            f"({'encrypted' if settings.encrypted else 'NOT encrypted'})"
        )
        return cls(store)

    @classmethod
    def in_memory(cls) -> "ClinicalStore":
        return cls(PersistentStore(cipher=Base64Codec(warn=False)))

    @property
    def language(self) -> Language:
        return self._language

    def set_language(self, language: Language) -> Language:
        self._language = Language(language)
        self.store.save(StoreKey.LANGUAGE, self._language)
        return self._language

    def active_patient(self) -> Optional[Patient]:
        return self.patients.active()

    def active_records(self) -> list[MedicalRecord]:
        """Sorted timeline of the active patient (empty when none)."""
        active_id = self.patients.active_id
        return self.records.query(active_id) if active_id else []

    def reset(self) -> None:
        """Delete every patient, record and preference."""
        self.patients.clear()
        self.store.clear_all()
        self._language = Language.EN
        logger.info("Clinical store reset")
