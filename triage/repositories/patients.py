"""
Patient Repository - patient profiles and the active-patient pointer.

Patients are replaced wholesale on edit. Removing a patient cascades to
their medical records. The active pointer always resolves to an existing
patient or is unset.
"""

import logging
from typing import Optional

from triage.errors import NotFoundError
from triage.models.patient import Patient
from triage.repositories.base import BaseRepository
from triage.repositories.records import RecordRepository
from triage.storage.store import PersistentStore, StoreKey


logger = logging.getLogger(__name__)


class PatientRepository(BaseRepository[Patient]):
    """CRUD over patients, owner of the active-patient pointer."""

    def __init__(self, store: PersistentStore, records: RecordRepository):
        """
        Initialize the repository.

        Args:
            store: Store used for persistence
            records: Record repository that cascades on removal
        """
        super().__init__(store, StoreKey.PATIENTS)
        self.records = records
        self.records.bind_patients(self.exists)

        self._active_id: Optional[str] = store.load(StoreKey.ACTIVE_PATIENT)
        if self._active_id is not None and not self.exists(self._active_id):
            logger.warning(f"Active patient {self._active_id} no longer exists; repairing pointer")
            self._set_active(self._first_id())

    def get_item_id(self, item: Patient) -> str:
        return item.id

    @property
    def active_id(self) -> Optional[str]:
        return self._active_id

    def active(self) -> Optional[Patient]:
        return self.get(self._active_id) if self._active_id else None

    def list(self) -> list[Patient]:
        """Patients in stable insertion order."""
        return self.get_all()

    def require(self, patient_id: str) -> Patient:
        """
        Get a patient by ID.

        Raises:
            NotFoundError: if the id is unknown
        """
        patient = self.get(patient_id)
        if patient is None:
            raise NotFoundError("Patient", patient_id)
        return patient

    def upsert(self, patient: Patient) -> Patient:
        """
        Replace the patient with the same id, or append a new one.

        The upserted patient always becomes the active patient.
        """
        replaced = patient.id in self._items
        self._items[patient.id] = patient
        self._save_to_store()
        self._set_active(patient.id)

        logger.info(f"{'Replaced' if replaced else 'Added'} patient {patient.id}")
        return patient

    def remove(self, patient_id: str) -> bool:
        """
        Remove a patient and all of their records.

        If the patient was active, the first remaining patient becomes
        active, or the pointer is cleared.

        Returns:
            True if removed, False if not found
        """
        if patient_id not in self._items:
            logger.info(f"Remove ignored, unknown patient {patient_id}")
            return False

        self.records.cascade_delete_by_patient(patient_id)

        del self._items[patient_id]
        self._save_to_store()

        if self._active_id == patient_id:
            self._set_active(self._first_id())

        logger.info(f"Removed patient {patient_id}")
        return True

    def switch_active(self, patient_id: str) -> bool:
        """
        Point the active patient at an existing id.

        Returns:
            True if switched, False if the id is unknown (pointer unchanged)
        """
        if not self.exists(patient_id):
            logger.info(f"Switch ignored, unknown patient {patient_id}")
            return False
        self._set_active(patient_id)
        return True

    def clear(self) -> None:
        """Remove every patient and record and unset the pointer."""
        for patient_id in list(self._items):
            self.records.cascade_delete_by_patient(patient_id)
        super().clear()
        self._set_active(None)

    def _first_id(self) -> Optional[str]:
        return next(iter(self._items), None)

    def _set_active(self, patient_id: Optional[str]) -> None:
        self._active_id = patient_id
        self.store.save(StoreKey.ACTIVE_PATIENT, patient_id)
