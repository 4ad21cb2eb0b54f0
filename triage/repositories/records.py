"""
Record Repository - append-only clinical timeline entries.

Records are never mutated. They are removed only when their patient is
deleted, through cascade_delete_by_patient().
"""

import logging
from typing import Callable, Optional

from triage.errors import NotFoundError, ValidationError
from triage.models.record import MedicalRecord
from triage.repositories.base import BaseRepository
from triage.storage.store import PersistentStore, StoreKey


logger = logging.getLogger(__name__)


class RecordRepository(BaseRepository[MedicalRecord]):
    """
    Medical records of all patients.

    Referential integrity is checked against the patient lookup bound by
    the PatientRepository; until one is bound, every add is rejected.
    """

    def __init__(self, store: PersistentStore):
        self._patient_exists: Optional[Callable[[str], bool]] = None
        super().__init__(store, StoreKey.MEDICAL_RECORDS)

    def get_item_id(self, item: MedicalRecord) -> str:
        return item.id

    def bind_patients(self, patient_exists: Callable[[str], bool]) -> None:
        """
        Attach the patient lookup and drop records whose patient is gone.

        Args:
            patient_exists: Returns True if a patient id is known
        """
        self._patient_exists = patient_exists

        orphans = [r.id for r in self._items.values() if not patient_exists(r.patient_id)]
        if orphans:
            for record_id in orphans:
                del self._items[record_id]
            self._save_to_store()
            logger.warning(f"Dropped {len(orphans)} records referencing unknown patients")

    def add(self, record: MedicalRecord) -> Optional[MedicalRecord]:
        """
        Append a record.

        document_date defaults to the creation time unless the record was
        explicitly backdated.

        Returns:
            The stored record, or None if it was rejected
        """
        try:
            self._check_insertable(record)
        except (NotFoundError, ValidationError) as e:
            logger.warning(f"Rejected record {record.id}: {e}")
            return None

        if record.document_date is None:
            record = record.model_copy(update={"document_date": record.created_at})

        self._items[record.id] = record
        self._save_to_store()

        logger.info(f"Added record {record.id} for patient {record.patient_id}")
        return record

    def query(self, patient_id: str) -> list[MedicalRecord]:
        """
        Records of one patient, newest first.

        Ordered by document date descending, creation time descending as
        tiebreak.
        """
        records = [r for r in self._items.values() if r.patient_id == patient_id]
        records.sort(key=lambda r: (r.sort_date, r.created_at), reverse=True)
        return records

    def recent(self, patient_id: str, limit: int = 5) -> list[MedicalRecord]:
        return self.query(patient_id)[:limit]

    def cascade_delete_by_patient(self, patient_id: str) -> int:
        """
        Delete every record of a patient. Called by PatientRepository.remove.

        Returns:
            Number of records deleted
        """
        doomed = [r.id for r in self._items.values() if r.patient_id == patient_id]
        if not doomed:
            return 0

        for record_id in doomed:
            del self._items[record_id]
        self._save_to_store()

        logger.info(f"Cascade-deleted {len(doomed)} records of patient {patient_id}")
        return len(doomed)

    def _check_insertable(self, record: MedicalRecord) -> None:
        if self._patient_exists is None or not self._patient_exists(record.patient_id):
            raise NotFoundError("Patient", record.patient_id)
        if record.id in self._items:
            raise ValidationError(f"Duplicate record id {record.id}", field="id")
