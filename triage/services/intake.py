"""
Record Intake - manual notes and document uploads.

Both paths end in RecordRepository.add(). Document extraction is best
effort: a failed or unreadable extraction still saves the attachment, with
a generic summary in place of the extracted one.
"""

import logging
from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from triage.collaborators.protocols import DocumentExtractor
from triage.errors import CollaboratorError
from triage.models.assessment import ExtractionResult
from triage.models.enums import OperatorRole, RecordSource
from triage.models.record import MAX_NOTE_LENGTH, Attachment, MedicalRecord, Vitals, new_record_id
from triage.repositories.records import RecordRepository
from triage.wizards.base import SingleFlight


logger = logging.getLogger(__name__)


TEMPLATES = {
    "fever": "[Fever]: Onset: , Severity: , Duration: ",
}


def apply_template(content: str, name: str = "fever") -> str:
    """
    Append a structured prompt to a note.

    Raises:
        KeyError: if the template name is unknown
    """
    return f"{content}\n{TEMPLATES[name]}"


class RecordIntake:
    """Creates records from manual entry and uploaded documents."""

    def __init__(
        self,
        records: RecordRepository,
        extractor: Optional[DocumentExtractor] = None,
    ):
        self.records = records
        self.extractor = extractor
        self._flight = SingleFlight("document extraction")
        self.last_error: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self._flight.busy

    def add_note(
        self,
        patient_id: str,
        content: str,
        operator_role: OperatorRole = OperatorRole.PATIENT,
        vitals: Union[Vitals, dict, None] = None,
    ) -> Optional[MedicalRecord]:
        """
        Save a manual note.

        Returns:
            The stored record, or None if the note was rejected
        """
        content = (content or "").strip()
        if not content:
            self.last_error = "Note content is required"
            return None
        if len(content) > MAX_NOTE_LENGTH:
            self.last_error = f"Notes are limited to {MAX_NOTE_LENGTH} characters"
            return None

        try:
            record = MedicalRecord(
                id=new_record_id("note"),
                patient_id=patient_id,
                operator_role=operator_role,
                source=RecordSource.MANUAL,
                content=content,
                vitals=vitals,
            )
        except PydanticValidationError as e:
            logger.info(f"Rejected note for patient {patient_id}: {e.error_count()} invalid fields")
            self.last_error = "Some vitals are out of range"
            return None

        stored = self.records.add(record)
        self.last_error = None if stored else "Unknown patient"
        return stored

    def apply_template(self, content: str, name: str = "fever") -> str:
        return apply_template(content, name)

    async def attach_document(
        self,
        patient_id: str,
        name: str,
        mime_type: str,
        data: bytes,
        operator_role: OperatorRole = OperatorRole.PATIENT,
    ) -> Optional[MedicalRecord]:
        """
        Extract a summary from a document and save it with the file attached.

        The record's document_date is the date printed on the document when
        one was found.

        Returns:
            The stored record, or None if another upload is in progress or
            the patient is unknown
        """
        if not self._flight.try_acquire():
            self.last_error = "Another document is being processed"
            return None

        with self._flight.hold():
            extraction = await self._extract(data, mime_type)

        record = MedicalRecord(
            id=new_record_id("doc"),
            patient_id=patient_id,
            operator_role=operator_role,
            source=RecordSource.ATTACHMENT,
            document_date=extraction.document_date,
            content=extraction.summary,
            attachments=[Attachment.from_bytes(name, mime_type, data)],
        )
        stored = self.records.add(record)
        if stored is None:
            self.last_error = "Unknown patient"
        return stored

    async def _extract(self, data: bytes, mime_type: str) -> ExtractionResult:
        if self.extractor is None:
            self.last_error = None
            return ExtractionResult.could_not_analyze()
        try:
            extraction = await self.extractor.extract(data, mime_type)
        except CollaboratorError as e:
            logger.warning(f"Document extraction failed ({e.__class__.__name__}); saving without summary")
            self.last_error = e.user_message
            return ExtractionResult.could_not_analyze()
        self.last_error = None
        return extraction
