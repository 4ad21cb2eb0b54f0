"""
Persistent Store - named, independently loadable collections.

Each logical key is persisted as its own cipher-encoded JSON envelope:

    {"schema_version": 1, "saved_at": "...", "value": ...}

Loading is a validating step. A missing, unreadable, wrong-version or
foreign-shaped blob degrades to that key's default and is logged; it never
raises and never blocks the other keys.
"""

import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional, Union

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from triage.errors import DecodeError, StorageError
from triage.models.enums import Language
from triage.models.patient import Patient
from triage.models.record import MedicalRecord
from triage.storage.codec import Base64Codec, Cipher


logger = logging.getLogger(__name__)


SCHEMA_VERSION = 1


class StoreKey(str, Enum):
    """Logical keys persisted by the store."""

    PATIENTS = "patients"
    ACTIVE_PATIENT = "active_patient_id"
    MEDICAL_RECORDS = "medical_records"
    LANGUAGE = "language"


@dataclass(frozen=True)
class KeySchema:
    """How a key's value is validated, and what it degrades to."""

    adapter: TypeAdapter
    default: Callable[[], Any]
    item_adapter: Optional[TypeAdapter] = None


SCHEMAS: dict[StoreKey, KeySchema] = {
    StoreKey.PATIENTS: KeySchema(
        adapter=TypeAdapter(list[Patient]),
        default=list,
        item_adapter=TypeAdapter(Patient),
    ),
    StoreKey.MEDICAL_RECORDS: KeySchema(
        adapter=TypeAdapter(list[MedicalRecord]),
        default=list,
        item_adapter=TypeAdapter(MedicalRecord),
    ),
    StoreKey.ACTIVE_PATIENT: KeySchema(
        adapter=TypeAdapter(Optional[str]),
        default=lambda: None,
    ),
    StoreKey.LANGUAGE: KeySchema(
        adapter=TypeAdapter(Language),
        default=lambda: Language.EN,
    ),
}


class PersistentStore:
    """
    Loads and saves the named collections across restarts.

    With no storage_dir the blobs are kept in memory, which is what tests
    and throwaway sessions use.
    """

    FILE_SUFFIX = ".blob"

    def __init__(
        self,
        storage_dir: Optional[Path] = None,
        cipher: Optional[Cipher] = None,
    ):
        """
        Initialize the store.

        Args:
            storage_dir: Directory holding one blob file per key (optional)
            cipher: Blob encoding; defaults to Base64Codec, which is NOT encryption
        """
        self.storage_dir = Path(storage_dir) if storage_dir else None
        self.cipher = cipher or Base64Codec()
        self._memory: dict[str, bytes] = {}

        if self.storage_dir:
            self.storage_dir.mkdir(parents=True, exist_ok=True)

    def save(self, key: Union[StoreKey, str], value: Any) -> None:
        """
        Persist the full value for a key, replacing what was there.

        Raises:
            StorageError: if the blob cannot be written
        """
        key = StoreKey(key)
        schema = SCHEMAS[key]

        envelope = {
            "schema_version": SCHEMA_VERSION,
            "saved_at": datetime.now().isoformat(),
            "value": schema.adapter.dump_python(value, mode="json"),
        }
        raw = json.dumps(envelope, ensure_ascii=False).encode("utf-8")
        self._write_blob(key, self.cipher.encode(raw))

    def load(self, key: Union[StoreKey, str]) -> Any:
        """Load a key's value, or its default when absent or unreadable."""
        key = StoreKey(key)
        schema = SCHEMAS[key]

        try:
            blob = self._read_blob(key)
        except OSError as e:
            logger.error(f"Failed to read {key.value}: {e}")
            return schema.default()

        if blob is None:
            return schema.default()

        try:
            return self._decode(key, blob)
        except DecodeError as e:
            logger.warning(f"Discarding unreadable {key.value} blob: {e}")
            return schema.default()

    def clear(self, key: Union[StoreKey, str]) -> None:
        """Remove a key's blob entirely."""
        key = StoreKey(key)
        self._memory.pop(key.value, None)
        path = self._path_for(key)
        if path and path.exists():
            path.unlink()

    def clear_all(self) -> None:
        for key in StoreKey:
            self.clear(key)

    def _decode(self, key: StoreKey, blob: bytes) -> Any:
        schema = SCHEMAS[key]
        raw = self.cipher.decode(blob)

        try:
            payload = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise DecodeError(f"Not valid JSON: {e}") from e

        # Blobs written before the envelope existed hold the bare value
        if isinstance(payload, dict) and "schema_version" in payload:
            version = payload.get("schema_version")
            if version != SCHEMA_VERSION:
                raise DecodeError(f"Unsupported schema version: {version!r}")
            if "value" not in payload:
                raise DecodeError("Envelope has no value")
            value = payload["value"]
        else:
            value = payload

        if schema.item_adapter is not None:
            if not isinstance(value, list):
                raise DecodeError(f"Expected a list, got {type(value).__name__}")
            return self._validate_items(key, schema.item_adapter, value)

        try:
            return schema.adapter.validate_python(value)
        except PydanticValidationError as e:
            raise DecodeError(f"Value failed validation: {e.error_count()} errors") from e

    @staticmethod
    def _validate_items(key: StoreKey, adapter: TypeAdapter, items: list) -> list:
        valid = []
        for index, item in enumerate(items):
            try:
                valid.append(adapter.validate_python(item))
            except PydanticValidationError as e:
                logger.warning(
                    f"Dropping invalid {key.value} entry at index {index}: "
                    f"{e.error_count()} errors"
                )
        return valid

    def _path_for(self, key: StoreKey) -> Optional[Path]:
        if not self.storage_dir:
            return None
        return self.storage_dir / f"{key.value}{self.FILE_SUFFIX}"

    def _read_blob(self, key: StoreKey) -> Optional[bytes]:
        path = self._path_for(key)
        if path is None:
            return self._memory.get(key.value)
        if not path.exists():
            return None
        return path.read_bytes()

    def _write_blob(self, key: StoreKey, blob: bytes) -> None:
        path = self._path_for(key)
        if path is None:
            self._memory[key.value] = blob
            return

        tmp_path = path.with_suffix(path.suffix + ".tmp")
        try:
            tmp_path.write_bytes(blob)
            os.replace(tmp_path, path)
        except OSError as e:
            logger.error(f"Failed to save {key.value}: {e}")
            raise StorageError(f"Could not write {key.value}") from e
