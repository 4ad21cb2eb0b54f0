"""Tests for the persistent store and blob ciphers."""

import base64
import json

import pytest

from triage.errors import DecodeError, StorageError
from triage.models import Language, Patient, Sex
from triage.storage import (
    SCHEMA_VERSION,
    Base64Codec,
    FernetCipher,
    PersistentStore,
    StoreKey,
    cipher_for,
)


def _patient(patient_id: str = "p1", name: str = "Ana") -> Patient:
    return Patient(id=patient_id, full_name=name, age=30, sex=Sex.FEMALE)


def _raw_blob(payload) -> bytes:
    return base64.b64encode(json.dumps(payload).encode("utf-8"))


class TestCiphers:
    """Tests for Base64Codec and FernetCipher."""

    def test_base64_round_trip(self):
        codec = Base64Codec(warn=False)
        assert codec.decode(codec.encode(b"hello")) == b"hello"

    def test_base64_rejects_garbage(self):
        codec = Base64Codec(warn=False)
        with pytest.raises(DecodeError):
            codec.decode(b"not base64!!")

    def test_base64_warns_by_default(self, caplog):
        """The codec announces that it is not encryption."""
        with caplog.at_level("WARNING"):
            Base64Codec()
        assert "not encrypted" in caplog.text

    def test_fernet_round_trip(self):
        cipher = FernetCipher("secret", iterations=1000)
        blob = cipher.encode(b"Ana, 30")
        assert b"Ana" not in blob
        assert cipher.decode(blob) == b"Ana, 30"

    def test_fernet_wrong_key(self):
        blob = FernetCipher("secret", iterations=1000).encode(b"data")
        with pytest.raises(DecodeError):
            FernetCipher("other", iterations=1000).decode(blob)

    def test_fernet_requires_passphrase(self):
        with pytest.raises(ValueError):
            FernetCipher("")

    def test_cipher_for(self):
        assert isinstance(cipher_for(""), Base64Codec)
        assert isinstance(cipher_for("secret"), FernetCipher)


class TestPersistentStore:
    """Tests for save/load of the named keys."""

    def test_defaults_when_empty(self, memory_store):
        assert memory_store.load(StoreKey.PATIENTS) == []
        assert memory_store.load(StoreKey.MEDICAL_RECORDS) == []
        assert memory_store.load(StoreKey.ACTIVE_PATIENT) is None
        assert memory_store.load(StoreKey.LANGUAGE) == Language.EN

    def test_round_trip_patients(self, memory_store):
        patient = _patient()
        memory_store.save(StoreKey.PATIENTS, [patient])

        loaded = memory_store.load(StoreKey.PATIENTS)
        assert loaded == [patient]

    def test_round_trip_scalars(self, memory_store):
        memory_store.save(StoreKey.ACTIVE_PATIENT, "p1")
        memory_store.save(StoreKey.LANGUAGE, Language.PT)

        assert memory_store.load(StoreKey.ACTIVE_PATIENT) == "p1"
        assert memory_store.load(StoreKey.LANGUAGE) == Language.PT

    @pytest.mark.parametrize("patients", [[], [_patient("a"), _patient("b", "Bruno")]])
    def test_save_load_idempotent(self, memory_store, patients):
        """save(load()) does not change what is loaded."""
        memory_store.save(StoreKey.PATIENTS, patients)
        first = memory_store.load(StoreKey.PATIENTS)
        memory_store.save(StoreKey.PATIENTS, first)
        assert memory_store.load(StoreKey.PATIENTS) == first == patients

    def test_envelope_is_versioned(self, memory_store):
        memory_store.save(StoreKey.PATIENTS, [])
        raw = memory_store._memory[StoreKey.PATIENTS.value]
        envelope = json.loads(base64.b64decode(raw))

        assert envelope["schema_version"] == SCHEMA_VERSION
        assert envelope["value"] == []
        assert "saved_at" in envelope

    def test_keys_are_independent(self, memory_store):
        """A corrupt key does not affect the others."""
        memory_store.save(StoreKey.ACTIVE_PATIENT, "p1")
        memory_store._memory[StoreKey.PATIENTS.value] = b"%%%"

        assert memory_store.load(StoreKey.PATIENTS) == []
        assert memory_store.load(StoreKey.ACTIVE_PATIENT) == "p1"

    def test_unsupported_version_falls_back(self, memory_store):
        memory_store._memory[StoreKey.PATIENTS.value] = _raw_blob(
            {"schema_version": 99, "value": [_patient().model_dump(mode="json")]}
        )
        assert memory_store.load(StoreKey.PATIENTS) == []

    def test_legacy_bare_value_accepted(self, memory_store):
        """Blobs written before the envelope hold the bare list."""
        memory_store._memory[StoreKey.PATIENTS.value] = _raw_blob(
            [_patient().model_dump(mode="json")]
        )
        loaded = memory_store.load(StoreKey.PATIENTS)
        assert [p.id for p in loaded] == ["p1"]

    def test_invalid_items_dropped(self, memory_store):
        memory_store._memory[StoreKey.PATIENTS.value] = _raw_blob({
            "schema_version": SCHEMA_VERSION,
            "value": [_patient().model_dump(mode="json"), {"id": "", "full_name": ""}],
        })
        loaded = memory_store.load(StoreKey.PATIENTS)
        assert [p.id for p in loaded] == ["p1"]

    def test_foreign_shape_falls_back(self, memory_store):
        memory_store._memory[StoreKey.MEDICAL_RECORDS.value] = _raw_blob(
            {"schema_version": SCHEMA_VERSION, "value": {"not": "a list"}}
        )
        assert memory_store.load(StoreKey.MEDICAL_RECORDS) == []

    def test_invalid_language_falls_back(self, memory_store):
        memory_store._memory[StoreKey.LANGUAGE.value] = _raw_blob(
            {"schema_version": SCHEMA_VERSION, "value": "klingon"}
        )
        assert memory_store.load(StoreKey.LANGUAGE) == Language.EN

    def test_clear(self, memory_store):
        memory_store.save(StoreKey.ACTIVE_PATIENT, "p1")
        memory_store.clear(StoreKey.ACTIVE_PATIENT)
        assert memory_store.load(StoreKey.ACTIVE_PATIENT) is None


class TestDiskStore:
    """Tests for the file-backed store."""

    def test_persists_across_instances(self, tmp_path):
        store = PersistentStore(tmp_path, cipher=Base64Codec(warn=False))
        store.save(StoreKey.PATIENTS, [_patient()])

        reopened = PersistentStore(tmp_path, cipher=Base64Codec(warn=False))
        assert [p.full_name for p in reopened.load(StoreKey.PATIENTS)] == ["Ana"]
        assert (tmp_path / "patients.blob").exists()

    def test_encrypted_blob_hides_names(self, tmp_path):
        cipher = FernetCipher("secret", iterations=1000)
        store = PersistentStore(tmp_path, cipher=cipher)
        store.save(StoreKey.PATIENTS, [_patient(name="Zacarias")])

        assert b"Zacarias" not in (tmp_path / "patients.blob").read_bytes()
        assert store.load(StoreKey.PATIENTS)[0].full_name == "Zacarias"

    def test_wrong_passphrase_falls_back(self, tmp_path):
        PersistentStore(tmp_path, cipher=FernetCipher("secret", iterations=1000)).save(
            StoreKey.PATIENTS, [_patient()]
        )
        other = PersistentStore(tmp_path, cipher=FernetCipher("wrong", iterations=1000))
        assert other.load(StoreKey.PATIENTS) == []

    def test_corrupt_file_falls_back(self, tmp_path):
        (tmp_path / "patients.blob").write_bytes(b"not base64!!")
        store = PersistentStore(tmp_path, cipher=Base64Codec(warn=False))
        assert store.load(StoreKey.PATIENTS) == []

    def test_write_failure_raises_storage_error(self, tmp_path):
        store = PersistentStore(tmp_path, cipher=Base64Codec(warn=False))
        # A directory where the temp file should go makes the write fail
        (tmp_path / "patients.blob.tmp").mkdir()

        with pytest.raises(StorageError):
            store.save(StoreKey.PATIENTS, [])

    def test_clear_all_removes_files(self, tmp_path):
        store = PersistentStore(tmp_path, cipher=Base64Codec(warn=False))
        store.save(StoreKey.PATIENTS, [])
        store.save(StoreKey.LANGUAGE, Language.PT)

        store.clear_all()
        assert list(tmp_path.glob("*.blob")) == []
