"""Tests for the JSON file storage adapter.

These tests verify that a missing data file loads as an empty collection,
that corrupt files are reported and left untouched, and that failed writes
never damage the existing data file.
"""

import json
from unittest.mock import patch

import pytest

from src.adapters.storage.json_storage import JsonStorageAdapter
from src.domain.patient_collection import PatientCollection
from src.infrastructure.config_manager import StorageConfig


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / "data" / "patients.json"


@pytest.fixture
def adapter(data_file):
    return JsonStorageAdapter(file_path=data_file)


class TestJsonStorageAdapterInit:

    def test_requires_config_or_path(self):
        with pytest.raises(ValueError):
            JsonStorageAdapter()

    def test_uses_storage_config(self, tmp_path):
        config = StorageConfig(data_file=tmp_path / "clinic.json", indent=4, encoding="utf-8")
        adapter = JsonStorageAdapter(storage_config=config)
        assert adapter.file_path == tmp_path / "clinic.json"
        assert adapter.indent == 4
        assert adapter.adapter_name == "json_storage"

    def test_file_path_uses_default_formatting(self, adapter):
        assert adapter.indent == 2
        assert adapter.encoding == "utf-8"


class TestLoad:

    def test_missing_file_is_empty_collection(self, adapter, data_file):
        result = adapter.load()
        assert result.is_success()
        assert len(result.value) == 0
        assert not data_file.exists()

    def test_load_valid_file(self, adapter, data_file):
        data_file.parent.mkdir(parents=True)
        data_file.write_text(json.dumps({"persons": [{
            "name": "Alice Tan",
            "id": "S1234A",
            "phone": "91234567",
            "email": "alice@example.com",
            "address": "123 Clementi Road",
            "appointment": None,
            "medicalHistories": [],
        }]}), encoding="utf-8")

        result = adapter.load()
        assert result.is_success()
        assert [str(record.name) for record in result.value] == ["Alice Tan"]

    def test_corrupt_json_is_reported_and_untouched(self, adapter, data_file):
        data_file.parent.mkdir(parents=True)
        data_file.write_text("{not json", encoding="utf-8")

        result = adapter.load()
        assert result.is_failure()
        assert result.error_type == "StorageIOError"
        assert result.error_details["operation"] == "decode"
        assert data_file.read_text(encoding="utf-8") == "{not json"

    def test_invalid_record_reports_field(self, adapter, data_file):
        data_file.parent.mkdir(parents=True)
        data_file.write_text(json.dumps({"persons": [{
            "name": "Alice Tan",
            "id": "S1234A",
            "phone": None,
            "email": "alice@example.com",
            "address": "123 Clementi Road",
        }]}), encoding="utf-8")

        result = adapter.load()
        assert result.is_failure()
        assert result.error_type == "MissingFieldError"
        assert result.error == "Patient's Phone field is missing!"
        assert result.error_details == {"path": str(data_file), "field": "Phone"}

    def test_duplicate_ids_fail(self, adapter, data_file, sample_patients):
        entry = adapter.codec.serialize_record(sample_patients[0])
        data_file.parent.mkdir(parents=True)
        data_file.write_text(json.dumps({"persons": [entry, entry]}), encoding="utf-8")

        result = adapter.load()
        assert result.is_failure()
        assert result.error_type == "DuplicateIdError"

    def test_unreadable_file(self, adapter, data_file):
        data_file.parent.mkdir(parents=True)
        data_file.write_text("{}", encoding="utf-8")

        with patch("src.adapters.storage.json_storage.open", side_effect=PermissionError("denied"), create=True):
            result = adapter.load()

        assert result.is_failure()
        assert result.error_type == "StorageIOError"
        assert result.error_details["operation"] == "read"


class TestSave:

    def test_save_then_load_round_trip(self, adapter, sample_patients):
        collection = PatientCollection(sample_patients)
        result = adapter.save(collection)
        assert result.is_success()
        assert result.value == 3

        loaded = adapter.load()
        assert loaded.is_success()
        assert loaded.value == collection

    def test_save_creates_parent_directory(self, adapter, data_file):
        adapter.save(PatientCollection())
        assert json.loads(data_file.read_text(encoding="utf-8")) == {"persons": []}

    def test_save_uses_configured_indent(self, tmp_path, sample_patients):
        path = tmp_path / "indented.json"
        adapter = JsonStorageAdapter(storage_config=StorageConfig(data_file=path, indent=4))
        adapter.save(PatientCollection(sample_patients[:1]))
        assert '\n    "persons"' in path.read_text(encoding="utf-8")

    def test_save_keeps_non_ascii_text(self, adapter, data_file, make_patient):
        adapter.save(PatientCollection([make_patient(address="12 Rue de l'Église")]))
        assert "Église" in data_file.read_text(encoding="utf-8")

    def test_failed_replace_keeps_original_file(self, adapter, data_file, sample_patients):
        adapter.save(PatientCollection(sample_patients[:1]))
        original = data_file.read_text(encoding="utf-8")

        with patch("src.adapters.storage.json_storage.os.replace", side_effect=OSError("disk full")):
            result = adapter.save(PatientCollection(sample_patients))

        assert result.is_failure()
        assert result.error_type == "StorageIOError"
        assert result.error_details["operation"] == "write"
        assert data_file.read_text(encoding="utf-8") == original
        assert [path.name for path in data_file.parent.iterdir()] == ["patients.json"]


class TestGetSourceInfo:

    def test_missing_file(self, adapter):
        assert adapter.get_source_info() is None

    def test_existing_file(self, adapter, data_file):
        adapter.save(PatientCollection())
        info = adapter.get_source_info()
        assert info["format"] == "json"
        assert info["path"] == str(data_file)
        assert info["size"] == data_file.stat().st_size
        assert info["exists"] is True
