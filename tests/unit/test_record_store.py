"""
Unit тесты для JsonRecordStore и контракта CapturedRecord.
"""

import json

import pytest
from pydantic import ValidationError

from contracts.record_dto import CapturedRecord
from lotscan.domain.exceptions import RecordSinkError
from lotscan.infrastructure.record_store import JsonRecordStore


@pytest.fixture
def record():
    return CapturedRecord(
        barcode="8001234567890",
        lot="L99",
        expiry_date="2026-01-01",
        raw_recognized_text="LOTTO L99 SCAD 01/01/26",
    )


def test_save_writes_payload_and_audit(tmp_path, record):
    store = JsonRecordStore(tmp_path)
    store.save(record)

    data = json.loads(store.last_saved_path.read_text(encoding="utf-8"))
    assert data["barcode"] == "8001234567890"
    assert data["lot"] == "L99"
    assert data["expiryDate"] == "2026-01-01"
    assert data["audit"]["raw_recognized_text"] == "LOTTO L99 SCAD 01/01/26"
    assert data["audit"]["manual_barcode"] is False


def test_load_all(tmp_path, record):
    store = JsonRecordStore(tmp_path / "records")
    assert store.load_all() == []

    store.save(record)
    assert [r["barcode"] for r in store.load_all()] == ["8001234567890"]


def test_unsafe_barcode_in_file_name(tmp_path):
    store = JsonRecordStore(tmp_path)
    store.save(CapturedRecord(barcode="../etc/passwd"))

    assert store.last_saved_path.parent == tmp_path
    assert store.last_saved_path.name.startswith("___etc_passwd_")


def test_write_failure_raises_sink_error(tmp_path, record):
    # Файл на месте директории: mkdir не сработает
    blocker = tmp_path / "blocked"
    blocker.write_text("x")

    with pytest.raises(RecordSinkError):
        JsonRecordStore(blocker / "records").save(record)


class TestCapturedRecord:
    """Тесты контракта записи."""

    def test_payload_shape(self, record):
        assert record.to_payload() == {"barcode": "8001234567890", "lot": "L99", "expiryDate": "2026-01-01"}

    def test_blank_barcode_rejected(self):
        with pytest.raises(ValidationError):
            CapturedRecord(barcode="   ")

    def test_calendar_invalid_date_accepted(self):
        assert CapturedRecord(barcode="1", expiry_date="2024-02-31").expiry_date == "2024-02-31"

    def test_non_iso_date_rejected(self):
        with pytest.raises(ValidationError):
            CapturedRecord(barcode="1", expiry_date="31/02/2024")

    def test_record_is_frozen(self, record):
        with pytest.raises(ValidationError):
            record.lot = "X"
