"""
Unit тесты для CaptureWorkflow.

Проверяют:
1. Переходы BARCODE_CAPTURE -> TEXT_CAPTURE -> REVIEW -> COMPLETED
2. Повторы сбрасывают только поля своей стадии
3. Камеру держит не более одной стадии, каждый вход - новый дескриптор
4. Отмена идемпотентна и освобождает камеру
5. Поздние колбэки после перехода/отмены отбрасываются
"""

from datetime import date

import pytest

from contracts.capture_dto import CaptureStage, LiveCapture
from fakes import (
    FakeBarcodeDecoder,
    FakeLookup,
    FakeTextRecognizer,
    RecordingSink,
)
from lotscan.domain.exceptions import InvalidTransitionError, RecordSinkError
from lotscan.stages.base import StageStatus
from lotscan.workflow.capture_workflow import CaptureWorkflow, WorkflowStatus


@pytest.fixture
def sink():
    return RecordingSink()


def make_workflow(camera_manager, barcodes=None, texts=None, sink=None, recognizer=None, **kwargs):
    return CaptureWorkflow(
        camera_manager=camera_manager,
        decoder=FakeBarcodeDecoder(barcodes),
        recognizer=recognizer or FakeTextRecognizer(texts),
        record_sink=sink,
        **kwargs
    )


def advance_to_review(workflow, barcode="8001234567890"):
    workflow.submit_barcode(barcode)
    workflow.capture_text()
    assert workflow.stage == CaptureStage.REVIEW


class TestHappyPath:
    """Тесты основного сценария."""

    def test_initial_state(self, camera_manager):
        workflow = make_workflow(camera_manager)

        assert workflow.stage == CaptureStage.BARCODE_CAPTURE
        assert workflow.status == WorkflowStatus.ACTIVE
        assert camera_manager.acquire_calls == 0

    def test_live_barcode_then_text_then_confirm(self, camera_manager, camera_backend, sink):
        workflow = make_workflow(
            camera_manager,
            barcodes=[None, "8001234567890"],
            texts=["LOTTO: L12345  SCAD 05/03/24"],
            sink=sink,
        )
        workflow.start()
        workflow.poll()
        assert workflow.poll() == "8001234567890"

        assert workflow.stage == CaptureStage.TEXT_CAPTURE
        assert workflow.session.barcode == "8001234567890"
        assert workflow.session.manual_override.barcode is False

        assert workflow.capture_text() == "LOTTO: L12345  SCAD 05/03/24"
        assert workflow.stage == CaptureStage.REVIEW
        assert workflow.session.lot == "L12345"
        assert workflow.session.expiry_date == "2024-03-05"

        record = workflow.confirm()

        assert workflow.status == WorkflowStatus.COMPLETED
        assert record.to_payload() == {"barcode": "8001234567890", "lot": "L12345", "expiryDate": "2024-03-05"}
        assert sink.records == [record]
        assert camera_backend.live_sources == []

    def test_each_stage_entry_acquires_fresh_handle(self, camera_manager, camera_backend):
        workflow = make_workflow(camera_manager, barcodes=["111"], texts=["LOT A"])
        workflow.start()
        barcode_handle = workflow.active_stage.handle
        workflow.poll()
        text_handle = workflow.active_stage.handle

        assert barcode_handle is not text_handle
        assert barcode_handle.released
        assert len(camera_backend.sources) == 2
        assert camera_manager.acquire_calls == 2

    def test_at_most_one_live_stream(self, camera_manager, camera_backend):
        """Предыдущая стадия освобождает камеру до захвата следующей."""
        live_counts = []
        original_open = camera_backend.open

        def counting_open(facing_hint):
            live_counts.append(len(camera_backend.live_sources))
            return original_open(facing_hint)

        camera_backend.open = counting_open
        workflow = make_workflow(camera_manager, barcodes=["111"], texts=["LOT A"])
        workflow.start()
        workflow.poll()
        workflow.capture_text()
        workflow.retry_text()

        assert live_counts == [0, 0, 0]

    def test_product_lookup_on_barcode(self, camera_manager):
        lookup = FakeLookup(name="Spaghetti")
        workflow = make_workflow(camera_manager, product_lookup=lookup)
        workflow.submit_barcode("8001234567890")

        assert lookup.calls == ["8001234567890"]
        assert workflow.session.product.name == "Spaghetti"

    def test_lookup_failure_does_not_block_text_capture(self, camera_manager):
        """Тест: сбой справочника даёт пустые метаданные, workflow идёт дальше."""
        lookup = FakeLookup(error=ConnectionError("offline"))
        workflow = make_workflow(camera_manager, texts=["LOT A1"], product_lookup=lookup)
        workflow.submit_barcode("8001234567890")

        assert workflow.stage == CaptureStage.TEXT_CAPTURE
        assert workflow.session.barcode == "8001234567890"
        assert workflow.session.product.found is False
        assert workflow.capture_text() == "LOT A1"
        assert workflow.stage == CaptureStage.REVIEW

    def test_run_barcode_detection(self, camera_manager):
        workflow = make_workflow(camera_manager, barcodes=["4006381333931"], sample_rate_hz=1000)

        assert workflow.run_barcode_detection(timeout=1) == "4006381333931"
        assert workflow.stage == CaptureStage.TEXT_CAPTURE


class TestManualPaths:
    """Тесты ручного ввода."""

    def test_manual_barcode_without_camera(self, camera_manager):
        workflow = make_workflow(camera_manager, texts=["LOT A1"])
        workflow.submit_barcode("8001234567890")

        assert workflow.session.manual_override.barcode is True
        # Камера захвачена только стадией распознавания
        assert camera_manager.acquire_calls == 1
        assert workflow.stage == CaptureStage.TEXT_CAPTURE

    def test_manual_barcode_after_camera_denied(self, denied_camera_manager):
        notices = []
        workflow = make_workflow(denied_camera_manager, on_notice=notices.append)
        workflow.start()

        assert workflow.requires_manual_entry
        assert len(notices) == 1

        workflow.submit_barcode("123")
        assert workflow.stage == CaptureStage.TEXT_CAPTURE
        assert workflow.requires_manual_entry

    def test_use_manual_barcode_entry_releases_camera(self, camera_manager, camera_backend):
        workflow = make_workflow(camera_manager)
        workflow.start()
        workflow.use_manual_barcode_entry()

        assert workflow.requires_manual_entry
        assert camera_backend.live_sources == []

    def test_skip_text_capture_keeps_fields_empty(self, camera_manager, camera_backend):
        workflow = make_workflow(camera_manager)
        workflow.submit_barcode("123")
        workflow.skip_text_capture()

        assert workflow.stage == CaptureStage.REVIEW
        assert workflow.session.lot is None
        assert workflow.session.expiry_date is None
        assert workflow.session.manual_override.text is True
        assert camera_backend.live_sources == []

    def test_skip_text_capture_with_manual_fields(self, camera_manager):
        workflow = make_workflow(camera_manager)
        workflow.submit_barcode("123")
        workflow.skip_text_capture(lot=" AB-1 ", expiry_date=date(2026, 1, 31))

        assert workflow.session.lot == "AB-1"
        assert workflow.session.expiry_date == "2026-01-31"

    def test_recognition_unavailable_requires_manual_entry(self, camera_manager):
        recognizer = FakeTextRecognizer(accelerated_available=False, standard_available=False)
        workflow = make_workflow(camera_manager, recognizer=recognizer)
        workflow.submit_barcode("123")

        assert workflow.requires_manual_entry
        assert workflow.capture_text() is None

        workflow.skip_text_capture(lot="X1", expiry_date="2025-06-30")
        assert workflow.confirm().to_payload() == {"barcode": "123", "lot": "X1", "expiryDate": "2025-06-30"}

    def test_empty_text_stays_in_text_capture(self, camera_manager):
        notices = []
        workflow = make_workflow(camera_manager, texts=[""], on_notice=notices.append)
        workflow.submit_barcode("123")

        assert workflow.capture_text() is None
        assert workflow.stage == CaptureStage.TEXT_CAPTURE
        assert len(notices) == 1

    def test_recognizer_crash_stays_in_text_capture(self, camera_manager):
        notices = []
        workflow = make_workflow(camera_manager, texts=[ValueError("bad image"), "LOT A1"], on_notice=notices.append)
        workflow.submit_barcode("123")

        assert workflow.capture_text() is None
        assert workflow.stage == CaptureStage.TEXT_CAPTURE
        assert len(notices) == 1
        assert workflow.capture_text() == "LOT A1"


class TestReview:
    """Тесты экрана проверки."""

    def test_update_fields(self, camera_manager):
        workflow = make_workflow(camera_manager, texts=["LOT A1 01/02/25"])
        advance_to_review(workflow)

        workflow.update_fields(lot="B2", expiry_date="2025-03-04")
        assert workflow.session.lot == "B2"
        assert workflow.session.expiry_date == "2025-03-04"

        workflow.update_fields(lot="", expiry_date="")
        assert workflow.session.lot is None
        assert workflow.session.expiry_date is None

    def test_update_fields_none_keeps_values(self, camera_manager):
        workflow = make_workflow(camera_manager, texts=["LOT A1 01/02/25"])
        advance_to_review(workflow)
        workflow.update_fields(barcode="999")

        assert workflow.session.barcode == "999"
        assert workflow.session.lot == "A1"

    def test_update_fields_rejects_empty_barcode_and_bad_date(self, camera_manager):
        workflow = make_workflow(camera_manager, texts=["LOT A1"])
        advance_to_review(workflow)

        with pytest.raises(ValueError):
            workflow.update_fields(barcode="  ")
        with pytest.raises(ValueError):
            workflow.update_fields(expiry_date="01/02/25")

    def test_rejected_update_changes_nothing(self, camera_manager):
        """Тест: при ошибке в одном поле остальные поля не меняются."""
        workflow = make_workflow(camera_manager, texts=["LOT L99"])
        advance_to_review(workflow)

        with pytest.raises(ValueError):
            workflow.update_fields(barcode="111", lot="NEW", expiry_date="bad")
        assert (workflow.session.barcode, workflow.session.lot) == ("8001234567890", "L99")

    def test_rejected_skip_keeps_text_capture(self, camera_manager):
        workflow = make_workflow(camera_manager)
        workflow.submit_barcode("123")

        with pytest.raises(ValueError):
            workflow.skip_text_capture(lot="X1", expiry_date="bad")
        assert workflow.session.lot is None
        assert workflow.stage == CaptureStage.TEXT_CAPTURE

    def test_calendar_invalid_date_reaches_record(self, camera_manager):
        workflow = make_workflow(camera_manager, texts=["SCAD 31/04/25"])
        advance_to_review(workflow, "123")

        assert workflow.confirm().expiry_date == "2025-04-31"

    def test_sink_failure_keeps_review(self, camera_manager):
        workflow = make_workflow(camera_manager, texts=["LOT A1"], sink=RecordingSink(fail=True))
        advance_to_review(workflow)

        with pytest.raises(RecordSinkError):
            workflow.confirm()
        assert workflow.stage == CaptureStage.REVIEW
        assert workflow.status == WorkflowStatus.ACTIVE
        assert workflow.record is None


class TestRetry:
    """Тесты явных повторов."""

    def test_retry_text_discards_only_text_fields(self, camera_manager, camera_backend):
        workflow = make_workflow(camera_manager, texts=["LOT A1 01/02/25", "LOT B2"])
        advance_to_review(workflow)
        workflow.retry_text()

        assert workflow.stage == CaptureStage.TEXT_CAPTURE
        assert workflow.session.barcode == "8001234567890"
        assert workflow.session.lot is None
        assert workflow.session.expiry_date is None
        assert workflow.session.raw_recognized_text is None
        assert len(camera_backend.live_sources) == 1

        workflow.capture_text()
        assert workflow.session.lot == "B2"

    def test_retry_barcode_discards_only_barcode(self, camera_manager):
        workflow = make_workflow(camera_manager, barcodes=["222"], texts=["LOT A1 01/02/25"])
        advance_to_review(workflow, "111")
        workflow.retry_barcode()

        assert workflow.stage == CaptureStage.BARCODE_CAPTURE
        assert workflow.session.barcode is None
        assert workflow.session.lot == "A1"
        assert workflow.active_stage.is_live

        workflow.poll()
        assert workflow.session.barcode == "222"
        assert workflow.session.manual_override.barcode is False

    def test_retry_barcode_from_text_capture(self, camera_manager, camera_backend):
        workflow = make_workflow(camera_manager)
        workflow.submit_barcode("111")
        workflow.retry_barcode()

        assert workflow.stage == CaptureStage.BARCODE_CAPTURE
        assert len(camera_backend.live_sources) == 1

    @pytest.mark.parametrize("action", ["retry_text", "confirm", "capture_text"])
    def test_invalid_actions_in_barcode_capture(self, camera_manager, action):
        workflow = make_workflow(camera_manager)
        with pytest.raises(InvalidTransitionError):
            getattr(workflow, action)()

    def test_submit_barcode_in_review_is_invalid(self, camera_manager):
        workflow = make_workflow(camera_manager, texts=["LOT A1"])
        advance_to_review(workflow)
        with pytest.raises(InvalidTransitionError):
            workflow.submit_barcode("999")


class TestCancellation:
    """Тесты отмены."""

    def test_cancel_before_acquisition(self, camera_manager):
        workflow = make_workflow(camera_manager)
        workflow.cancel()

        assert workflow.status == WorkflowStatus.CANCELLED
        assert camera_manager.acquire_calls == 0
        assert camera_manager.release_calls == 0

    def test_cancel_mid_text_capture_releases_one_handle(self, camera_manager, camera_backend):
        workflow = make_workflow(camera_manager)
        workflow.submit_barcode("123")
        assert camera_manager.acquire_calls == 1

        workflow.cancel()

        assert workflow.status == WorkflowStatus.CANCELLED
        assert camera_manager.release_calls == 1
        assert camera_backend.sources[0].stop_calls == 1

    def test_cancel_is_idempotent(self, camera_manager, camera_backend):
        workflow = make_workflow(camera_manager)
        workflow.start()
        workflow.cancel()
        workflow.cancel()

        assert camera_backend.sources[0].stop_calls == 1

    def test_actions_after_cancel_are_invalid(self, camera_manager):
        workflow = make_workflow(camera_manager)
        workflow.cancel()
        with pytest.raises(InvalidTransitionError):
            workflow.submit_barcode("123")

    def test_late_callback_after_cancel_is_discarded(self, camera_manager):
        workflow = make_workflow(camera_manager)
        workflow.start()
        stage = workflow.active_stage
        workflow.cancel()

        # Колбэк, пришедший от уже закрытой стадии
        stage._on_detected(LiveCapture("999"))

        assert workflow.session.barcode is None
        assert workflow.stage == CaptureStage.BARCODE_CAPTURE
        assert workflow.status == WorkflowStatus.CANCELLED

    def test_late_callback_after_transition_is_discarded(self, camera_manager):
        workflow = make_workflow(camera_manager, texts=["LOT A1"])
        workflow.start()
        barcode_stage = workflow.active_stage
        workflow.submit_barcode("111")

        barcode_stage._on_detected(LiveCapture("999"))

        assert workflow.session.barcode == "111"
        assert workflow.stage == CaptureStage.TEXT_CAPTURE

    def test_close_sweeps_and_cancels(self, camera_manager, camera_backend):
        with make_workflow(camera_manager) as workflow:
            workflow.start()
        assert workflow.status == WorkflowStatus.CANCELLED
        assert camera_backend.live_sources == []

    def test_close_after_completion_keeps_completed(self, camera_manager):
        workflow = make_workflow(camera_manager, texts=["LOT A1"])
        advance_to_review(workflow)
        workflow.confirm()
        workflow.close()

        assert workflow.status == WorkflowStatus.COMPLETED
        assert workflow.active_stage is None


def test_stage_status_after_text_success(camera_manager):
    """Стадия распознавания завершена, а не закрыта отменой."""
    workflow = make_workflow(camera_manager, texts=["LOT A1"])
    workflow.submit_barcode("123")
    text_stage = workflow.active_stage
    workflow.capture_text()

    assert text_stage.status == StageStatus.COMPLETED
