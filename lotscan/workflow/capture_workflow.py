"""
CaptureWorkflow: конечный автомат пайплайна захвата.

Стадии (линейно, назад только явным повтором):
  BARCODE_CAPTURE -> TEXT_CAPTURE -> REVIEW -> [COMPLETED]
  любая стадия -> [CANCELLED]

Гарантии:
- Камеру в каждый момент держит не более одной стадии: предыдущая
  стадия освобождается синхронно до захвата камеры следующей.
- Каждый вход в BARCODE_CAPTURE / TEXT_CAPTURE захватывает новый дескриптор.
- Колбэки устаревших стадий (после перехода или отмены) отбрасываются.
"""

from datetime import date
from enum import Enum
from typing import Callable, List, Optional, Sequence, Union

from loguru import logger

from config.settings import BARCODE_SAMPLE_RATE_HZ, DEFAULT_FACING_HINT
from contracts.capture_dto import CaptureStage, StageOutcome, Symbology
from contracts.record_dto import ISO_DATE_SHAPE, CapturedRecord, ProductMetadata
from ..camera.resource_manager import CameraResourceManager
from ..domain.exceptions import CaptureError, InvalidTransitionError
from ..domain.interfaces import IBarcodeDecoder, IProductLookup, IRecordSink, ITextRecognizer
from ..extraction.field_extractor import FieldExtractionEngine
from ..stages.barcode_stage import BarcodeDetectionStage
from ..stages.base import BaseCaptureStage, StageStatus
from ..stages.text_stage import TextRecognitionStage
from .session import CaptureSession


class WorkflowStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class CaptureWorkflow:
    """
    Оркестратор захвата: штрихкод -> текст -> проверка -> запись.

    ЦКП: одна CapturedRecord для хранилища или явная отмена.
    """

    def __init__(
        self,
        camera_manager: CameraResourceManager,
        decoder: IBarcodeDecoder,
        recognizer: ITextRecognizer,
        extractor: Optional[FieldExtractionEngine] = None,
        record_sink: Optional[IRecordSink] = None,
        product_lookup: Optional[IProductLookup] = None,
        symbologies: Optional[Sequence[Symbology]] = None,
        sample_rate_hz: float = BARCODE_SAMPLE_RATE_HZ,
        facing_hint: str = DEFAULT_FACING_HINT,
        on_notice: Optional[Callable[[CaptureError], None]] = None
    ):
        """
        Args:
            camera_manager: Менеджер камеры (общий для всех стадий)
            decoder: Декодер штрихкодов
            recognizer: Модель распознавания текста
            extractor: Движок извлечения полей (по умолчанию со словарём из settings)
            record_sink: Получатель готовой записи (опционально)
            product_lookup: Справочник продуктов (опционально)
            symbologies: Принимаемые символики
            sample_rate_hz: Частота сэмплирования кадров
            facing_hint: Подсказка выбора камеры
            on_notice: Уведомления стадий (fallback, нет текста, нет фонарика)
        """
        self._camera = camera_manager
        self._decoder = decoder
        self._recognizer = recognizer
        self._extractor = extractor or FieldExtractionEngine()
        self._record_sink = record_sink
        self._product_lookup = product_lookup
        self._symbologies = symbologies
        self._sample_rate_hz = sample_rate_hz
        self._facing_hint = facing_hint
        self._on_notice = on_notice

        self.session = CaptureSession()
        self.status = WorkflowStatus.ACTIVE
        self.record: Optional[CapturedRecord] = None
        self.notices: List[CaptureError] = []

        self._stage: Optional[BaseCaptureStage] = None
        self._epoch = 0

        logger.debug("[CaptureWorkflow] Инициализирован")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    # ------------------------------------------------------------------
    # Состояние
    # ------------------------------------------------------------------

    @property
    def stage(self) -> CaptureStage:
        return self.session.stage

    @property
    def active_stage(self) -> Optional[BaseCaptureStage]:
        return self._stage

    @property
    def is_active(self) -> bool:
        return self.status == WorkflowStatus.ACTIVE

    @property
    def requires_manual_entry(self) -> bool:
        """Текущая стадия перешла на ручной ввод (выбор пользователя или fallback)."""
        return self._stage is not None and self._stage.status == StageStatus.MANUAL

    # ------------------------------------------------------------------
    # Действия пользователя
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Запускает детекцию штрихкода (захват камеры)."""
        self._require("start", CaptureStage.BARCODE_CAPTURE)
        if self._stage is not None:
            logger.debug("[CaptureWorkflow] Уже запущен")
            return
        self._enter_barcode_capture()

    def poll(self) -> Optional[str]:
        """Один такт детекции штрихкода (для внешнего цикла событий)."""
        if not self.is_active or not isinstance(self._stage, BarcodeDetectionStage):
            return None
        return self._stage.process_frame()

    def run_barcode_detection(
        self,
        timeout: Optional[float] = None,
        should_stop: Optional[Callable[[], bool]] = None
    ) -> Optional[str]:
        """
        Блокирующая детекция штрихкода.

        Returns:
            Штрихкод или None (таймаут, остановка, ручной режим)
        """
        self._require("run_barcode_detection", CaptureStage.BARCODE_CAPTURE)
        if self._stage is None:
            self._enter_barcode_capture()

        stage = self._stage
        if not isinstance(stage, BarcodeDetectionStage) or not stage.is_live:
            return None

        outcome = stage.run(timeout=timeout, should_stop=should_stop)
        return outcome.value if outcome is not None else None

    def toggle_torch(self) -> bool:
        """Переключает фонарик на стадии штрихкода."""
        if not self.is_active or not isinstance(self._stage, BarcodeDetectionStage):
            return False
        return self._stage.toggle_torch()

    def use_manual_barcode_entry(self) -> None:
        """Переключает стадию штрихкода на ручной ввод (камера освобождается)."""
        self._require("use_manual_barcode_entry", CaptureStage.BARCODE_CAPTURE)
        if self._stage is None:
            self._stage = self._create_barcode_stage()
        self._stage.switch_to_manual()

    def submit_barcode(self, code: str) -> None:
        """
        Ручной ввод штрихкода. Камера не захватывается.

        Raises:
            ValueError: пустой штрихкод
        """
        self._require("submit_barcode", CaptureStage.BARCODE_CAPTURE)
        if self._stage is None:
            self._stage = self._create_barcode_stage()
        self._stage.submit_manual(code)

    def capture_text(self) -> Optional[str]:
        """
        Захват стоп-кадра и распознавание.

        Returns:
            Распознанный текст или None (повторить / ручной ввод)
        """
        self._require("capture_text", CaptureStage.TEXT_CAPTURE)
        if not isinstance(self._stage, TextRecognitionStage):
            return None
        return self._stage.capture()

    def use_manual_text_entry(self) -> None:
        """Переключает стадию распознавания на ручной ввод полей (камера освобождается)."""
        self._require("use_manual_text_entry", CaptureStage.TEXT_CAPTURE)
        if self._stage is not None:
            self._stage.switch_to_manual()

    def skip_text_capture(
        self,
        lot: Optional[str] = None,
        expiry_date: Optional[Union[str, date]] = None
    ) -> None:
        """
        Пропуск распознавания: поля вводятся вручную (или остаются пустыми).

        Args:
            lot: Код лота, введённый вручную
            expiry_date: Срок годности (date или YYYY-MM-DD)
        """
        self._require("skip_text_capture", CaptureStage.TEXT_CAPTURE)
        new_lot = self._normalize_lot(lot) if lot is not None else self.session.lot
        new_date = self._normalize_date(expiry_date) if expiry_date is not None else self.session.expiry_date

        self.session.lot = new_lot
        self.session.expiry_date = new_date

        self.session.manual_override.text = True
        logger.info("[CaptureWorkflow] Распознавание пропущено, ручной ввод полей")
        self._enter_review()

    def update_fields(
        self,
        barcode: Optional[str] = None,
        lot: Optional[str] = None,
        expiry_date: Optional[Union[str, date]] = None
    ) -> None:
        """
        Ручная правка на экране проверки.

        None - поле не меняется; пустая строка очищает лот или срок годности.

        Raises:
            ValueError: пустой штрихкод или дата не в формате YYYY-MM-DD
        """
        self._require("update_fields", CaptureStage.REVIEW)

        # Сначала проверяются все значения, затем применяются разом
        new_barcode = self.session.barcode
        if barcode is not None:
            new_barcode = barcode.strip()
            if not new_barcode:
                raise ValueError("Штрихкод не может быть пустым")
        new_lot = self._normalize_lot(lot) if lot is not None else self.session.lot
        new_date = self._normalize_date(expiry_date) if expiry_date is not None else self.session.expiry_date

        self.session.barcode = new_barcode
        self.session.lot = new_lot
        self.session.expiry_date = new_date

        logger.debug(
            f"[CaptureWorkflow] Поля обновлены: barcode={self.session.barcode}, "
            f"lot={self.session.lot}, expiry={self.session.expiry_date}"
        )

    def retry_text(self) -> None:
        """Повтор распознавания: сбрасываются только лот, срок и сырой текст."""
        self._require("retry_text", CaptureStage.REVIEW)
        logger.info("[CaptureWorkflow] Повтор стадии распознавания")
        self.session.clear_text_fields()
        self._enter_text_capture()

    def retry_barcode(self) -> None:
        """Повтор детекции штрихкода: сбрасываются только поля штрихкода."""
        self._require("retry_barcode", CaptureStage.TEXT_CAPTURE, CaptureStage.REVIEW)
        logger.info("[CaptureWorkflow] Повтор стадии штрихкода")
        self.session.clear_barcode()
        self._enter_barcode_capture()

    def confirm(self) -> CapturedRecord:
        """
        Подтверждение: формирует запись и передаёт её в хранилище.

        Raises:
            InvalidTransitionError: не на стадии REVIEW или пустой штрихкод
            RecordSinkError: хранилище не приняло запись (workflow остаётся на REVIEW)
        """
        self._require("confirm", CaptureStage.REVIEW)
        if not self.session.has_barcode:
            raise InvalidTransitionError(
                message="Подтверждение без штрихкода невозможно",
                component="CaptureWorkflow"
            )

        record = self.session.to_record()
        if self._record_sink is not None:
            self._record_sink.save(record)

        self.record = record
        self.status = WorkflowStatus.COMPLETED
        self._epoch += 1

        logger.info(f"[CaptureWorkflow] ✅ Запись готова: {record.to_payload()}")
        return record

    def cancel(self) -> None:
        """Отмена в любой стадии. Идемпотентно, камера освобождается до сигнала отмены."""
        if not self.is_active:
            return

        self._epoch += 1
        self._teardown_stage()
        self.status = WorkflowStatus.CANCELLED
        logger.info(f"[CaptureWorkflow] Отменён на стадии {self.stage.value}")

    def close(self) -> None:
        """Завершение: отмена активного workflow и остановка брошенных потоков."""
        self.cancel()
        self._teardown_stage()
        swept = self._camera.sweep()
        if swept:
            logger.warning(f"[CaptureWorkflow] Остановлено брошенных потоков: {swept}")

    # ------------------------------------------------------------------
    # Переходы
    # ------------------------------------------------------------------

    def _enter_barcode_capture(self) -> None:
        self._teardown_stage()
        self._epoch += 1
        self.session.stage = CaptureStage.BARCODE_CAPTURE
        logger.info("[CaptureWorkflow] -> BARCODE_CAPTURE")

        self._stage = self._create_barcode_stage()
        self._stage.start()

    def _enter_text_capture(self) -> None:
        self._teardown_stage()
        self._epoch += 1
        self.session.stage = CaptureStage.TEXT_CAPTURE
        logger.info("[CaptureWorkflow] -> TEXT_CAPTURE")

        epoch = self._epoch
        self._stage = TextRecognitionStage(
            self._camera,
            self._recognizer,
            on_text=self._guarded(epoch, self._on_text),
            facing_hint=self._facing_hint,
            on_notice=self._guarded(epoch, self._on_stage_notice),
        )
        self._stage.start()

    def _enter_review(self) -> None:
        if not self.session.has_barcode:
            raise InvalidTransitionError(
                message="REVIEW без штрихкода недопустим",
                component="CaptureWorkflow"
            )
        self._teardown_stage()
        self._epoch += 1
        self.session.stage = CaptureStage.REVIEW
        logger.info(
            f"[CaptureWorkflow] -> REVIEW (barcode={self.session.barcode}, "
            f"lot={self.session.lot}, expiry={self.session.expiry_date})"
        )

    def _create_barcode_stage(self) -> BarcodeDetectionStage:
        epoch = self._epoch
        return BarcodeDetectionStage(
            self._camera,
            self._decoder,
            on_detected=self._guarded(epoch, self._on_barcode),
            symbologies=self._symbologies,
            sample_rate_hz=self._sample_rate_hz,
            facing_hint=self._facing_hint,
            on_notice=self._guarded(epoch, self._on_stage_notice),
        )

    def _teardown_stage(self) -> None:
        if self._stage is not None:
            self._stage.close()
            self._stage = None

    # ------------------------------------------------------------------
    # Колбэки стадий
    # ------------------------------------------------------------------

    def _guarded(self, epoch: int, callback: Callable) -> Callable:
        def guarded(*args):
            if epoch != self._epoch or not self.is_active:
                logger.debug(f"[CaptureWorkflow] Поздний колбэк отброшен ({callback.__name__})")
                return None
            return callback(*args)
        return guarded

    def _on_barcode(self, outcome: StageOutcome) -> None:
        self.session.barcode = outcome.value
        self.session.manual_override.barcode = outcome.is_manual

        if self._product_lookup is not None:
            try:
                self.session.product = self._product_lookup.lookup(outcome.value)
            except Exception as e:
                logger.warning(f"[CaptureWorkflow] Справочник продуктов недоступен, продолжаем без него: {e}")
                self.session.product = ProductMetadata.empty(outcome.value)

        self._enter_text_capture()

    def _on_text(self, outcome: StageOutcome) -> None:
        self.session.raw_recognized_text = outcome.value
        self.session.apply_extraction(self._extractor.extract(outcome.value))
        self.session.manual_override.text = False
        self._enter_review()

    def _on_stage_notice(self, notice: CaptureError) -> None:
        self.notices.append(notice)
        if self._on_notice is not None:
            self._on_notice(notice)

    # ------------------------------------------------------------------
    # Вспомогательные
    # ------------------------------------------------------------------

    def _require(self, action: str, *stages: CaptureStage) -> None:
        if not self.is_active:
            raise InvalidTransitionError(
                message=f"{action}: workflow уже завершён ({self.status.value})",
                component="CaptureWorkflow"
            )
        if self.session.stage not in stages:
            raise InvalidTransitionError(
                message=f"{action}: недопустимо на стадии {self.session.stage.value}",
                component="CaptureWorkflow"
            )

    @staticmethod
    def _normalize_lot(lot: str) -> Optional[str]:
        value = lot.strip()
        return value or None

    @staticmethod
    def _normalize_date(value: Union[str, date]) -> Optional[str]:
        if isinstance(value, date):
            return value.isoformat()
        text = value.strip()
        if not text:
            return None
        if not ISO_DATE_SHAPE.match(text):
            raise ValueError(f"Дата должна быть в формате YYYY-MM-DD, получено: {value}")
        return text
