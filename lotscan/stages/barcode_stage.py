"""
Стадия детекции штрихкода.

Сэмплирует кадры живого потока с фиксированной частотой (~10 в секунду)
и отдаёт первый декодированный штрихкод ровно один раз. Ошибки
декодирования отдельных кадров - ожидаемый шум при наведении, наружу
не сообщаются. Ручной ввод не захватывает камеру.
"""

import time
from typing import Callable, Optional, Sequence

from loguru import logger

from config.settings import BARCODE_SAMPLE_RATE_HZ, BARCODE_SYMBOLOGIES, DEFAULT_FACING_HINT
from contracts.capture_dto import LiveCapture, ManualEntry, StageOutcome, Symbology
from ..camera.resource_manager import CameraResourceManager
from ..domain.exceptions import CapabilityUnavailableError, InvalidTransitionError
from ..domain.interfaces import IBarcodeDecoder
from .base import BaseCaptureStage, NoticeCallback, StageStatus


class BarcodeDetectionStage(BaseCaptureStage):
    """
    Детекция штрихкода с камеры с ручным вводом как запасным путём.

    ЦКП: одна строка штрихкода через on_detected (не более одного раза).
    """

    name = "BarcodeDetectionStage"

    def __init__(
        self,
        camera_manager: CameraResourceManager,
        decoder: IBarcodeDecoder,
        on_detected: Callable[[StageOutcome], None],
        symbologies: Optional[Sequence[Symbology]] = None,
        sample_rate_hz: float = BARCODE_SAMPLE_RATE_HZ,
        facing_hint: str = DEFAULT_FACING_HINT,
        on_notice: Optional[NoticeCallback] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep
    ):
        super().__init__(camera_manager, facing_hint=facing_hint, on_notice=on_notice)

        if sample_rate_hz <= 0:
            raise ValueError(f"sample_rate_hz должен быть > 0, получено: {sample_rate_hz}")

        self._decoder = decoder
        self._on_detected = on_detected
        self.symbologies = list(symbologies) if symbologies else [Symbology(s) for s in BARCODE_SYMBOLOGIES]
        self.sample_interval = 1.0 / sample_rate_hz
        self._clock = clock
        self._sleep = sleep

        self.outcome: Optional[StageOutcome] = None
        self.frames_sampled = 0

    def start(self) -> bool:
        """
        Захватывает камеру и переводит стадию в режим живой детекции.

        Returns:
            True, если камера захвачена; False при переходе на ручной ввод
        """
        if self.status != StageStatus.IDLE:
            raise InvalidTransitionError(
                message=f"Стадия уже запущена (status={self.status.value})",
                component=self.name
            )

        if not self._acquire_camera():
            return False

        self.status = StageStatus.LIVE
        logger.info(
            f"[{self.name}] Детекция запущена: {[s.value for s in self.symbologies]}, "
            f"{1.0 / self.sample_interval:.0f} кадров/с"
        )
        return True

    def process_frame(self) -> Optional[str]:
        """
        Один такт сэмплирования.

        Returns:
            Штрихкод, если он найден на этом кадре, иначе None
        """
        if self.status != StageStatus.LIVE or self.outcome is not None:
            return None

        frame = self._handle.read_frame()
        self.frames_sampled += 1
        if frame is None:
            return None

        try:
            code = self._decoder.decode(frame, self.symbologies)
        except Exception as e:
            logger.trace(f"[{self.name}] Шум декодирования: {e}")
            return None

        if not code:
            return None

        # Стадию могли закрыть, пока декодер работал
        if self.status != StageStatus.LIVE:
            return None

        self._emit(LiveCapture(code))
        return code

    def run(
        self,
        timeout: Optional[float] = None,
        should_stop: Optional[Callable[[], bool]] = None
    ) -> Optional[StageOutcome]:
        """
        Блокирующий цикл сэмплирования.

        Завершается при детекции, закрытии стадии, таймауте или should_stop().

        Args:
            timeout: Максимальная длительность в секундах
            should_stop: Проверка отмены со стороны вызывающего

        Returns:
            Результат стадии или None, если штрихкод не найден
        """
        deadline = self._clock() + timeout if timeout is not None else None

        while self.status == StageStatus.LIVE and self.outcome is None:
            if should_stop is not None and should_stop():
                logger.debug(f"[{self.name}] Цикл остановлен вызывающим")
                break
            if deadline is not None and self._clock() >= deadline:
                logger.debug(f"[{self.name}] Таймаут сэмплирования ({self.frames_sampled} кадров)")
                break

            started = self._clock()
            self.process_frame()

            remaining = self.sample_interval - (self._clock() - started)
            if remaining > 0 and self.status == StageStatus.LIVE:
                self._sleep(remaining)

        return self.outcome

    def switch_to_manual(self) -> None:
        """Пользователь выбрал ручной ввод: камера освобождается."""
        if self.is_finished:
            return
        self._release_camera()
        self.status = StageStatus.MANUAL
        logger.info(f"[{self.name}] Ручной ввод штрихкода")

    def submit_manual(self, code: str) -> Optional[StageOutcome]:
        """
        Принимает штрихкод, введённый вручную.

        Returns:
            Результат стадии или None, если стадия уже завершена

        Raises:
            ValueError: пустой штрихкод
        """
        value = (code or "").strip()
        if not value:
            raise ValueError("Штрихкод не может быть пустым")

        if self.is_finished:
            logger.debug(f"[{self.name}] Ручной ввод после завершения стадии проигнорирован")
            return None

        return self._emit(ManualEntry(value))

    def toggle_torch(self) -> bool:
        """
        Переключает фонарик.

        Неподдерживаемый фонарик - не фатально: уведомление, стадия продолжает работу.

        Returns:
            Новое состояние фонарика
        """
        if not self.is_live:
            return False

        try:
            self._handle.set_torch(not self._handle.torch_enabled)
        except CapabilityUnavailableError as e:
            logger.warning(f"[{self.name}] {e.message}")
            self._notify(e)
            return False

        logger.debug(f"[{self.name}] Фонарик: {'вкл' if self._handle.torch_enabled else 'выкл'}")
        return self._handle.torch_enabled

    def _emit(self, outcome: StageOutcome) -> StageOutcome:
        # Камера освобождается до колбэка: следующая стадия захватит свою
        self.outcome = outcome
        self._release_camera()
        self.status = StageStatus.COMPLETED

        source = "вручную" if outcome.is_manual else f"с камеры после {self.frames_sampled} кадров"
        logger.info(f"[{self.name}] Штрихкод {outcome.value} получен {source}")

        self._on_detected(outcome)
        return outcome
