"""
Стадия распознавания текста (лот и срок годности).

При входе:
1. Захват камеры
2. Инициализация модели: сначала с аппаратным ускорением, затем стандартный режим

Если модель недоступна в обоих режимах - RecognitionUnavailableError и
переход на ручной ввод полей. Захват по явному действию пользователя:
один стоп-кадр -> одна строка текста. Пустой текст - повторяемая ошибка,
камера продолжает работать.
"""

import threading
from enum import Enum
from typing import Callable, Optional

from loguru import logger

from config.settings import DEFAULT_FACING_HINT
from contracts.capture_dto import LiveCapture, StageOutcome
from ..camera.frame_encoder import FrameEncoder
from ..camera.resource_manager import CameraResourceManager
from ..domain.exceptions import (
    CaptureError,
    InvalidTransitionError,
    NoTextDetectedError,
    RecognitionProcessingError,
    RecognitionUnavailableError,
)
from ..domain.interfaces import ITextRecognizer
from .base import BaseCaptureStage, NoticeCallback, StageStatus


class RecognizerState(str, Enum):
    NOT_READY = "not_ready"      # Инициализация ещё не выполнялась
    ACCELERATED = "accelerated"  # Готова, аппаратное ускорение
    STANDARD = "standard"        # Готова, стандартный режим
    UNAVAILABLE = "unavailable"  # Инициализация не удалась


class TextRecognitionStage(BaseCaptureStage):
    """
    Распознавание текста со стоп-кадра.

    ЦКП: сырой текст через on_text для FieldExtractionEngine.
    """

    name = "TextRecognitionStage"

    def __init__(
        self,
        camera_manager: CameraResourceManager,
        recognizer: ITextRecognizer,
        on_text: Callable[[StageOutcome], None],
        facing_hint: str = DEFAULT_FACING_HINT,
        on_notice: Optional[NoticeCallback] = None,
        encoder: Optional[FrameEncoder] = None
    ):
        super().__init__(camera_manager, facing_hint=facing_hint, on_notice=on_notice)
        self._recognizer = recognizer
        self._on_text = on_text
        self._encoder = encoder or FrameEncoder()
        self._capture_lock = threading.Lock()

        self.recognizer_state = RecognizerState.NOT_READY
        self.last_error: Optional[CaptureError] = None
        self.outcome: Optional[StageOutcome] = None
        self.attempts = 0

    @property
    def is_processing(self) -> bool:
        """Идёт ли запрос распознавания."""
        return self._capture_lock.locked()

    def start(self) -> bool:
        """
        Захватывает камеру и инициализирует модель.

        Returns:
            True, если стадия готова к захвату; False при переходе на ручной ввод
        """
        if self.status != StageStatus.IDLE:
            raise InvalidTransitionError(
                message=f"Стадия уже запущена (status={self.status.value})",
                component=self.name
            )

        if not self._acquire_camera():
            return False

        if not self._initialize_recognizer():
            return False

        self.status = StageStatus.LIVE
        logger.info(f"[{self.name}] Готова к захвату (режим: {self.recognizer_state.value})")
        return True

    def _initialize_recognizer(self) -> bool:
        try:
            self._recognizer.initialize(accelerated=True)
            self.recognizer_state = RecognizerState.ACCELERATED
            return True
        except RecognitionUnavailableError as e:
            logger.warning(f"[{self.name}] Ускорение недоступно, стандартный режим: {e.message}")

        try:
            self._recognizer.initialize(accelerated=False)
            self.recognizer_state = RecognizerState.STANDARD
            return True
        except RecognitionUnavailableError as e:
            self.recognizer_state = RecognizerState.UNAVAILABLE
            self._fall_back(e)
            return False

    def capture(self) -> Optional[str]:
        """
        Захватывает один стоп-кадр и распознаёт текст.

        No-op, пока предыдущий запрос не завершён.

        Returns:
            Распознанный текст или None (нет текста, ошибка, стадия не активна)
        """
        if self.status != StageStatus.LIVE:
            logger.debug(f"[{self.name}] Захват недоступен (status={self.status.value})")
            return None

        if not self._capture_lock.acquire(blocking=False):
            logger.debug(f"[{self.name}] Предыдущий запрос ещё выполняется, захват пропущен")
            return None

        try:
            self.attempts += 1
            frame = self._handle.read_frame()
            if frame is None:
                return self._retryable(NoTextDetectedError(
                    message="Кадр не получен, повторите",
                    component=self.name
                ))

            try:
                image_content = self._encoder.encode(frame)
                logger.debug(f"[{self.name}] Попытка {self.attempts}: распознавание кадра")
                text = self._recognizer.recognize(image_content)
            except RecognitionProcessingError as e:
                return self._retryable(e)
            except Exception as e:
                return self._retryable(RecognitionProcessingError(
                    message="Сбой модели распознавания, повторите",
                    component=self.name,
                    original_error=e
                ))

            text = (text or "").strip()
            if not text:
                return self._retryable(NoTextDetectedError(
                    message="Текст не обнаружен, поднесите камеру ближе к тексту",
                    component=self.name
                ))

            # Стадию могли закрыть во время распознавания
            if self.status != StageStatus.LIVE:
                logger.debug(f"[{self.name}] Результат после закрытия стадии отброшен")
                return None

            self._complete(text)
            return text
        finally:
            self._capture_lock.release()

    def switch_to_manual(self) -> None:
        """Пользователь выбрал ручной ввод полей: камера освобождается."""
        if self.is_finished:
            return
        self._release_camera()
        self.status = StageStatus.MANUAL
        logger.info(f"[{self.name}] Ручной ввод лота и срока годности")

    def _retryable(self, error: CaptureError) -> None:
        logger.warning(f"[{self.name}] {error.message}")
        self.last_error = error
        self._notify(error)
        return None

    def _complete(self, text: str) -> None:
        self.outcome = LiveCapture(text)
        self.last_error = None
        self._release_camera()
        self.status = StageStatus.COMPLETED

        logger.info(f"[{self.name}] Текст распознан за {self.attempts} попыт.: {text!r}")
        self._on_text(self.outcome)
