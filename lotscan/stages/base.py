"""
Общая основа стадий захвата.

Стадия держит дескриптор камеры через ExitStack поверх
CameraResourceManager.session(): close() освобождает его на любом пути
выхода (успех, отмена, ошибка). Ошибки камеры превращаются в переход
на ручной ввод (StageStatus.MANUAL) и уведомление, а не в исключение.
"""

from contextlib import ExitStack
from enum import Enum
from typing import Callable, Optional

from loguru import logger

from config.settings import DEFAULT_FACING_HINT
from ..camera.handle import MediaCaptureHandle
from ..camera.resource_manager import CameraResourceManager
from ..domain.exceptions import CaptureError, DeviceUnavailableError

NoticeCallback = Callable[[CaptureError], None]


class StageStatus(str, Enum):
    IDLE = "idle"            # Создана, камера не захвачена
    LIVE = "live"            # Камера захвачена, идёт захват
    MANUAL = "manual"        # Ручной ввод (выбор пользователя или fallback)
    COMPLETED = "completed"  # Результат отдан
    CLOSED = "closed"        # Отменена / закрыта


class BaseCaptureStage:
    """Стадия с необязательным захватом камеры."""

    name = "CaptureStage"

    def __init__(
        self,
        camera_manager: CameraResourceManager,
        facing_hint: str = DEFAULT_FACING_HINT,
        on_notice: Optional[NoticeCallback] = None
    ):
        self._camera = camera_manager
        self._facing_hint = facing_hint
        self._on_notice = on_notice
        self._resources = ExitStack()
        self._handle: Optional[MediaCaptureHandle] = None

        self.status = StageStatus.IDLE
        self.fallback_reason: Optional[CaptureError] = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    @property
    def handle(self) -> Optional[MediaCaptureHandle]:
        return self._handle

    @property
    def is_live(self) -> bool:
        return self.status == StageStatus.LIVE

    @property
    def is_finished(self) -> bool:
        return self.status in (StageStatus.COMPLETED, StageStatus.CLOSED)

    def close(self) -> None:
        """Освобождает камеру и закрывает стадию. Идемпотентно."""
        self._release_camera()
        if self.status != StageStatus.COMPLETED and self.status != StageStatus.CLOSED:
            self.status = StageStatus.CLOSED
            logger.debug(f"[{self.name}] Закрыта")

    def cancel(self) -> None:
        self.close()

    def _acquire_camera(self) -> bool:
        """
        Захватывает камеру на время жизни стадии.

        Returns:
            True при успехе; False, если стадия перешла на ручной ввод
        """
        try:
            self._handle = self._resources.enter_context(
                self._camera.session(self._facing_hint, owner=self.name)
            )
        except DeviceUnavailableError as e:
            self._fall_back(e)
            return False
        return True

    def _release_camera(self) -> None:
        self._resources.close()
        self._handle = None

    def _fall_back(self, error: CaptureError) -> None:
        logger.warning(f"[{self.name}] Переход на ручной ввод: {error.message}")
        self._release_camera()
        self.fallback_reason = error
        self.status = StageStatus.MANUAL
        self._notify(error)

    def _notify(self, notice: CaptureError) -> None:
        if self._on_notice is not None:
            self._on_notice(notice)
