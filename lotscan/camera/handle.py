"""
Дескриптор владения одним живым потоком камеры.
"""

import itertools
from typing import Optional

import numpy as np
from loguru import logger

from ..domain.exceptions import CapabilityUnavailableError, HandleReleasedError
from ..domain.interfaces import IVideoSource

_handle_ids = itertools.count(1)


class MediaCaptureHandle:
    """
    Владеет ровно одним активным потоком.

    Создаётся только через CameraResourceManager.acquire().
    Поток останавливается один раз, повторная остановка - no-op.
    """

    def __init__(self, source: IVideoSource, facing_hint: str, owner: str):
        self.handle_id = next(_handle_ids)
        self.facing_hint = facing_hint
        self.owner = owner
        self._source = source
        self._released = False
        self._torch_enabled = False

    def __repr__(self) -> str:
        state = "released" if self._released else "active"
        return f"<MediaCaptureHandle #{self.handle_id} owner={self.owner} {state}>"

    @property
    def released(self) -> bool:
        return self._released

    @property
    def torch_enabled(self) -> bool:
        return self._torch_enabled

    def read_frame(self) -> Optional[np.ndarray]:
        """
        Читает текущий кадр потока.

        Raises:
            HandleReleasedError: дескриптор уже освобождён
        """
        self._ensure_active()
        return self._source.read_frame()

    def supports_torch(self) -> bool:
        return not self._released and self._source.supports_torch()

    def set_torch(self, enabled: bool) -> None:
        """
        Управляет фонариком потока.

        Raises:
            HandleReleasedError: дескриптор уже освобождён
            CapabilityUnavailableError: фонарик не поддерживается
        """
        self._ensure_active()
        if not self._source.supports_torch():
            raise CapabilityUnavailableError(
                message="Фонарик не поддерживается устройством",
                component="MediaCaptureHandle"
            )
        self._source.set_torch(enabled)
        self._torch_enabled = enabled

    def stop(self) -> bool:
        """
        Останавливает поток (выключая фонарик, если он включён).

        Returns:
            True, если поток остановлен этим вызовом; False, если уже был остановлен
        """
        if self._released:
            return False
        self._released = True

        if self._torch_enabled:
            try:
                self._source.set_torch(False)
            except Exception as e:
                logger.warning(f"[MediaCaptureHandle] Не удалось выключить фонарик #{self.handle_id}: {e}")
            self._torch_enabled = False

        self._source.stop()
        return True

    def _ensure_active(self) -> None:
        if self._released:
            raise HandleReleasedError(
                message=f"Дескриптор #{self.handle_id} уже освобождён",
                component="MediaCaptureHandle"
            )
