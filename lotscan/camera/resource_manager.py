"""
Менеджер ресурса камеры.

Камера - единственный разделяемый ресурс пайплайна. Она выдаётся
эксклюзивно: пока активен один дескриптор, второй захват - ошибка.

Все стадии работают через session() (захват + гарантированное
освобождение на любом пути выхода). sweep() останавливает потоки,
оставшиеся после аварийного завершения.
"""

from contextlib import contextmanager
from typing import Iterator, List, Optional

from loguru import logger

from config.settings import DEFAULT_FACING_HINT
from ..domain.exceptions import CameraBusyError, DeviceUnavailableError
from ..domain.interfaces import ICameraBackend
from .handle import MediaCaptureHandle


class CameraResourceManager:
    """
    Выдаёт и освобождает дескрипторы потока камеры.

    ЦКП: ни один поток не остаётся запущенным после завершения стадии-владельца.
    """

    def __init__(self, backend: ICameraBackend):
        self._backend = backend
        self._active: Optional[MediaCaptureHandle] = None
        self._issued: List[MediaCaptureHandle] = []

        logger.debug("[CameraResourceManager] Инициализирован")

    @property
    def active_handle(self) -> Optional[MediaCaptureHandle]:
        return self._active

    @property
    def is_busy(self) -> bool:
        return self._active is not None and not self._active.released

    def acquire(self, facing_hint: str = DEFAULT_FACING_HINT, owner: str = "unknown") -> MediaCaptureHandle:
        """
        Захватывает поток камеры.

        Args:
            facing_hint: Подсказка выбора камеры
            owner: Имя стадии-владельца (для логов)

        Returns:
            Дескриптор, привязанный ровно к одному активному потоку

        Raises:
            CameraBusyError: камера уже захвачена
            DeviceUnavailableError: доступ запрещён или камера не найдена
        """
        if self.is_busy:
            raise CameraBusyError(
                message=f"Камера уже захвачена: {self._active!r}, запрос от {owner}",
                component="CameraResourceManager"
            )

        try:
            source = self._backend.open(facing_hint)
        except DeviceUnavailableError as e:
            logger.warning(f"[CameraResourceManager] Камера недоступна ({facing_hint}): {e.message}")
            raise
        except Exception as e:
            logger.warning(f"[CameraResourceManager] Ошибка открытия камеры ({facing_hint}): {e}")
            raise DeviceUnavailableError(
                message=f"Не удалось открыть камеру '{facing_hint}'",
                component="CameraResourceManager",
                original_error=e
            )

        handle = MediaCaptureHandle(source, facing_hint=facing_hint, owner=owner)
        self._active = handle
        self._issued.append(handle)

        logger.info(f"[CameraResourceManager] Захвачен поток #{handle.handle_id} для {owner} ({facing_hint})")
        return handle

    def release(self, handle: MediaCaptureHandle) -> None:
        """
        Освобождает дескриптор. Идемпотентно.

        Args:
            handle: Дескриптор, полученный из acquire()
        """
        try:
            stopped = handle.stop()
        except Exception as e:
            # Дескриптор уже помечен освобождённым, состояние устройства неизвестно
            logger.error(f"[CameraResourceManager] Ошибка остановки потока #{handle.handle_id}: {e}")
            stopped = True
        finally:
            if self._active is handle:
                self._active = None
            if handle in self._issued:
                self._issued.remove(handle)

        if stopped:
            logger.info(f"[CameraResourceManager] Освобождён поток #{handle.handle_id} ({handle.owner})")
        else:
            logger.debug(f"[CameraResourceManager] Поток #{handle.handle_id} уже освобождён")

    @contextmanager
    def session(self, facing_hint: str = DEFAULT_FACING_HINT, owner: str = "unknown") -> Iterator[MediaCaptureHandle]:
        """
        Захват с гарантированным освобождением.

        Пример:
            with manager.session(owner="BarcodeDetectionStage") as handle:
                frame = handle.read_frame()
        """
        handle = self.acquire(facing_hint, owner=owner)
        try:
            yield handle
        finally:
            self.release(handle)

    def sweep(self) -> int:
        """
        Принудительно останавливает все неосвобождённые потоки.

        Returns:
            Количество остановленных потоков
        """
        orphaned = [h for h in self._issued if not h.released]
        for handle in orphaned:
            logger.warning(f"[CameraResourceManager] Остановка брошенного потока #{handle.handle_id} ({handle.owner})")
            self.release(handle)

        self._issued.clear()
        self._active = None
        return len(orphaned)
