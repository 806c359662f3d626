"""
Камера через OpenCV (cv2.VideoCapture).

Подсказка выбора камеры ("environment"/"user") отображается на индекс
устройства из конфигурации.
"""

from typing import Dict, Optional, Tuple

import cv2
import numpy as np
from loguru import logger

from config.settings import CAMERA_DEVICES, FRAME_WIDTH, FRAME_HEIGHT
from ..domain.exceptions import CapabilityUnavailableError, DeviceUnavailableError
from ..domain.interfaces import ICameraBackend, IVideoSource


class OpenCVVideoSource(IVideoSource):
    """Поток одного устройства cv2.VideoCapture."""

    def __init__(self, capture: cv2.VideoCapture, device_index: int):
        self._capture = capture
        self.device_index = device_index

    def read_frame(self) -> Optional[np.ndarray]:
        ok, frame = self._capture.read()
        if not ok:
            return None
        return frame

    def stop(self) -> None:
        self._capture.release()
        logger.debug(f"[OpenCVVideoSource] Устройство {self.device_index} остановлено")

    def supports_torch(self) -> bool:
        # VideoCapture не даёт управлять вспышкой
        return False

    def set_torch(self, enabled: bool) -> None:
        raise CapabilityUnavailableError(
            message="Фонарик недоступен через OpenCV",
            component="OpenCVVideoSource"
        )


class OpenCVCameraBackend(ICameraBackend):
    """Открывает камеры по индексу устройства."""

    def __init__(
        self,
        devices: Optional[Dict[str, int]] = None,
        frame_size: Tuple[int, int] = (FRAME_WIDTH, FRAME_HEIGHT)
    ):
        """
        Args:
            devices: Подсказка -> индекс устройства (по умолчанию из settings)
            frame_size: Желаемое разрешение (ширина, высота)
        """
        self.devices = dict(devices) if devices is not None else dict(CAMERA_DEVICES)
        self.frame_size = frame_size

    def open(self, facing_hint: str) -> IVideoSource:
        if facing_hint not in self.devices:
            raise DeviceUnavailableError(
                message=f"Нет камеры для подсказки '{facing_hint}'. Доступные: {list(self.devices)}",
                component="OpenCVCameraBackend"
            )

        index = self.devices[facing_hint]
        capture = cv2.VideoCapture(index)

        if not capture.isOpened():
            capture.release()
            raise DeviceUnavailableError(
                message=f"Устройство {index} недоступно (нет доступа или не подключено)",
                component="OpenCVCameraBackend"
            )

        width, height = self.frame_size
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, height)

        logger.debug(f"[OpenCVCameraBackend] Открыто устройство {index} ({facing_hint}), {width}x{height}")
        return OpenCVVideoSource(capture, index)
