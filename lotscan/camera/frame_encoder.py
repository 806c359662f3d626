"""
Frame Encoder для стадии распознавания текста.

Кодирует стоп-кадр (numpy array) в байты изображения для модели.
"""

import cv2
import numpy as np
from loguru import logger

from ..domain.exceptions import RecognitionProcessingError


class FrameEncoder:
    """
    Кодирует кадр в PNG (без потерь) или JPEG bytes.

    ЦКП: байты изображения, которые принимает ITextRecognizer.
    """

    SUPPORTED_FORMATS = (".png", ".jpg")

    @staticmethod
    def encode(image: np.ndarray, ext: str = ".png", jpeg_quality: int = 95) -> bytes:
        """
        Кодирует numpy array в байты изображения.

        Args:
            image: Кадр в формате numpy.ndarray (BGR или Grayscale)
            ext: Формат: ".png" или ".jpg"
            jpeg_quality: Качество JPEG (0-100), только для ".jpg"

        Returns:
            Байты изображения

        Raises:
            RecognitionProcessingError: Если не удалось закодировать кадр
        """
        if ext not in FrameEncoder.SUPPORTED_FORMATS:
            raise ValueError(f"Неподдерживаемый формат: {ext}")

        params = [cv2.IMWRITE_JPEG_QUALITY, jpeg_quality] if ext == ".jpg" else []
        success, buffer = cv2.imencode(ext, image, params)

        if not success:
            raise RecognitionProcessingError(
                message=f"Не удалось закодировать кадр в {ext}",
                component="FrameEncoder"
            )

        encoded_bytes = buffer.tobytes()

        logger.debug(
            f"[FrameEncoder] Кадр закодирован: "
            f"{image.shape[1]}x{image.shape[0]} -> {len(encoded_bytes)} байт ({ext})"
        )

        return encoded_bytes
