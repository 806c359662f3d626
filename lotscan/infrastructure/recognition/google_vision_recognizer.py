"""
Распознавание текста: Google Cloud Vision API.

Альтернатива локальной модели. Аппаратного ускорения нет: initialize()
в ускоренном режиме всегда отказывает, стандартный режим создаёт клиента.
"""

import os
from pathlib import Path
from typing import Optional

from google.cloud import vision
from loguru import logger

from config.settings import GOOGLE_APPLICATION_CREDENTIALS
from ...domain.exceptions import RecognitionProcessingError, RecognitionUnavailableError
from ...domain.interfaces import ITextRecognizer


class GoogleVisionTextRecognizer(ITextRecognizer):
    """
    Обёртка над Google Cloud Vision API.

    Возвращает только full_text: координаты слов для извлечения
    лота и срока годности не нужны.
    """

    def __init__(self, credentials_path: Optional[str] = None):
        """
        Args:
            credentials_path: Путь к JSON-файлу credentials.
                            Если не указан, берётся из settings.
        """
        self.credentials_path = credentials_path or GOOGLE_APPLICATION_CREDENTIALS
        self.client = None

    @property
    def is_ready(self) -> bool:
        return self.client is not None

    def initialize(self, accelerated: bool) -> None:
        """
        Создаёт клиента Vision API.

        Raises:
            RecognitionUnavailableError: ускоренный режим, нет credentials или клиент не создан
        """
        if accelerated:
            raise RecognitionUnavailableError(
                message="Ускоренный режим не поддерживается облачным API",
                component="GoogleVisionTextRecognizer"
            )

        if not self.credentials_path or not Path(self.credentials_path).exists():
            raise RecognitionUnavailableError(
                message=f"Credentials файл не найден: {self.credentials_path}",
                component="GoogleVisionTextRecognizer"
            )

        # Устанавливаем credentials через переменную окружения
        os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = str(self.credentials_path)

        try:
            self.client = vision.ImageAnnotatorClient()
        except Exception as e:
            raise RecognitionUnavailableError(
                message="Не удалось создать клиента Vision API",
                component="GoogleVisionTextRecognizer",
                original_error=e
            )

        logger.info("[GoogleVisionTextRecognizer] Клиент инициализирован")

    def recognize(self, image_content: bytes) -> str:
        """
        Распознаёт текст на изображении.

        Args:
            image_content: Байты изображения

        Returns:
            Полный текст (может быть пустым)

        Raises:
            RecognitionProcessingError: клиент не готов или API вернул ошибку
        """
        if not self.is_ready:
            raise RecognitionProcessingError(
                message="Клиент не инициализирован",
                component="GoogleVisionTextRecognizer"
            )

        image = vision.Image(content=image_content)

        # DOCUMENT_TEXT_DETECTION лучше читает плотный мелкий текст на упаковке
        try:
            response = self.client.document_text_detection(image=image)
        except Exception as e:
            raise RecognitionProcessingError(
                message="Запрос к Vision API не выполнен",
                component="GoogleVisionTextRecognizer",
                original_error=e
            )

        if response.error.message:
            raise RecognitionProcessingError(
                message=f"Google Vision API error: {response.error.message}",
                component="GoogleVisionTextRecognizer"
            )

        full_text = response.full_text_annotation.text if response.full_text_annotation else ""
        logger.debug(f"[GoogleVisionTextRecognizer] Распознано символов: {len(full_text)}")
        return full_text.strip()
