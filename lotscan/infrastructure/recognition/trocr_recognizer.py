"""
Распознавание текста: локальная модель TrOCR (Hugging Face transformers).

Модель загружается при initialize():
- accelerated=True  -> CUDA (если доступна)
- accelerated=False -> CPU

Одно изображение -> одна строка сгенерированного текста.
"""

import io
from typing import Optional

import torch
from loguru import logger
from PIL import Image, UnidentifiedImageError
from transformers import TrOCRProcessor, VisionEncoderDecoderModel

from config.settings import TROCR_MAX_NEW_TOKENS, TROCR_MODEL_NAME
from ...domain.exceptions import RecognitionProcessingError, RecognitionUnavailableError
from ...domain.interfaces import ITextRecognizer


class TrOCRTextRecognizer(ITextRecognizer):
    """
    Реализация ITextRecognizer через TrOCR.

    ЦКП: сырой текст со стоп-кадра для FieldExtractionEngine.
    """

    def __init__(self, model_name: str = TROCR_MODEL_NAME, max_new_tokens: int = TROCR_MAX_NEW_TOKENS):
        """
        Args:
            model_name: Идентификатор модели на Hugging Face Hub
            max_new_tokens: Ограничение длины генерации
        """
        self.model_name = model_name
        self.max_new_tokens = max_new_tokens
        self.device: Optional[str] = None

        self._processor = None
        self._model = None

    @property
    def is_ready(self) -> bool:
        return self._model is not None

    def initialize(self, accelerated: bool) -> None:
        """
        Загружает процессор и модель на выбранное устройство.

        Raises:
            RecognitionUnavailableError: устройство недоступно или модель не загружена
        """
        if accelerated and not torch.cuda.is_available():
            raise RecognitionUnavailableError(
                message="CUDA недоступна",
                component="TrOCRTextRecognizer"
            )

        device = "cuda" if accelerated else "cpu"
        logger.info(f"[TrOCRTextRecognizer] Загрузка {self.model_name} ({device})")

        try:
            processor = TrOCRProcessor.from_pretrained(self.model_name)
            model = VisionEncoderDecoderModel.from_pretrained(self.model_name).to(device)
        except Exception as e:
            raise RecognitionUnavailableError(
                message=f"Не удалось загрузить модель {self.model_name} ({device})",
                component="TrOCRTextRecognizer",
                original_error=e
            )

        model.eval()
        self._processor = processor
        self._model = model
        self.device = device

        logger.info(f"[TrOCRTextRecognizer] Модель готова ({device})")

    def recognize(self, image_content: bytes) -> str:
        """
        Распознаёт текст на изображении.

        Args:
            image_content: Байты PNG/JPEG

        Returns:
            Сгенерированный текст (может быть пустым)

        Raises:
            RecognitionProcessingError: модель не готова или изображение не читается
        """
        if not self.is_ready:
            raise RecognitionProcessingError(
                message="Модель не инициализирована",
                component="TrOCRTextRecognizer"
            )

        try:
            image = Image.open(io.BytesIO(image_content)).convert("RGB")
        except (UnidentifiedImageError, OSError) as e:
            raise RecognitionProcessingError(
                message="Не удалось прочитать изображение",
                component="TrOCRTextRecognizer",
                original_error=e
            )

        try:
            pixel_values = self._processor(images=image, return_tensors="pt").pixel_values.to(self.device)
            with torch.no_grad():
                generated_ids = self._model.generate(pixel_values, max_new_tokens=self.max_new_tokens)
            text = self._processor.batch_decode(generated_ids, skip_special_tokens=True)[0]
        except Exception as e:
            raise RecognitionProcessingError(
                message="Ошибка генерации текста",
                component="TrOCRTextRecognizer",
                original_error=e
            )

        logger.debug(f"[TrOCRTextRecognizer] Распознано: {text!r}")
        return text.strip()
