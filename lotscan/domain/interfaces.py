"""
Интерфейсы (абстрактные классы) пайплайна захвата.

Внешние возможности, от которых зависят стадии:
1. Камера (ICameraBackend / IVideoSource)
2. Декодирование штрихкодов (IBarcodeDecoder)
3. Распознавание текста (ITextRecognizer)
4. Справочник продуктов (IProductLookup)
5. Хранилище записей (IRecordSink)
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

import numpy as np

from contracts.capture_dto import Symbology
from contracts.record_dto import CapturedRecord, ProductMetadata


class IVideoSource(ABC):
    """Один живой видеопоток камеры."""

    @abstractmethod
    def read_frame(self) -> Optional[np.ndarray]:
        """
        Читает текущий кадр.

        Returns:
            Кадр BGR (numpy.ndarray) или None, если кадр не готов
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Останавливает все аппаратные треки потока."""
        pass

    @abstractmethod
    def supports_torch(self) -> bool:
        """Поддерживает ли поток управление фонариком."""
        pass

    @abstractmethod
    def set_torch(self, enabled: bool) -> None:
        """
        Включает или выключает фонарик.

        Raises:
            CapabilityUnavailableError: если фонарик не поддерживается
        """
        pass


class ICameraBackend(ABC):
    """Платформенный доступ к камерам."""

    @abstractmethod
    def open(self, facing_hint: str) -> IVideoSource:
        """
        Открывает поток камеры по подсказке.

        Args:
            facing_hint: "environment" или "user"

        Raises:
            DeviceUnavailableError: доступ запрещён или камера не найдена
        """
        pass


class IBarcodeDecoder(ABC):
    """Декодер штрихкодов для одного кадра."""

    @abstractmethod
    def decode(self, frame: np.ndarray, symbologies: Sequence[Symbology]) -> Optional[str]:
        """
        Ищет штрихкод на кадре.

        Args:
            frame: Кадр BGR или Grayscale
            symbologies: Принимаемые символики

        Returns:
            Декодированная строка или None

        Raises:
            DecodeNoiseError: кадр не удалось обработать (шум, стадия его игнорирует)
        """
        pass


class ITextRecognizer(ABC):
    """Модель распознавания текста на одном изображении."""

    @property
    @abstractmethod
    def is_ready(self) -> bool:
        """Модель инициализирована и принимает изображения."""
        pass

    @abstractmethod
    def initialize(self, accelerated: bool) -> None:
        """
        Инициализирует модель в указанном режиме.

        Args:
            accelerated: True - аппаратное ускорение, False - стандартный режим

        Raises:
            RecognitionUnavailableError: режим недоступен
        """
        pass

    @abstractmethod
    def recognize(self, image_content: bytes) -> str:
        """
        Распознаёт текст на изображении.

        Args:
            image_content: Закодированное изображение (PNG/JPEG)

        Returns:
            Сгенерированный текст (может быть пустым)

        Raises:
            RecognitionProcessingError: ошибка обработки изображения
        """
        pass


class IProductLookup(ABC):
    """Сетевой справочник продуктов."""

    @abstractmethod
    def lookup(self, barcode: str) -> ProductMetadata:
        """
        Ищет продукт по штрихкоду.

        Никогда не выбрасывает исключений: ошибка или "не найдено"
        возвращают ProductMetadata.empty(barcode).
        """
        pass


class IRecordSink(ABC):
    """Получатель готовых записей."""

    @abstractmethod
    def save(self, record: CapturedRecord) -> None:
        """
        Сохраняет запись.

        Raises:
            RecordSinkError: не удалось сохранить
        """
        pass
