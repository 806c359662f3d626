"""
DTO контракт: стадии захвата -> CaptureWorkflow

Промежуточные значения пайплайна захвата: текущая стадия, вариант
результата стадии (камера или ручной ввод), результат извлечения полей.

Эти объекты не сохраняются. Наружу уходит только CapturedRecord
(record_dto.py).
"""

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional, Union


class CaptureStage(str, Enum):
    """Позиция в пайплайне захвата."""
    BARCODE_CAPTURE = "barcode_capture"
    TEXT_CAPTURE = "text_capture"
    REVIEW = "review"


class Symbology(str, Enum):
    """Символики штрихкодов, которые принимает стадия детекции."""
    EAN_13 = "EAN_13"
    EAN_8 = "EAN_8"
    CODE_128 = "CODE_128"
    CODE_39 = "CODE_39"
    UPC_A = "UPC_A"
    UPC_E = "UPC_E"
    QR_CODE = "QR_CODE"


@dataclass(frozen=True)
class LiveCapture:
    """Значение, полученное с камеры (детекция штрихкода или распознавание)."""
    value: str

    @property
    def is_manual(self) -> bool:
        return False


@dataclass(frozen=True)
class ManualEntry:
    """Значение, введённое пользователем в обход камеры."""
    value: Optional[str] = None

    @property
    def is_manual(self) -> bool:
        return True


# Вариант результата стадии: Live | Manual
StageOutcome = Union[LiveCapture, ManualEntry]


@dataclass
class ManualOverride:
    """Флаги обхода камеры по стадиям."""
    barcode: bool = False
    text: bool = False


@dataclass(frozen=True)
class ExtractionResult:
    """
    Результат FieldExtractionEngine.

    Выводится из одного текста, не хранит состояния.
    Оба поля могут отсутствовать: пустой результат валиден.
    """
    lot: Optional[str] = None          # Код лота
    expiry_date: Optional[str] = None  # Срок годности, YYYY-MM-DD

    @property
    def is_empty(self) -> bool:
        return self.lot is None and self.expiry_date is None

    @property
    def has_calendar_valid_date(self) -> bool:
        """
        True, если expiry_date является реальной календарной датой.

        Движок извлечения пропускает даты вроде 2024-02-31 без изменений,
        этот флаг позволяет подсветить их на экране проверки.
        """
        if self.expiry_date is None:
            return False
        try:
            date.fromisoformat(self.expiry_date)
        except ValueError:
            return False
        return True
