"""
DTO для конфигурации захвата.

Содержит настраиваемые параметры:
- Камера (подсказка по умолчанию, индексы устройств)
- Штрихкоды (символики, частота сэмплирования)
- Извлечение полей (маркеры лота, префикс века)

Использует Pydantic для валидации структуры конфигурации.
"""

from typing import Dict, List

from pydantic import BaseModel, Field, field_validator

from config.settings import (
    BARCODE_SAMPLE_RATE_HZ,
    BARCODE_SYMBOLOGIES,
    CAMERA_DEVICES,
    CENTURY_PREFIX,
    DEFAULT_FACING_HINT,
    LOT_MARKERS,
)
from contracts.capture_dto import Symbology


class CameraConfig(BaseModel):
    """Конфигурация камеры."""
    facing_hint: str = Field(DEFAULT_FACING_HINT, description='Подсказка по умолчанию ("environment"/"user")')
    devices: Dict[str, int] = Field(
        default_factory=lambda: dict(CAMERA_DEVICES),
        description="Подсказка -> индекс устройства OpenCV"
    )

    @field_validator('devices')
    @classmethod
    def validate_devices(cls, v):
        if not v:
            raise ValueError('devices не может быть пустым')
        for hint, index in v.items():
            if index < 0:
                raise ValueError(f'Индекс устройства для "{hint}" должен быть >= 0, получено: {index}')
        return v


class BarcodeConfig(BaseModel):
    """Конфигурация детекции штрихкодов."""
    sample_rate_hz: float = Field(BARCODE_SAMPLE_RATE_HZ, gt=0, le=60, description="Кадров в секунду")
    symbologies: List[Symbology] = Field(
        default_factory=lambda: [Symbology(s) for s in BARCODE_SYMBOLOGIES],
        description="Принимаемые символики"
    )

    @field_validator('symbologies')
    @classmethod
    def validate_symbologies(cls, v):
        if not v:
            raise ValueError('symbologies не может быть пустым')
        return v


class ExtractionConfig(BaseModel):
    """Конфигурация извлечения полей."""
    lot_markers: List[str] = Field(
        default_factory=lambda: list(LOT_MARKERS),
        description='Маркеры лота (например, ["lotto", "lot", "l"])'
    )
    century_prefix: str = Field(CENTURY_PREFIX, description="Префикс для двузначного года")

    @field_validator('lot_markers')
    @classmethod
    def validate_markers(cls, v):
        cleaned = [m.strip() for m in v if m and m.strip()]
        if not cleaned:
            raise ValueError('lot_markers не может быть пустым')
        return cleaned

    @field_validator('century_prefix')
    @classmethod
    def validate_century_prefix(cls, v):
        if len(v) != 2 or not v.isdigit():
            raise ValueError(f'century_prefix должен состоять из двух цифр, получено: {v}')
        return v


class CaptureConfig(BaseModel):
    """Полная конфигурация захвата."""
    camera: CameraConfig = Field(default_factory=CameraConfig)
    barcode: BarcodeConfig = Field(default_factory=BarcodeConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
