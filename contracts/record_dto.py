"""
DTO контракт: CaptureWorkflow -> внешние коллабораторы

CapturedRecord - готовая неизменяемая запись, которую получает
хранилище записей после подтверждения на экране проверки.

ProductMetadata - необязательные сведения о продукте из сетевого
справочника (Open Food Facts). Пустой результат - нормальная ситуация.
"""

import re
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ISO_DATE_SHAPE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class CapturedRecord(BaseModel):
    """
    Завершённая запись захвата.

    Хранилище видит только эти поля и ничего не знает о промежуточных стадиях.
    """

    model_config = ConfigDict(frozen=True)

    barcode: str = Field(..., min_length=1, description="Штрихкод продукта")
    lot: Optional[str] = Field(None, description="Код лота")
    expiry_date: Optional[str] = Field(None, description="Срок годности YYYY-MM-DD")
    raw_recognized_text: Optional[str] = Field(None, description="Сырой распознанный текст (для аудита)")
    manual_barcode: bool = Field(False, description="Штрихкод введён вручную")
    manual_text: bool = Field(False, description="Стадия распознавания пропущена")
    captured_at: datetime = Field(default_factory=datetime.now)

    @field_validator("barcode")
    @classmethod
    def barcode_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Штрихкод не может быть пустым")
        return v

    @field_validator("expiry_date")
    @classmethod
    def expiry_date_iso_shape(cls, v: Optional[str]) -> Optional[str]:
        # Проверяем только форму: календарная валидность не требуется
        if v is not None and not ISO_DATE_SHAPE.match(v):
            raise ValueError(f"Дата должна быть в формате YYYY-MM-DD, получено: {v}")
        return v

    def to_payload(self) -> Dict[str, Optional[str]]:
        """Полезная нагрузка для хранилища записей."""
        return {
            "barcode": self.barcode,
            "lot": self.lot,
            "expiryDate": self.expiry_date,
        }


class ProductMetadata(BaseModel):
    """Сведения о продукте по штрихкоду."""

    model_config = ConfigDict(frozen=True)

    barcode: str
    found: bool = False
    name: str = ""
    ingredients: str = ""
    allergens: List[str] = Field(default_factory=list)
    brand: str = ""
    image_url: str = ""

    @classmethod
    def empty(cls, barcode: str) -> "ProductMetadata":
        """Пустой результат: продукт не найден или справочник недоступен."""
        return cls(barcode=barcode)
