"""
Изменяемое состояние одной попытки захвата.
"""

from dataclasses import dataclass, field
from typing import Optional

from contracts.capture_dto import CaptureStage, ExtractionResult, ManualOverride
from contracts.record_dto import CapturedRecord, ProductMetadata


@dataclass
class CaptureSession:
    """
    Состояние захвата от штрихкода до подтверждения.

    Стадия меняется только через CaptureWorkflow. На стадии REVIEW
    штрихкод всегда непустой; лот и срок годности могут быть пустыми.
    """
    stage: CaptureStage = CaptureStage.BARCODE_CAPTURE
    barcode: Optional[str] = None
    lot: Optional[str] = None
    expiry_date: Optional[str] = None
    raw_recognized_text: Optional[str] = None
    manual_override: ManualOverride = field(default_factory=ManualOverride)
    product: Optional[ProductMetadata] = None

    @property
    def has_barcode(self) -> bool:
        return bool(self.barcode and self.barcode.strip())

    def apply_extraction(self, result: ExtractionResult) -> None:
        """Подставляет найденные поля как начальные значения."""
        self.lot = result.lot
        self.expiry_date = result.expiry_date

    def clear_barcode(self) -> None:
        """Сбрасывает поля стадии штрихкода."""
        self.barcode = None
        self.product = None
        self.manual_override.barcode = False

    def clear_text_fields(self) -> None:
        """Сбрасывает поля стадии распознавания."""
        self.lot = None
        self.expiry_date = None
        self.raw_recognized_text = None
        self.manual_override.text = False

    def to_record(self) -> CapturedRecord:
        """Формирует неизменяемую запись для хранилища."""
        return CapturedRecord(
            barcode=self.barcode or "",
            lot=self.lot or None,
            expiry_date=self.expiry_date or None,
            raw_recognized_text=self.raw_recognized_text,
            manual_barcode=self.manual_override.barcode,
            manual_text=self.manual_override.text,
        )
