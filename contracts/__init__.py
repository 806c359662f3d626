"""
Контракты DTO проекта lotscan.

Контракты:
- Стадии -> Workflow: ExtractionResult, LiveCapture/ManualEntry (capture_dto.py)
- Workflow -> хранилище: CapturedRecord (record_dto.py)
- Справочник продуктов -> Workflow: ProductMetadata (record_dto.py)
"""

# Стадии -> Workflow
from .capture_dto import (
    CaptureStage,
    Symbology,
    LiveCapture,
    ManualEntry,
    StageOutcome,
    ManualOverride,
    ExtractionResult,
)

# Workflow -> коллабораторы
from .record_dto import CapturedRecord, ProductMetadata

__all__ = [
    # Стадии -> Workflow
    "CaptureStage",
    "Symbology",
    "LiveCapture",
    "ManualEntry",
    "StageOutcome",
    "ManualOverride",
    "ExtractionResult",
    # Workflow -> коллабораторы
    "CapturedRecord",
    "ProductMetadata",
]
