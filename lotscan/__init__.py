"""
lotscan - захват штрихкода, кода лота и срока годности с камеры.

Пайплайн:
  BARCODE_CAPTURE (pyzbar) -> TEXT_CAPTURE (TrOCR / Google Vision)
  -> REVIEW (ручная правка) -> CapturedRecord {barcode, lot, expiryDate}

На каждой стадии доступен ручной ввод вместо камеры.
"""

__version__ = "0.1.0"
