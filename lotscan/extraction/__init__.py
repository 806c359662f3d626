"""
Извлечение структурированных полей (лот, срок годности) из распознанного текста.
"""

from .field_extractor import FieldExtractionEngine

__all__ = ["FieldExtractionEngine"]
