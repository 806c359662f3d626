"""
Конфигурация захвата: Pydantic-модели и загрузчик YAML.
"""

from .capture_config import CaptureConfig, CameraConfig, BarcodeConfig, ExtractionConfig
from .config_loader import CaptureConfigLoader

__all__ = [
    "CaptureConfig",
    "CameraConfig",
    "BarcodeConfig",
    "ExtractionConfig",
    "CaptureConfigLoader",
]
