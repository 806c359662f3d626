"""
Стадии захвата: штрихкод с камеры, текст со стоп-кадра.
"""

from .base import BaseCaptureStage, StageStatus
from .barcode_stage import BarcodeDetectionStage
from .text_stage import TextRecognitionStage, RecognizerState

__all__ = [
    "BaseCaptureStage",
    "StageStatus",
    "BarcodeDetectionStage",
    "TextRecognitionStage",
    "RecognizerState",
]
