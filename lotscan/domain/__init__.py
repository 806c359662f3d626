"""
Domain слой пайплайна захвата.

Содержит интерфейсы (абстрактные классы) и исключения.
"""

from .interfaces import (
    IVideoSource,
    ICameraBackend,
    IBarcodeDecoder,
    ITextRecognizer,
    IProductLookup,
    IRecordSink,
)

from .exceptions import (
    CaptureError,
    DeviceUnavailableError,
    CameraBusyError,
    HandleReleasedError,
    CapabilityUnavailableError,
    RecognitionUnavailableError,
    RecognitionProcessingError,
    NoTextDetectedError,
    DecodeNoiseError,
    InvalidTransitionError,
    RecordSinkError,
    CaptureConfigurationError,
)

__all__ = [
    # Интерфейсы
    "IVideoSource",
    "ICameraBackend",
    "IBarcodeDecoder",
    "ITextRecognizer",
    "IProductLookup",
    "IRecordSink",

    # Исключения
    "CaptureError",
    "DeviceUnavailableError",
    "CameraBusyError",
    "HandleReleasedError",
    "CapabilityUnavailableError",
    "RecognitionUnavailableError",
    "RecognitionProcessingError",
    "NoTextDetectedError",
    "DecodeNoiseError",
    "InvalidTransitionError",
    "RecordSinkError",
    "CaptureConfigurationError",
]
