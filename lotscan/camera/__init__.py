"""
Камера: владение потоком, бэкенд OpenCV, кодирование кадров.
"""

from .handle import MediaCaptureHandle
from .resource_manager import CameraResourceManager
from .opencv_backend import OpenCVCameraBackend, OpenCVVideoSource
from .frame_encoder import FrameEncoder

__all__ = [
    "MediaCaptureHandle",
    "CameraResourceManager",
    "OpenCVCameraBackend",
    "OpenCVVideoSource",
    "FrameEncoder",
]
