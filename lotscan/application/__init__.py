from .factory import CaptureComponentFactory

__all__ = ["CaptureComponentFactory"]
