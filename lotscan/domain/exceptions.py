"""
Исключения для пайплайна захвата.

Ошибки камеры и модели перехватываются на границе стадии и превращаются
в переход на ручной ввод. Наружу из стадии они не выходят.
"""

from typing import Optional


class CaptureError(Exception):
    """Базовое исключение для ошибок пайплайна захвата."""

    def __init__(
        self,
        message: str,
        component: Optional[str] = None,
        original_error: Optional[Exception] = None
    ):
        self.message = message
        self.component = component
        self.original_error = original_error
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = f"Capture Error: {self.message}"
        if self.component:
            msg += f" (Component: {self.component})"
        if self.original_error:
            msg += f" [Original: {type(self.original_error).__name__}: {str(self.original_error)}]"
        return msg


class DeviceUnavailableError(CaptureError):
    """Камера недоступна: доступ запрещён или нет подходящего устройства."""
    pass


class CameraBusyError(CaptureError):
    """Повторный захват камеры, пока активен другой дескриптор."""
    pass


class HandleReleasedError(CaptureError):
    """Обращение к уже освобождённому дескриптору камеры."""
    pass


class CapabilityUnavailableError(CaptureError):
    """Возможность потока не поддерживается (например, фонарик). Не фатально."""
    pass


class RecognitionUnavailableError(CaptureError):
    """Модель распознавания не инициализирована ни в одном режиме."""
    pass


class RecognitionProcessingError(CaptureError):
    """Ошибка распознавания одного кадра. Можно повторить."""
    pass


class NoTextDetectedError(CaptureError):
    """Распознавание не вернуло пригодного текста. Можно повторить."""
    pass


class DecodeNoiseError(CaptureError):
    """Кадр без читаемого штрихкода. Никогда не выходит за пределы стадии."""
    pass


class InvalidTransitionError(CaptureError):
    """Действие недопустимо в текущем состоянии workflow."""
    pass


class RecordSinkError(CaptureError):
    """Ошибка сохранения готовой записи."""
    pass


class CaptureConfigurationError(CaptureError):
    """Ошибка конфигурации захвата."""
    pass
