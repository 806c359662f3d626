"""
Загрузчик конфигурации захвата из YAML.

Структура файла (config/capture.yaml):
  camera:      facing_hint, devices
  barcode:     sample_rate_hz, symbologies
  extraction:  lot_markers, century_prefix

Отсутствующий файл или секция -> значения из config/settings.py.
Использует Pydantic для валидации структуры конфигурации.
"""

from pathlib import Path
from typing import Optional

import yaml
from loguru import logger
from pydantic import ValidationError

from config.settings import CAPTURE_CONFIG_PATH
from ..domain.exceptions import CaptureConfigurationError
from .capture_config import CaptureConfig


class CaptureConfigLoader:
    """Загружает CaptureConfig из YAML с валидацией через Pydantic."""

    SECTIONS = ("camera", "barcode", "extraction")

    def __init__(self, config_path: Optional[Path] = None):
        """
        Args:
            config_path: Путь к YAML (по умолчанию config/capture.yaml)
        """
        self.config_path = Path(config_path) if config_path is not None else CAPTURE_CONFIG_PATH

    def load(self) -> CaptureConfig:
        """
        Загружает и валидирует конфигурацию.

        Returns:
            CaptureConfig: Валидированная конфигурация

        Raises:
            CaptureConfigurationError: YAML не читается или конфигурация невалидна
        """
        if not self.config_path.exists():
            logger.debug(f"[CaptureConfigLoader] {self.config_path} не найден, используем значения по умолчанию")
            return CaptureConfig()

        logger.debug(f"[CaptureConfigLoader] Загрузка конфига: {self.config_path}")

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise CaptureConfigurationError(
                message=f"Не удалось прочитать {self.config_path}",
                component="CaptureConfigLoader",
                original_error=e
            )

        if not isinstance(data, dict):
            raise CaptureConfigurationError(
                message=f"Корень {self.config_path} должен быть словарём",
                component="CaptureConfigLoader"
            )

        unknown = set(data) - set(self.SECTIONS)
        if unknown:
            logger.warning(f"[CaptureConfigLoader] Неизвестные секции проигнорированы: {sorted(unknown)}")

        # Пустая секция в YAML (None) = значения по умолчанию
        config_dict = {key: data[key] for key in self.SECTIONS if data.get(key)}

        try:
            return CaptureConfig(**config_dict)
        except ValidationError as e:
            logger.error(f"[CaptureConfigLoader] Ошибки Pydantic:\n{e}")
            raise CaptureConfigurationError(
                message=f"Конфигурация {self.config_path} невалидна",
                component="CaptureConfigLoader",
                original_error=e
            ) from e
