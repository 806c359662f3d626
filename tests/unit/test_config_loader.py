"""
Unit-тесты для CaptureConfigLoader.

ЦКП: Проверка загрузки capture.yaml и валидации через Pydantic.
"""

import pytest

from contracts.capture_dto import Symbology
from lotscan.configuration.capture_config import CaptureConfig
from lotscan.configuration.config_loader import CaptureConfigLoader
from lotscan.domain.exceptions import CaptureConfigurationError


def write_yaml(tmp_path, text):
    path = tmp_path / "capture.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestBundledConfig:
    """Тесты конфига из репозитория."""

    def test_default_config_loads(self):
        """config/capture.yaml должен загружаться без ошибок."""
        config = CaptureConfigLoader().load()

        assert config.camera.facing_hint == "environment"
        assert config.barcode.sample_rate_hz == 10
        assert Symbology.EAN_13 in config.barcode.symbologies
        assert config.extraction.lot_markers == ["lotto", "lot", "l"]


class TestCustomConfig:
    """Тесты пользовательских YAML файлов."""

    def test_missing_file_gives_defaults(self, tmp_path):
        config = CaptureConfigLoader(tmp_path / "absent.yaml").load()
        assert config == CaptureConfig()

    def test_partial_config(self, tmp_path):
        path = write_yaml(tmp_path, "extraction:\n  lot_markers: [charge, ch.]\n")
        config = CaptureConfigLoader(path).load()

        assert config.extraction.lot_markers == ["charge", "ch."]
        assert config.barcode == CaptureConfig().barcode

    def test_empty_section_gives_defaults(self, tmp_path):
        path = write_yaml(tmp_path, "camera:\nbarcode:\n  sample_rate_hz: 5\n")
        config = CaptureConfigLoader(path).load()

        assert config.camera == CaptureConfig().camera
        assert config.barcode.sample_rate_hz == 5

    def test_empty_file_gives_defaults(self, tmp_path):
        assert CaptureConfigLoader(write_yaml(tmp_path, "")).load() == CaptureConfig()

    def test_unknown_section_ignored(self, tmp_path):
        path = write_yaml(tmp_path, "network:\n  proxy: none\n")
        assert CaptureConfigLoader(path).load() == CaptureConfig()


class TestInvalidConfig:
    """Тесты ошибок валидации."""

    @pytest.mark.parametrize("text", [
        "barcode:\n  sample_rate_hz: 0\n",
        "barcode:\n  symbologies: [AZTEC]\n",
        "barcode:\n  symbologies: []\n",
        "extraction:\n  lot_markers: ['', ' ']\n",
        "extraction:\n  century_prefix: '2'\n",
        "camera:\n  devices: {environment: -1}\n",
    ])
    def test_invalid_values(self, tmp_path, text):
        with pytest.raises(CaptureConfigurationError):
            CaptureConfigLoader(write_yaml(tmp_path, text)).load()

    def test_root_must_be_mapping(self, tmp_path):
        with pytest.raises(CaptureConfigurationError):
            CaptureConfigLoader(write_yaml(tmp_path, "- camera\n- barcode\n")).load()

    def test_broken_yaml(self, tmp_path):
        with pytest.raises(CaptureConfigurationError):
            CaptureConfigLoader(write_yaml(tmp_path, "camera: [unclosed\n")).load()
