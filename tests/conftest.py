"""
Общие фикстуры для тестов пайплайна захвата.
"""

import pytest

from fakes import FakeCameraBackend, SpyCameraManager
from lotscan.domain.exceptions import DecodeNoiseError


@pytest.fixture
def camera_backend():
    return FakeCameraBackend()


@pytest.fixture
def camera_manager(camera_backend):
    return SpyCameraManager(camera_backend)


@pytest.fixture
def denied_camera_manager():
    """Менеджер, у которого камера всегда недоступна."""
    return SpyCameraManager(FakeCameraBackend(fail=True))


@pytest.fixture
def noise():
    return DecodeNoiseError(message="шум", component="FakeBarcodeDecoder")
