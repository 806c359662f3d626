"""
Настройки проекта lotscan.

Значения по умолчанию можно переопределить через переменные окружения
или через config/capture.yaml (камера, штрихкоды, извлечение полей).
"""

import os
from pathlib import Path

# =============================================================================
# ПУТИ ПРОЕКТА
# =============================================================================
PROJECT_ROOT = Path(__file__).parent.parent
DATA_DIR = PROJECT_ROOT / "data"
OUTPUT_DIR = Path(os.getenv("LOTSCAN_OUTPUT_DIR", str(DATA_DIR / "records")))

# YAML с настройками захвата
CAPTURE_CONFIG_PATH = Path(__file__).parent / "capture.yaml"

# =============================================================================
# КАМЕРА
# =============================================================================
# Подсказка выбора камеры: "environment" (задняя) или "user" (фронтальная)
DEFAULT_FACING_HINT = "environment"

# Соответствие подсказки и индекса устройства OpenCV
CAMERA_DEVICES = {
    "environment": int(os.getenv("LOTSCAN_CAMERA_INDEX", "0")),
    "user": 1,
}

# Желаемое разрешение потока
FRAME_WIDTH = 1280
FRAME_HEIGHT = 720

# =============================================================================
# ШТРИХКОДЫ
# =============================================================================
# Частота сэмплирования кадров (кадров в секунду)
BARCODE_SAMPLE_RATE_HZ = 10.0

# Поддерживаемые символики (значения contracts.capture_dto.Symbology)
BARCODE_SYMBOLOGIES = ["EAN_13", "EAN_8", "CODE_128", "CODE_39", "UPC_A", "UPC_E"]

# =============================================================================
# РАСПОЗНАВАНИЕ ТЕКСТА
# =============================================================================
# Бэкенд распознавания: "trocr" (локальная модель) или "google_vision"
RECOGNITION_BACKEND = os.getenv("LOTSCAN_RECOGNITION_BACKEND", "trocr")

# Модель TrOCR для печатного текста
TROCR_MODEL_NAME = os.getenv("LOTSCAN_TROCR_MODEL", "microsoft/trocr-small-printed")
TROCR_MAX_NEW_TOKENS = 64

# Путь к JSON-файлу с ключом сервисного аккаунта (только для google_vision)
GOOGLE_APPLICATION_CREDENTIALS = os.getenv(
    "GOOGLE_APPLICATION_CREDENTIALS",
    str(PROJECT_ROOT / "config" / "google_credentials.json")
)

# =============================================================================
# ИЗВЛЕЧЕНИЕ ПОЛЕЙ
# =============================================================================
# Маркеры лота (итальянский + английский), регистр не важен
LOT_MARKERS = ["lotto", "lot", "l"]

# Префикс для двузначного года: 24 -> 2024
CENTURY_PREFIX = "20"

# =============================================================================
# ПОИСК ПРОДУКТА
# =============================================================================
PRODUCT_LOOKUP_URL = "https://world.openfoodfacts.org/api/v2/product/{barcode}.json"
PRODUCT_LOOKUP_TIMEOUT = 5.0
PRODUCT_LOOKUP_LANGUAGE = "it"

# =============================================================================
# ПРОВЕРКА КОНФИГУРАЦИИ
# =============================================================================
SUPPORTED_RECOGNITION_BACKENDS = ["trocr", "google_vision"]


def validate_config():
    """Проверяет корректность конфигурации."""
    errors = []

    if RECOGNITION_BACKEND not in SUPPORTED_RECOGNITION_BACKENDS:
        errors.append(
            f"Неизвестный бэкенд распознавания: {RECOGNITION_BACKEND}\n"
            f"Доступные: {SUPPORTED_RECOGNITION_BACKENDS}"
        )

    if RECOGNITION_BACKEND == "google_vision" and not Path(GOOGLE_APPLICATION_CREDENTIALS).exists():
        errors.append(
            f"Файл credentials не найден: {GOOGLE_APPLICATION_CREDENTIALS}"
        )

    if BARCODE_SAMPLE_RATE_HZ <= 0:
        errors.append("BARCODE_SAMPLE_RATE_HZ должен быть > 0")

    if errors:
        raise ValueError("\n".join(errors))

    # Создаём директорию для записей если не существует
    OUTPUT_DIR.mkdir(parents=True, exist_ok=True)

    return True
