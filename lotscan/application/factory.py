"""
Фабрика для создания компонентов пайплайна захвата.

Предоставляет удобные методы для создания и конфигурации
всех компонентов через единый интерфейс.
"""

from pathlib import Path
from typing import Any, Dict, Optional

from loguru import logger

from config.settings import RECOGNITION_BACKEND, SUPPORTED_RECOGNITION_BACKENDS
from ..camera.opencv_backend import OpenCVCameraBackend
from ..camera.resource_manager import CameraResourceManager
from ..configuration.capture_config import CaptureConfig, ExtractionConfig
from ..configuration.config_loader import CaptureConfigLoader
from ..domain.exceptions import CaptureConfigurationError
from ..domain.interfaces import (
    IBarcodeDecoder,
    IProductLookup,
    IRecordSink,
    ITextRecognizer,
)
from ..extraction.field_extractor import FieldExtractionEngine
from ..infrastructure.decoders.pyzbar_decoder import PyzbarBarcodeDecoder
from ..infrastructure.lookup.openfoodfacts_lookup import OpenFoodFactsLookup
from ..infrastructure.record_store import JsonRecordStore
from ..workflow.capture_workflow import CaptureWorkflow


class CaptureComponentFactory:
    """
    Фабрика для создания компонентов пайплайна захвата.

    Пайплайн отвечает за:
    - Детекцию штрихкода с камеры
    - Распознавание лота и срока годности со стоп-кадра
    - Передачу подтверждённой записи в хранилище
    """

    @staticmethod
    def create_camera_manager(config: Optional[CaptureConfig] = None) -> CameraResourceManager:
        """
        Создает менеджер камеры поверх OpenCV.

        Args:
            config: Конфигурация захвата (индексы устройств)
        """
        logger.debug("[Capture] Создание менеджера камеры")
        devices = config.camera.devices if config is not None else None
        return CameraResourceManager(OpenCVCameraBackend(devices=devices))

    @staticmethod
    def create_barcode_decoder() -> IBarcodeDecoder:
        logger.debug("[Capture] Создание декодера штрихкодов")
        return PyzbarBarcodeDecoder()

    @staticmethod
    def create_text_recognizer(backend: Optional[str] = None) -> ITextRecognizer:
        """
        Создает модель распознавания текста.

        Модель не загружается здесь: initialize() вызывает стадия распознавания.

        Args:
            backend: "trocr" или "google_vision" (по умолчанию из settings)

        Raises:
            CaptureConfigurationError: неизвестный бэкенд
        """
        backend = backend or RECOGNITION_BACKEND
        logger.debug(f"[Capture] Создание модели распознавания: {backend}")

        # Импорт по требованию: torch и google-cloud-vision тяжёлые
        if backend == "trocr":
            from ..infrastructure.recognition.trocr_recognizer import TrOCRTextRecognizer
            return TrOCRTextRecognizer()

        if backend == "google_vision":
            from ..infrastructure.recognition.google_vision_recognizer import GoogleVisionTextRecognizer
            return GoogleVisionTextRecognizer()

        raise CaptureConfigurationError(
            message=f"Неизвестный бэкенд распознавания: {backend}. Доступные: {SUPPORTED_RECOGNITION_BACKENDS}",
            component="CaptureComponentFactory"
        )

    @staticmethod
    def create_field_extractor(config: Optional[ExtractionConfig] = None) -> FieldExtractionEngine:
        logger.debug("[Capture] Создание движка извлечения полей")
        if config is None:
            return FieldExtractionEngine()
        return FieldExtractionEngine(lot_markers=config.lot_markers, century_prefix=config.century_prefix)

    @staticmethod
    def create_record_sink(output_dir: Optional[Path] = None) -> IRecordSink:
        logger.debug("[Capture] Создание хранилища записей")
        return JsonRecordStore(output_dir)

    @staticmethod
    def create_product_lookup() -> IProductLookup:
        logger.debug("[Capture] Создание справочника продуктов")
        return OpenFoodFactsLookup()

    @staticmethod
    def create_capture_workflow(
        config: Optional[CaptureConfig] = None,
        camera_manager: Optional[CameraResourceManager] = None,
        decoder: Optional[IBarcodeDecoder] = None,
        recognizer: Optional[ITextRecognizer] = None,
        record_sink: Optional[IRecordSink] = None,
        product_lookup: Optional[IProductLookup] = None,
        recognition_backend: Optional[str] = None,
        **workflow_kwargs
    ) -> CaptureWorkflow:
        """
        Создает workflow захвата.

        Args:
            config: Конфигурация захвата (по умолчанию значения settings)
            camera_manager: Менеджер камеры (опционально)
            decoder: Декодер штрихкодов (опционально)
            recognizer: Модель распознавания (опционально)
            record_sink: Хранилище записей (опционально)
            product_lookup: Справочник продуктов (опционально, без него поиск не выполняется)
            recognition_backend: Бэкенд распознавания, если recognizer не передан
            **workflow_kwargs: Дополнительные аргументы CaptureWorkflow (например, on_notice)

        Returns:
            CaptureWorkflow в стадии BARCODE_CAPTURE (не запущен)
        """
        logger.debug("[Capture] Создание workflow захвата")
        config = config or CaptureConfig()

        if camera_manager is None:
            camera_manager = CaptureComponentFactory.create_camera_manager(config)

        if decoder is None:
            decoder = CaptureComponentFactory.create_barcode_decoder()

        if recognizer is None:
            recognizer = CaptureComponentFactory.create_text_recognizer(recognition_backend)

        return CaptureWorkflow(
            camera_manager=camera_manager,
            decoder=decoder,
            recognizer=recognizer,
            extractor=CaptureComponentFactory.create_field_extractor(config.extraction),
            record_sink=record_sink,
            product_lookup=product_lookup,
            symbologies=config.barcode.symbologies,
            sample_rate_hz=config.barcode.sample_rate_hz,
            facing_hint=config.camera.facing_hint,
            **workflow_kwargs
        )

    @staticmethod
    def create_default_capture_workflow(config_path: Optional[Path] = None, **workflow_kwargs) -> CaptureWorkflow:
        """
        Создает workflow захвата с настройками по умолчанию.

        Конфигурация из config/capture.yaml, хранилище JSON, поиск в Open Food Facts.
        """
        logger.info("[Capture] Создание workflow захвата с настройками по умолчанию")

        config = CaptureConfigLoader(config_path).load()

        return CaptureComponentFactory.create_capture_workflow(
            config=config,
            record_sink=CaptureComponentFactory.create_record_sink(),
            product_lookup=CaptureComponentFactory.create_product_lookup(),
            **workflow_kwargs
        )

    @staticmethod
    def get_capture_info() -> Dict[str, Any]:
        """
        Возвращает информацию о пайплайне захвата.

        Returns:
            Словарь с информацией о доступных компонентах и их возможностях
        """
        return {
            "domain": "Capture",
            "responsibility": "Штрихкод + лот + срок годности с камеры",
            "output": "CapturedRecord {barcode, lot, expiryDate}",
            "components": {
                "camera_manager": "CameraResourceManager",
                "barcode_decoder": "PyzbarBarcodeDecoder",
                "text_recognizer": "TrOCRTextRecognizer | GoogleVisionTextRecognizer",
                "field_extractor": "FieldExtractionEngine",
                "record_sink": "JsonRecordStore",
                "product_lookup": "OpenFoodFactsLookup",
                "workflow": "CaptureWorkflow"
            },
            "capabilities": [
                "barcode_detection",
                "text_recognition",
                "field_extraction",
                "manual_fallback",
                "product_lookup"
            ],
            "dependencies": ["OpenCV", "pyzbar", "transformers", "Google Cloud Vision API", "requests"]
        }
