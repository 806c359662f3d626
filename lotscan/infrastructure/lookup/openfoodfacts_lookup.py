"""
Справочник продуктов: Open Food Facts API v2.

Один запрос без повторов. Любая ошибка (сеть, таймаут, HTTP, невалидный
JSON) и "продукт не найден" дают пустой ProductMetadata: поиск продукта
не блокирует захват.
"""

from typing import Any, Dict, List, Optional

import requests
from loguru import logger

from config.settings import PRODUCT_LOOKUP_LANGUAGE, PRODUCT_LOOKUP_TIMEOUT, PRODUCT_LOOKUP_URL
from contracts.record_dto import ProductMetadata
from ...domain.interfaces import IProductLookup


class OpenFoodFactsLookup(IProductLookup):
    """Реализация IProductLookup поверх Open Food Facts."""

    def __init__(
        self,
        url_template: str = PRODUCT_LOOKUP_URL,
        timeout: float = PRODUCT_LOOKUP_TIMEOUT,
        language: str = PRODUCT_LOOKUP_LANGUAGE,
        session: Optional[requests.Session] = None
    ):
        """
        Args:
            url_template: Шаблон URL с плейсхолдером {barcode}
            timeout: Таймаут запроса в секундах
            language: Код языка для локализованных полей (name_it, ingredients_text_it)
            session: HTTP-сессия (по умолчанию новая requests.Session)
        """
        self.url_template = url_template
        self.timeout = timeout
        self.language = language
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def lookup(self, barcode: str) -> ProductMetadata:
        """Ищет продукт по штрихкоду. Никогда не выбрасывает исключений."""
        url = self.url_template.format(barcode=barcode)
        logger.debug(f"[OpenFoodFactsLookup] GET {url}")

        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"[OpenFoodFactsLookup] Поиск {barcode} не выполнен: {e}")
            return ProductMetadata.empty(barcode)

        if not isinstance(payload, dict) or payload.get("status") != 1:
            logger.info(f"[OpenFoodFactsLookup] Продукт {barcode} не найден")
            return ProductMetadata.empty(barcode)

        product = payload.get("product")
        if not isinstance(product, dict):
            return ProductMetadata.empty(barcode)

        metadata = self._parse_product(barcode, product)
        logger.info(f"[OpenFoodFactsLookup] {barcode}: {metadata.name or '(без названия)'}")
        return metadata

    def _parse_product(self, barcode: str, product: Dict[str, Any]) -> ProductMetadata:
        return ProductMetadata(
            barcode=barcode,
            found=True,
            name=self._localized(product, "product_name"),
            ingredients=self._localized(product, "ingredients_text"),
            allergens=self._parse_allergens(product.get("allergens_tags")),
            brand=str(product.get("brands") or ""),
            image_url=str(product.get("image_url") or ""),
        )

    def _localized(self, product: Dict[str, Any], field: str) -> str:
        # Локализованное поле, затем общее
        value = product.get(f"{field}_{self.language}") or product.get(field) or ""
        return str(value).strip()

    @staticmethod
    def _parse_allergens(tags: Any) -> List[str]:
        if not isinstance(tags, list):
            return []

        allergens = []
        for tag in tags:
            if not isinstance(tag, str):
                continue
            # "en:gluten" -> "gluten"
            name = tag.split(":", 1)[1] if ":" in tag else tag
            if name:
                allergens.append(name)
        return allergens
