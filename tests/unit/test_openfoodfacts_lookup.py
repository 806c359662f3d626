"""
Unit тесты для OpenFoodFactsLookup.

HTTP-сессия подменяется: сеть не используется.
"""

import pytest
import requests

from lotscan.infrastructure.lookup.openfoodfacts_lookup import OpenFoodFactsLookup


class FakeResponse:
    def __init__(self, payload=None, status_code=200, json_error=None):
        self.payload = payload
        self.status_code = status_code
        self.json_error = json_error

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if self.json_error is not None:
            raise self.json_error
        return self.payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.headers = {}
        self.requests = []

    def get(self, url, timeout=None):
        self.requests.append((url, timeout))
        if self.error is not None:
            raise self.error
        return self.response


PRODUCT_PAYLOAD = {
    "status": 1,
    "product": {
        "product_name": "Spaghetti",
        "product_name_it": "Spaghetti n.5",
        "ingredients_text": "durum wheat semolina",
        "allergens_tags": ["en:gluten", "it:glutine"],
        "brands": "Barilla",
        "image_url": "https://images.example/8076800195057.jpg",
    },
}


def test_found_product_prefers_localized_fields():
    """Тест: *_it поля приоритетнее общих, префиксы аллергенов убраны."""
    session = FakeSession(FakeResponse(PRODUCT_PAYLOAD))
    lookup = OpenFoodFactsLookup(session=session, timeout=2.0)

    product = lookup.lookup("8076800195057")

    assert product.found is True
    assert product.name == "Spaghetti n.5"
    assert product.ingredients == "durum wheat semolina"
    assert product.allergens == ["gluten", "glutine"]
    assert product.brand == "Barilla"
    assert session.requests == [
        ("https://world.openfoodfacts.org/api/v2/product/8076800195057.json", 2.0)
    ]


def test_not_found_returns_empty():
    session = FakeSession(FakeResponse({"status": 0, "status_verbose": "product not found"}))
    product = OpenFoodFactsLookup(session=session).lookup("123")

    assert product.found is False
    assert product.barcode == "123"
    assert product.name == ""


@pytest.mark.parametrize("session", [
    FakeSession(error=requests.ConnectionError("offline")),
    FakeSession(error=requests.Timeout("slow")),
    FakeSession(FakeResponse(status_code=503)),
    FakeSession(FakeResponse(json_error=ValueError("not json"))),
    FakeSession(FakeResponse(["unexpected"])),
    FakeSession(FakeResponse({"status": 1, "product": None})),
])
def test_failures_degrade_to_empty(session):
    """Любая ошибка поиска - пустой результат, не исключение."""
    product = OpenFoodFactsLookup(session=session).lookup("123")
    assert product.found is False
    assert product.allergens == []
