from .openfoodfacts_lookup import OpenFoodFactsLookup

__all__ = ["OpenFoodFactsLookup"]
