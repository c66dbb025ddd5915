# -*- coding: utf-8 -*-
"""Nutrition — USDA FoodData Central client.

Search results are normalised to per-100 g ``Food`` records and cached for
``settings.nutrition_cache_ttl`` seconds, keyed by the lowercased query.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from .cache import TTLCache
from .models import Food

logger = logging.getLogger(__name__)

# FoodData Central nutrient numbers.
ENERGY_KCAL = "208"
PROTEIN = "203"
CARBS = "205"
FAT = "204"
FIBER = "291"

_COOKING_WORDS = re.compile(r"\b(raw|cooked|boiled|grilled|baked)\b")

_CATEGORY_KEYWORDS = (
    ("Carboidratos", ("rice", "bread", "pasta", "potato", "oat")),
    ("Proteínas", ("chicken", "beef", "fish", "egg", "bean")),
    ("Vegetais", ("broccoli", "spinach", "lettuce", "tomato", "carrot")),
    ("Frutas", ("apple", "banana", "orange", "mango", "berry")),
    ("Gorduras", ("oil", "avocado", "nut", "seed")),
)

FALLBACK_FOODS = (
    Food(
        name="arroz branco",
        calories_per_100g=130,
        protein_per_100g=2.7,
        carbs_per_100g=28,
        fat_per_100g=0.3,
        fiber_per_100g=0.4,
        category="Carboidratos",
    ),
    Food(
        name="feijão carioca",
        calories_per_100g=76,
        protein_per_100g=4.8,
        carbs_per_100g=13.6,
        fat_per_100g=0.5,
        fiber_per_100g=8.5,
        category="Proteínas",
    ),
    Food(
        name="frango grelhado",
        calories_per_100g=165,
        protein_per_100g=31,
        carbs_per_100g=0,
        fat_per_100g=3.6,
        fiber_per_100g=0,
        category="Proteínas",
    ),
)


class NutritionLookupError(RuntimeError):
    """The nutrition service could not be reached or returned garbage."""


def clean_food_name(description: str) -> str:
    name = (description or "").lower()
    name = name.split(",", 1)[0]
    name = _COOKING_WORDS.sub("", name)
    return re.sub(r"\s+", " ", name).strip()


def categorize_food(description: str) -> str:
    desc = (description or "").lower()
    for category, keywords in _CATEGORY_KEYWORDS:
        if any(k in desc for k in keywords):
            return category
    return "Outros"


def _find_nutrient(nutrients: Any, number: str) -> float:
    if not isinstance(nutrients, list):
        return 0.0
    for nutrient in nutrients:
        if not isinstance(nutrient, dict):
            continue
        # Search results carry a flat nutrientNumber; detail responses nest it.
        num = nutrient.get("nutrientNumber")
        if num is None and isinstance(nutrient.get("nutrient"), dict):
            num = nutrient["nutrient"].get("number")
        if str(num) != number:
            continue
        value = nutrient.get("value", nutrient.get("amount"))
        if value:
            try:
                return float(value)
            except (TypeError, ValueError):
                return 0.0
    return 0.0


def parse_usda_food(raw: Dict[str, Any]) -> Optional[Food]:
    description = raw.get("description")
    if not isinstance(description, str) or not description.strip():
        return None
    nutrients = raw.get("foodNutrients")
    return Food(
        name=clean_food_name(description),
        calories_per_100g=_find_nutrient(nutrients, ENERGY_KCAL),
        protein_per_100g=_find_nutrient(nutrients, PROTEIN),
        carbs_per_100g=_find_nutrient(nutrients, CARBS),
        fat_per_100g=_find_nutrient(nutrients, FAT),
        fiber_per_100g=_find_nutrient(nutrients, FIBER),
        category=categorize_food(description),
    )


def fallback_foods(query: str) -> List[Food]:
    q = (query or "").lower().strip()
    if not q:
        return []
    return [f.model_copy() for f in FALLBACK_FOODS if q in f.name or f.name in q]


class USDAClient:
    """Client for the FoodData Central search/detail endpoints."""

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        page_size: Optional[int] = None,
        cache: Optional[TTLCache[List[Food]]] = None,
        use_fallback: Optional[bool] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.api_key = api_key or settings.usda_api_key
        self.base_url = (base_url or settings.usda_base_url).rstrip("/")
        self.timeout = settings.usda_timeout if timeout is None else timeout
        self.page_size = page_size or settings.usda_page_size
        self.cache: TTLCache[List[Food]] = (
            cache if cache is not None else TTLCache(settings.nutrition_cache_ttl)
        )
        self.use_fallback = settings.nutrition_fallback if use_fallback is None else use_fallback
        self._transport = transport

    def _get(self, path: str, params: Dict[str, Any]) -> Any:
        query = dict(params)
        query["api_key"] = self.api_key
        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            resp = client.get(f"{self.base_url}/{path.lstrip('/')}", params=query)
            resp.raise_for_status()
            return resp.json()

    def search_foods(self, query: str) -> List[Food]:
        cache_key = (query or "").lower().strip()
        cached = self.cache.get(cache_key)
        if cached is not None:
            return list(cached)

        try:
            data = self._get(
                "foods/search",
                {
                    "query": query,
                    "pageSize": str(self.page_size),
                    "dataType": "Foundation,SR Legacy",
                    "sortBy": "dataType.keyword",
                    "sortOrder": "asc",
                },
            )
            raw_foods = data.get("foods") if isinstance(data, dict) else None
            if not isinstance(raw_foods, list):
                raise NutritionLookupError("USDA search response has no 'foods' list")
        except (httpx.HTTPError, ValueError, NutritionLookupError) as exc:
            logger.warning("USDA search failed for %r: %s", query, exc)
            if self.use_fallback:
                return fallback_foods(query)
            if isinstance(exc, NutritionLookupError):
                raise
            raise NutritionLookupError(f"USDA search failed: {exc}") from exc

        foods = [f for f in (parse_usda_food(r) for r in raw_foods if isinstance(r, dict)) if f]
        self.cache.set(cache_key, foods)
        return list(foods)

    def get_food_details(self, fdc_id: int) -> Optional[Food]:
        try:
            data = self._get(f"food/{int(fdc_id)}", {})
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("USDA detail lookup failed for %s: %s", fdc_id, exc)
            return None
        return parse_usda_food(data) if isinstance(data, dict) else None

    def clear_cache(self) -> None:
        self.cache.clear()


_client: Optional[USDAClient] = None


def get_usda_client() -> USDAClient:
    global _client
    if _client is None:
        _client = USDAClient()
    return _client
