# -*- coding: utf-8 -*-
"""Nutrition — calorie-equivalent food swap calculator."""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol

from .models import Food, FoodSwapSuggestion
from .usda import get_usda_client

logger = logging.getLogger(__name__)

MAX_PORTION_G = 500.0
MAX_SUGGESTIONS = 3

# One probe per food group: carbs, proteins, vegetables, fruits, fats.
CATEGORY_PROBES = (
    "rice bread pasta potato",
    "chicken beef fish egg bean",
    "broccoli spinach carrot tomato",
    "apple banana orange mango",
    "avocado nuts oil seeds",
)


class FoodLookup(Protocol):
    def search_foods(self, query: str) -> List[Food]: ...


def calculate_calories(food: Food, quantity: float) -> float:
    return food.calories_per_100g * quantity / 100


def calculate_equivalent_quantity(target_calories: float, calories_per_100g: float) -> float:
    return target_calories * 100 / calories_per_100g


class FoodSwapCalculator:
    """Suggest foods that match the calories of ``quantity`` grams of another food."""

    def __init__(self, lookup: Optional[FoodLookup] = None) -> None:
        self._lookup = lookup

    @property
    def lookup(self) -> FoodLookup:
        return self._lookup or get_usda_client()

    def find_food(self, name: str) -> Optional[Food]:
        results = self.lookup.search_foods(name)
        return results[0] if results else None

    def get_nutrition_info(self, name: str) -> Optional[Food]:
        try:
            return self.find_food(name)
        except Exception as exc:
            logger.warning("nutrition info lookup failed for %r: %s", name, exc)
            return None

    def _gather_candidates(self, original: Food) -> List[Food]:
        seen = {original.name}
        candidates: List[Food] = []
        for probe in CATEGORY_PROBES:
            try:
                results = self.lookup.search_foods(probe)
            except Exception as exc:
                logger.warning("swap probe %r failed: %s", probe, exc)
                continue
            for food in results:
                if food.name in seen:
                    continue
                seen.add(food.name)
                candidates.append(food)
        return candidates

    def suggest_swaps(self, food_name: str, quantity: float = 100) -> List[FoodSwapSuggestion]:
        """Top suggestions ordered by distance to the target calories.

        Unknown foods and lookup failures yield an empty list.
        """
        try:
            food = self.find_food(food_name)
        except Exception as exc:
            logger.warning("swap lookup failed for %r: %s", food_name, exc)
            return []
        if food is None:
            return []

        target = calculate_calories(food, quantity)
        suggestions: List[FoodSwapSuggestion] = []
        for candidate in self._gather_candidates(food):
            if candidate.calories_per_100g <= 0:
                continue
            equivalent = calculate_equivalent_quantity(target, candidate.calories_per_100g)
            if equivalent <= 0 or equivalent > MAX_PORTION_G:
                continue
            portion = round(equivalent, 1)
            if portion <= 0:
                continue
            suggestions.append(
                FoodSwapSuggestion(
                    food=candidate.name,
                    quantity=portion,
                    calories=float(round(calculate_calories(candidate, portion))),
                    category=candidate.category,
                )
            )

        # sorted() is stable: equal distances keep discovery order.
        ranked = sorted(suggestions, key=lambda s: abs(s.calories - target))
        return ranked[:MAX_SUGGESTIONS]


swap_calculator = FoodSwapCalculator()
