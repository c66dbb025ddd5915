# -*- coding: utf-8 -*-
"""Nutrition — API endpoints (food search + swaps)."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from .models import FoodSearchResponse, FoodSwapResponse
from .swaps import calculate_calories, swap_calculator
from .usda import NutritionLookupError, get_usda_client

router = APIRouter(prefix="/api/nutrition", tags=["Nutrition"])


@router.get("/search", response_model=FoodSearchResponse, summary="Search foods (per 100 g facts)")
def search(q: str = Query(..., min_length=1, max_length=200)):
    try:
        foods = get_usda_client().search_foods(q)
    except NutritionLookupError as exc:
        raise HTTPException(status_code=502, detail=f"Nutrition lookup failed: {exc}") from exc
    return FoodSearchResponse(foods=foods)


@router.get("/swaps", response_model=FoodSwapResponse, summary="Calorie-equivalent food swaps")
def swaps(
    food: str = Query(..., min_length=1, max_length=200),
    quantity: float = Query(default=100, gt=0, le=5000, description="grams"),
):
    original = swap_calculator.get_nutrition_info(food)
    suggestions = swap_calculator.suggest_swaps(food, quantity) if original else []
    return FoodSwapResponse(
        food=food,
        quantity=quantity,
        target_calories=round(calculate_calories(original, quantity), 1) if original else None,
        suggestions=suggestions,
    )
