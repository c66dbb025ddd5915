# -*- coding: utf-8 -*-
"""Nutrition — Pydantic models."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class Food(BaseModel):
    """Nutrition facts per 100 g, as returned by the lookup."""

    name: str
    calories_per_100g: float = 0.0
    protein_per_100g: float = 0.0
    carbs_per_100g: float = 0.0
    fat_per_100g: float = 0.0
    fiber_per_100g: float = 0.0
    category: str = "Outros"


class FoodSwapSuggestion(BaseModel):
    food: str
    quantity: float = Field(..., gt=0, le=500, description="Grams of the candidate food")
    calories: float = Field(..., ge=0, description="kcal of that portion, rounded")
    category: str


class FoodSearchResponse(BaseModel):
    success: bool = True
    foods: List[Food]


class FoodSwapResponse(BaseModel):
    success: bool = True
    food: str
    quantity: float
    target_calories: float | None = None
    suggestions: List[FoodSwapSuggestion]
