# -*- coding: utf-8 -*-
"""Chat — food-swap intent detection and the canned swap answer.

Messages asking to replace one food with another ("posso trocar 120g de
arroz?") are answered from the calorie calculator instead of the model.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from ..nutrition.models import FoodSwapSuggestion

DEFAULT_QUANTITY_G = 100

SWAP_KEYWORDS = (
    "substituir",
    "trocar",
    "substituição",
    "troca",
    "equivalente",
    "similar",
    "parecido",
    "mesmo valor",
    "mesma caloria",
    "swap",
    "alternativa",
    "opção",
    "pode comer",
    "no lugar de",
)

_FOOD = r"([a-záàâãéêíóôõúç\s]+)"

# (pattern, quantity group, food group)
_QUANTITY_PATTERNS = (
    (re.compile(r"(\d+)\s*g?\s+de\s+" + _FOOD, re.IGNORECASE), 1, 2),
    (re.compile(_FOOD + r"\s+(\d+)\s*g", re.IGNORECASE), 2, 1),
    (re.compile(r"(\d+)\s*gramas?\s+de\s+" + _FOOD, re.IGNORECASE), 1, 2),
)

_NAME_ONLY = re.compile(r"(?:substituir|trocar|no lugar de)\s+" + _FOOD, re.IGNORECASE)

# Leading request words swallowed by the greedy food group in "trocar arroz 120g".
_LEAD_IN = re.compile(
    r"^.*\b(?:substituir|trocar|no lugar de|comer|posso|quero)\s+",
    re.IGNORECASE,
)
_ARTICLE = re.compile(r"^(?:o|a|os|as|um|uma)\s+", re.IGNORECASE)
_TAIL = re.compile(r"\s+(?:por|pelo|pela|com|e|ou)\s+.*$", re.IGNORECASE)

_DISCLAIMER = "*Informações apenas educativas. Consulte um nutricionista para orientações personalizadas.*"


@dataclass(frozen=True)
class FoodMention:
    food: str
    quantity: int = DEFAULT_QUANTITY_G


def is_food_swap_query(message: str) -> bool:
    lowered = (message or "").lower()
    return any(keyword in lowered for keyword in SWAP_KEYWORDS)


def _clean_food(raw: str) -> str:
    food = " ".join(raw.split())
    food = _LEAD_IN.sub("", food)
    food = _ARTICLE.sub("", food)
    food = _TAIL.sub("", food)
    return food.strip().lower()


def extract_food_info(message: str) -> Optional[FoodMention]:
    """Pull the food (and grams, when given) out of a swap question."""
    text = message or ""
    for pattern, qty_group, food_group in _QUANTITY_PATTERNS:
        m = pattern.search(text)
        if not m:
            continue
        food = _clean_food(m.group(food_group))
        quantity = int(m.group(qty_group))
        if food and quantity > 0:
            return FoodMention(food=food, quantity=quantity)

    m = _NAME_ONLY.search(text)
    if m:
        food = _clean_food(m.group(1))
        if food:
            return FoodMention(food=food)
    return None


def _grams(value: float) -> str:
    return f"{value:g}"


def format_swap_answer(
    mention: FoodMention,
    original_calories: Optional[float],
    suggestions: Iterable[FoodSwapSuggestion],
) -> str:
    calories = str(round(original_calories)) if original_calories is not None else "N/A"
    lines = [f"**Substituições para {mention.food} ({mention.quantity}g = {calories} kcal):**", ""]
    for index, swap in enumerate(suggestions, start=1):
        lines.append(f"{index}. **{swap.food}** - {_grams(swap.quantity)}g ({swap.category})")
        lines.append(f"   • Calorias: {_grams(swap.calories)} kcal")
        lines.append("")
    lines.append(_DISCLAIMER)
    return "\n".join(lines)
