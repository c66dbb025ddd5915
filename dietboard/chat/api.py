# -*- coding: utf-8 -*-
"""Chat — API endpoints (diet assistant)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, HTTPException, Query

from ..ai.errors import AIServiceError
from ..ai.gemini import generate_text
from ..auth.storage import require_user
from ..diet.storage import get_diet_plan
from ..nutrition.swaps import calculate_calories, swap_calculator
from .intent import extract_food_info, format_swap_answer, is_food_swap_query
from .models import ChatHistoryResponse, ChatMessage, ChatReplyResponse, ChatRequest
from .storage import append_message, list_messages, recent_messages

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["Chat"])

HISTORY_WINDOW = 6
NO_PLAN_TEXT = "Nenhum plano alimentar disponível"

SYSTEM_PROMPT = """Você é um assistente especializado em substituições alimentares baseadas em calorias. Suas respostas devem ser:

1. **OBJETIVAS**: Forneça informações factuais sobre calorias e nutrição
2. **BASEADAS EM DADOS**: Use apenas informações nutricionais verificáveis
3. **SEGURAS**: Nunca dê conselhos médicos específicos ou recomendações para condições de saúde
4. **FOCADAS EM CALORIAS**: Priorize equivalências calóricas nas substituições

**REGRAS IMPORTANTES:**
- Sempre mencione que as informações são apenas educativas
- Sugira consultar um nutricionista para orientações personalizadas
- Forneça quantidades específicas em gramas
- Inclua informações sobre proteínas, carboidratos e gorduras quando relevante
- Mantenha respostas concisas (máximo 200 palavras)

**FORMATO DE RESPOSTA PARA SUBSTITUIÇÕES:**
- Alimento original: [nome] ([quantidade]g = [calorias] kcal)
- Substituição sugerida: [nome] ([quantidade]g = [calorias] kcal)
- Diferença nutricional: [proteínas/carboidratos/gorduras]

Plano alimentar do usuário:
{diet_plan}

Histórico da conversa:
{chat_history}
"""


def _format_history(messages: List[Dict[str, Any]]) -> str:
    return "\n".join(
        f"{'Usuário' if m['role'] == 'user' else 'Assistente'}: {m['content']}" for m in messages
    )


def build_system_prompt(*, diet_plan: Optional[str], history: List[Dict[str, Any]]) -> str:
    return SYSTEM_PROMPT.replace("{diet_plan}", diet_plan or NO_PLAN_TEXT).replace(
        "{chat_history}", _format_history(history)
    )


def _swap_answer(message: str) -> Optional[str]:
    """Calculator-backed answer for swap questions; None when it has nothing to offer."""
    if not is_food_swap_query(message):
        return None
    mention = extract_food_info(message)
    if mention is None:
        return None
    suggestions = swap_calculator.suggest_swaps(mention.food, mention.quantity)
    if not suggestions:
        return None
    original = swap_calculator.get_nutrition_info(mention.food)
    original_calories = calculate_calories(original, mention.quantity) if original else None
    return format_swap_answer(mention, original_calories, suggestions)


@router.post("", response_model=ChatReplyResponse, summary="Ask the diet assistant")
def send_message(request: ChatRequest):
    username = (request.username or "").strip()
    message = (request.message or "").strip()
    if not username or not message:
        raise HTTPException(status_code=400, detail="Username and message are required")
    user = require_user(username)

    append_message(user_id=user["id"], role="user", content=message)

    answer = _swap_answer(message)
    if answer is None:
        plan = get_diet_plan(user_id=user["id"])
        system = build_system_prompt(
            diet_plan=plan["content"] if plan else None,
            history=recent_messages(user_id=user["id"], limit=HISTORY_WINDOW),
        )
        try:
            answer = generate_text(message, system=system)
        except AIServiceError as exc:
            logger.error("chat AI call failed for %s: %s", username, exc)
            raise HTTPException(status_code=500, detail="Failed to generate response") from exc

    append_message(user_id=user["id"], role="assistant", content=answer)
    return ChatReplyResponse(message=answer)


@router.get("", response_model=ChatHistoryResponse, summary="My chat history (oldest first)")
def history(username: Optional[str] = Query(default=None)):
    user = require_user(username)
    rows = list_messages(user_id=user["id"])
    return ChatHistoryResponse(
        messages=[
            ChatMessage(id=r["id"], role=r["role"], content=r["content"], created_at=r["created_at"])
            for r in rows
        ]
    )
