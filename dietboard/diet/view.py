# -*- coding: utf-8 -*-
"""Diet — render a stored plan into display cards.

Stored content is either the structured JSON document or free text. JSON is
mapped section by section; anything that is not a JSON object goes through
the legacy free-text parser, which splits on section-header keywords.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError

from ..ai.jsonish import try_load_object
from .models import Meal, PlanCard, PlanView, PlanViewKind, StructuredDietPlan, TypedNote

EMPTY_MESSAGE = "Nenhum plano alimentar carregado ainda"

# Order matters: "lanche da manhã" must win over the generic "lanche".
_MEAL_KINDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("breakfast", ("cafe da manha", "breakfast")),
    ("morning_snack", ("lanche da manha", "morning snack")),
    ("lunch", ("almoco", "lunch")),
    ("afternoon_snack", ("lanche da tarde", "afternoon snack", "lanche", "merenda")),
    ("dinner", ("jantar", "dinner")),
    ("supper", ("ceia", "colacao")),
)

_INSTRUCTION_KINDS = (
    ("schedule", ("horario", "tempo")),
    ("preparation", ("preparo", "cozinha")),
)

_RESTRICTION_KINDS = (
    ("allergy", ("alergia",)),
    ("intolerance", ("intolerancia",)),
    ("preference", ("preferencia",)),
)

_SECTION_KINDS = (
    ("substitutions", ("substitui",)),
    ("instructions", ("orienta", "instru", "observa")),
    ("restrictions", ("restri", "alergi")),
)

_SECTION_TITLES = {
    "general": "Informações Gerais",
    "substitutions": "Substituições",
    "instructions": "Instruções",
    "restrictions": "Restrições",
}

_TIME_RE = re.compile(r"\b(\d{1,2})\s*(?:h|:)\s*(\d{2})?\b", flags=re.IGNORECASE)
_BULLET_RE = re.compile(r"^(?:[\-\*•●]+\s*|\d+[\.\)]\s+)")
# A colon that is not part of a clock time such as 07:30.
_HEADER_COLON = re.compile(r"(?<!\d):|:(?!\d)")
_MAX_HEADER_LEN = 60


def fold(text: str) -> str:
    """Lowercase and strip accents so 'Almoço' and 'almoco' compare equal."""
    decomposed = unicodedata.normalize("NFKD", text or "")
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).lower()


def _classify(text: str, table: Tuple[Tuple[str, Tuple[str, ...]], ...], default: str) -> str:
    folded = fold(text)
    for kind, keywords in table:
        if any(k in folded for k in keywords):
            return kind
    return default


def classify_meal(name: str) -> str:
    return _classify(name, _MEAL_KINDS, "other")


def classify_instruction(tipo: str) -> str:
    return _classify(tipo, _INSTRUCTION_KINDS, "general")


def classify_restriction(tipo: str) -> str:
    return _classify(tipo, _RESTRICTION_KINDS, "other")


# ---- structured documents ----


def _meal_card(meal: Meal) -> PlanCard:
    options = [
        {
            "number": opt.numero,
            "foods": [
                {"item": f.item, "quantity": f.quantidade, "notes": f.observacoes}
                for f in opt.alimentos
            ],
        }
        for opt in meal.opcoes
    ]
    return PlanCard(
        type="meal",
        title=meal.nome or "Refeição",
        kind=classify_meal(meal.nome),
        data={
            "name": meal.nome,
            "time": meal.horario,
            "option_count": len(options),
            "options": options,
        },
    )


def _note_items(notes: List[TypedNote], classify) -> List[Dict[str, Any]]:
    return [
        {"tipo": n.tipo, "descricao": n.descricao, "kind": classify(n.tipo)}
        for n in notes
        if n.descricao or n.tipo
    ]


def _structured_cards(plan: StructuredDietPlan) -> List[PlanCard]:
    cards: List[PlanCard] = []
    info = plan.informacoes_gerais
    if info is not None and info.has_info():
        cards.append(
            PlanCard(
                type="general_info",
                title=_SECTION_TITLES["general"],
                data=info.model_dump(exclude_none=True),
            )
        )
    cards.extend(_meal_card(m) for m in plan.refeicoes)
    if plan.substituicoes:
        cards.append(
            PlanCard(
                type="substitutions",
                title=_SECTION_TITLES["substitutions"],
                data={"items": [s.model_dump() for s in plan.substituicoes]},
            )
        )
    instructions = _note_items(plan.instrucoes, classify_instruction)
    if instructions:
        cards.append(
            PlanCard(type="instructions", title=_SECTION_TITLES["instructions"], data={"items": instructions})
        )
    restrictions = _note_items(plan.restricoes, classify_restriction)
    if restrictions:
        cards.append(
            PlanCard(type="restrictions", title=_SECTION_TITLES["restrictions"], data={"items": restrictions})
        )
    return cards


# ---- legacy free text ----


def _match_header(line: str) -> Optional[Tuple[str, str, str]]:
    """Return (section, header_text, remainder) when ``line`` opens a section."""
    stripped = _BULLET_RE.sub("", line).strip()
    if not stripped:
        return None
    # "Almoço: arroz" -> header "Almoço" plus an inline item.
    m = _HEADER_COLON.search(stripped)
    if m:
        head, rest = stripped[: m.start()], stripped[m.end() :]
    else:
        head, rest = stripped, ""
    head = head.strip()
    if not head or len(head) > _MAX_HEADER_LEN:
        return None
    folded = fold(head)
    for kind, keywords in _MEAL_KINDS:
        if any(folded.startswith(k) for k in keywords):
            return "meal", head, rest.strip()
    for section, keywords in _SECTION_KINDS:
        if any(folded.startswith(k) for k in keywords):
            return section, head, rest.strip()
    return None


def _meal_time(header: str) -> Optional[str]:
    m = _TIME_RE.search(header)
    if not m:
        return None
    return f"{int(m.group(1)):02d}:{m.group(2) or '00'}"


def parse_legacy_text(text: str) -> List[Dict[str, Any]]:
    """Split free text into sections keyed by header keywords.

    Each section is ``{"section", "title", "items"}``; lines before the first
    header land in a "general" section.
    """
    sections: List[Dict[str, Any]] = []
    current: Dict[str, Any] = {"section": "general", "title": _SECTION_TITLES["general"], "items": []}
    for raw in (text or "").splitlines():
        line = raw.strip()
        if not line:
            continue
        header = _match_header(line)
        # "Alergia a amendoim" under "Restrições" is an entry, not a new section.
        if header is not None and header[0] != "meal" and header[0] == current["section"]:
            header = None
        if header is None:
            current["items"].append(_BULLET_RE.sub("", line).strip() or line)
            continue
        section, title, remainder = header
        sections.append(current)
        current = {"section": section, "title": title, "items": []}
        if remainder:
            current["items"].append(remainder)
    sections.append(current)
    return [s for s in sections if s["items"] or s["section"] == "meal"]


def _legacy_cards(text: str) -> List[PlanCard]:
    sections = parse_legacy_text(text)
    if not any(s["section"] != "general" for s in sections):
        return [PlanCard(type="text", title="Plano Alimentar", data={"text": text.strip()})]

    cards: List[PlanCard] = []
    for s in sections:
        if s["section"] == "meal":
            cards.append(
                PlanCard(
                    type="meal",
                    title=s["title"],
                    kind=classify_meal(s["title"]),
                    data={"name": s["title"], "time": _meal_time(s["title"]), "items": s["items"]},
                )
            )
        elif s["section"] == "general":
            cards.append(PlanCard(type="text", title=s["title"], data={"text": "\n".join(s["items"])}))
        else:
            cards.append(PlanCard(type=s["section"], title=s["title"], data={"items": s["items"]}))
    return cards


def build_plan_view(content: Optional[str]) -> PlanView:
    if not content or not content.strip():
        return PlanView(kind=PlanViewKind.empty, message=EMPTY_MESSAGE)

    document = try_load_object(content)
    if document is not None:
        if document.get("erro"):
            return PlanView(kind=PlanViewKind.error, message=str(document["erro"]))
        try:
            plan = StructuredDietPlan.model_validate(document)
        except ValidationError:
            plan = None
        if plan is not None:
            return PlanView(kind=PlanViewKind.structured, cards=_structured_cards(plan))

    return PlanView(kind=PlanViewKind.legacy, cards=_legacy_cards(content))
