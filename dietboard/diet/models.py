# -*- coding: utf-8 -*-
"""Diet — Pydantic models."""

from __future__ import annotations

from enum import Enum
import re
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class DietPlanSaveRequest(BaseModel):
    username: Optional[str] = None
    content: Optional[str] = None
    # Structure free text with the AI before saving (dashboard "save" flow).
    structure: bool = False


class DietPlanSaveResponse(BaseModel):
    success: bool = True
    message: str
    structured: bool = False


class DietPlanResponse(BaseModel):
    success: bool = True
    diet_plan: str = ""
    updated_at: Optional[str] = None


class ProcessTextRequest(BaseModel):
    text: Optional[str] = None


class ProcessTextResponse(BaseModel):
    success: bool = True
    structured_data: Dict[str, Any]
    message: str = "Text processed successfully with AI!"


class ExtractionSource(str, Enum):
    ai_pdf = "ai_pdf"
    ai_text = "ai_text"
    raw_text = "raw_text"


class PdfUploadResponse(BaseModel):
    success: bool = True
    text: str
    structured: bool
    saved: bool
    source: ExtractionSource


# ---- Structured plan document (Portuguese keys produced by the extraction prompt) ----


def _as_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _option_number(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            return int(value)
        except (ValueError, OverflowError):
            return None
    m = re.search(r"\d+", str(value or ""))
    return int(m.group()) if m else None


class GeneralInfo(BaseModel):
    calorias_diarias: Optional[str] = None
    macronutrientes: Optional[str] = None
    suplementacao: Optional[str] = None

    @field_validator("calorias_diarias", "macronutrientes", "suplementacao", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        return _as_text(value)

    def has_info(self) -> bool:
        return bool(self.calorias_diarias or self.macronutrientes or self.suplementacao)


class FoodPortion(BaseModel):
    item: str = ""
    quantidade: Optional[str] = None
    observacoes: Optional[str] = None

    @field_validator("item", mode="before")
    @classmethod
    def _coerce_item(cls, value: Any) -> str:
        return _as_text(value) or ""

    @field_validator("quantidade", "observacoes", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        return _as_text(value)


class MealOption(BaseModel):
    numero: int = 1
    alimentos: List[FoodPortion] = Field(default_factory=list)

    @field_validator("numero", mode="before")
    @classmethod
    def _coerce_number(cls, value: Any) -> int:
        return _option_number(value) or 1

    @field_validator("alimentos", mode="before")
    @classmethod
    def _coerce_foods(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, list):
            value = [value]
        # "arroz 100g" -> {"item": "arroz 100g"}
        return [{"item": v} if isinstance(v, str) else v for v in value if v is not None]


class Meal(BaseModel):
    nome: str = ""
    horario: Optional[str] = None
    opcoes: List[MealOption] = Field(default_factory=list)

    @field_validator("opcoes", mode="before")
    @classmethod
    def _coerce_options(cls, value: Any) -> Any:
        if value is None:
            return []
        if not isinstance(value, list):
            value = [value]
        options = []
        for position, opt in enumerate((v for v in value if v is not None), start=1):
            if isinstance(opt, dict):
                opt = dict(opt)
                opt["numero"] = _option_number(opt.get("numero")) or position
            elif isinstance(opt, (str, list)):
                opt = {"numero": position, "alimentos": opt}
            options.append(opt)
        return options

    @field_validator("nome", mode="before")
    @classmethod
    def _coerce_name(cls, value: Any) -> str:
        return _as_text(value) or ""

    @field_validator("horario", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        return _as_text(value)


class Substitution(BaseModel):
    alimento_original: str = ""
    substitutos: List[str] = Field(default_factory=list)
    descricao: Optional[str] = None

    @field_validator("alimento_original", mode="before")
    @classmethod
    def _coerce_original(cls, value: Any) -> str:
        return _as_text(value) or ""

    @field_validator("descricao", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> Optional[str]:
        return _as_text(value)

    @field_validator("substitutos", mode="before")
    @classmethod
    def _coerce_list(cls, value: Any) -> List[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [s.strip() for s in value.split(",") if s.strip()]
        if isinstance(value, list):
            return [str(v).strip() for v in value if v is not None and str(v).strip()]
        return [str(value)]


class TypedNote(BaseModel):
    tipo: str = ""
    descricao: str = ""

    @field_validator("tipo", "descricao", mode="before")
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        return _as_text(value) or ""


class StructuredDietPlan(BaseModel):
    informacoes_gerais: Optional[GeneralInfo] = None
    refeicoes: List[Meal] = Field(default_factory=list)
    substituicoes: List[Substitution] = Field(default_factory=list)
    instrucoes: List[TypedNote] = Field(default_factory=list)
    restricoes: List[TypedNote] = Field(default_factory=list)
    erro: Optional[str] = None

    @field_validator("refeicoes", "substituicoes", "instrucoes", "restricoes", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


# ---- Rendered plan view ----


class PlanViewKind(str, Enum):
    empty = "empty"
    error = "error"
    structured = "structured"
    legacy = "legacy"


class PlanCard(BaseModel):
    type: str = Field(..., description="general_info | meal | substitutions | instructions | restrictions | text")
    title: str
    kind: Optional[str] = Field(None, description="meal / note classification used for icon + color")
    data: Dict[str, Any] = Field(default_factory=dict)


class PlanView(BaseModel):
    kind: PlanViewKind
    message: Optional[str] = None
    cards: List[PlanCard] = Field(default_factory=list)


class PlanViewResponse(BaseModel):
    success: bool = True
    view: PlanView
