# -*- coding: utf-8 -*-
"""Diet — turn pasted text or an uploaded PDF into a structured plan.

The model is asked for the Portuguese JSON layout rendered by the plan view.
When the model is unavailable or its answer can't be used, the PDF's own
text layer (pypdf) is kept as a free-text plan.
"""

from __future__ import annotations

import io
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pypdf import PdfReader

from ..ai.errors import AIServiceError
from ..ai.gemini import InlineDocument, generate_text, is_available
from ..ai.jsonish import parse_json_object
from .models import ExtractionSource, StructuredDietPlan

logger = logging.getLogger(__name__)

PDF_MIME = "application/pdf"

_SCHEMA = """{
  "informacoes_gerais": {
    "calorias_diarias": "valor se mencionado",
    "macronutrientes": "distribuição se mencionada",
    "suplementacao": "informações se mencionadas"
  },
  "refeicoes": [
    {
      "nome": "Café da Manhã",
      "horario": "horário se mencionado",
      "opcoes": [
        {
          "numero": 1,
          "alimentos": [
            {
              "item": "nome do alimento",
              "quantidade": "quantidade específica",
              "observacoes": "observações especiais se houver"
            }
          ]
        }
      ]
    }
  ],
  "substituicoes": [
    {
      "alimento_original": "nome do alimento",
      "substitutos": ["lista de substitutos"],
      "descricao": "explicação sobre a substituição"
    }
  ],
  "instrucoes": [
    {"tipo": "preparo/horario/geral", "descricao": "instrução específica"}
  ],
  "restricoes": [
    {"tipo": "alergia/intolerancia/preferencia", "descricao": "descrição da restrição"}
  ]
}"""

_RULES = """IMPORTANTE:
- Identifique TODAS as refeições mencionadas (café da manhã, lanche da manhã, almoço, lanche da tarde, jantar, ceia, etc.)
- Para cada refeição, identifique se há múltiplas opções (Opção 1, Opção 2, etc.)
- Mantenha quantidades e porções exatas
- Se não houver informação para alguma seção, use array vazio []
- Retorne APENAS o JSON, sem texto adicional
- Se o conteúdo não contém dieta, retorne: {"erro": "Texto não contém plano alimentar"}

Responda sempre em português brasileiro."""

TEXT_PROMPT = (
    "Você é um especialista em extração de planos alimentares. Analise este texto de plano "
    "alimentar e extraia todas as informações relacionadas à dieta em um formato JSON "
    "estruturado em português.\n\n"
    "Texto do plano alimentar:\n{text}\n\n"
    "Retorne APENAS um JSON válido no seguinte formato:\n\n"
    f"{_SCHEMA}\n\n{_RULES}"
)

PDF_PROMPT = (
    "Você é um especialista em extração de planos alimentares. Analise o PDF anexado e "
    "extraia todas as informações relacionadas à dieta em um formato JSON estruturado em "
    "português.\n\n"
    "Retorne APENAS um JSON válido no seguinte formato:\n\n"
    f"{_SCHEMA}\n\n{_RULES}"
)


class PDFExtractionError(ValueError):
    """The upload is not a readable PDF."""


class EmptyPDFError(PDFExtractionError):
    """The PDF parsed but carries no text layer."""


class PlanStructuringError(ValueError):
    """The model answered, but not with a usable plan object."""


class NotADietPlanError(PlanStructuringError):
    """The model reported that the input contains no diet plan."""


@dataclass
class ExtractionResult:
    content: str
    source: ExtractionSource
    structured: Optional[Dict[str, Any]] = None


def extract_pdf_text(data: bytes, *, max_chars: int = 200_000) -> str:
    """Text layer of every readable page; unreadable pages are skipped.

    Raises PDFExtractionError when the document itself cannot be opened.
    """
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = list(reader.pages)
    except Exception as exc:
        logger.warning("PDF could not be opened: %s", exc)
        raise PDFExtractionError(f"Invalid PDF: {exc}") from exc

    parts: list[str] = []
    for number, page in enumerate(pages, start=1):
        try:
            parts.append(page.extract_text() or "")
        except Exception as exc:
            logger.warning("skipping unreadable PDF page %d: %s", number, exc)
            continue
    text = "\n".join(p.strip() for p in parts if p and p.strip())
    return text[:max_chars]


def _validate_plan(raw_output: str) -> Dict[str, Any]:
    try:
        parsed = parse_json_object(raw_output)
    except ValueError as exc:
        raise PlanStructuringError(str(exc)) from exc
    if parsed.get("erro"):
        raise NotADietPlanError(str(parsed["erro"]))
    try:
        StructuredDietPlan.model_validate(parsed)
    except ValueError as exc:
        raise PlanStructuringError(f"Unexpected plan layout: {exc}") from exc
    return parsed


def structure_text(text: str) -> Dict[str, Any]:
    """Ask the model to structure a free-text plan.

    Raises AIServiceError (including AIUnavailableError) or PlanStructuringError.
    """
    output = generate_text(TEXT_PROMPT.replace("{text}", text))
    return _validate_plan(output)


def structure_pdf(data: bytes) -> Dict[str, Any]:
    output = generate_text(PDF_PROMPT, document=InlineDocument(mime_type=PDF_MIME, data=data))
    return _validate_plan(output)


def extract_plan_from_pdf(data: bytes) -> ExtractionResult:
    """Best available plan content for an uploaded PDF.

    Order: model reads the PDF, then model structures the pypdf text, then the
    raw pypdf text. Raises PDFExtractionError when nothing usable comes out.
    """
    ai_ready = is_available()
    if ai_ready:
        try:
            plan = structure_pdf(data)
            return ExtractionResult(
                content=json.dumps(plan, ensure_ascii=False),
                source=ExtractionSource.ai_pdf,
                structured=plan,
            )
        except (AIServiceError, PlanStructuringError) as exc:
            logger.warning("AI PDF extraction failed, falling back to text layer: %s", exc)

    text = extract_pdf_text(data)
    if not text.strip():
        raise EmptyPDFError("No text could be extracted from the PDF")

    if ai_ready:
        try:
            plan = structure_text(text)
            return ExtractionResult(
                content=json.dumps(plan, ensure_ascii=False),
                source=ExtractionSource.ai_text,
                structured=plan,
            )
        except (AIServiceError, PlanStructuringError) as exc:
            logger.warning("AI text structuring failed, keeping raw text: %s", exc)

    return ExtractionResult(content=text, source=ExtractionSource.raw_text)
