# -*- coding: utf-8 -*-
"""Diet — API endpoints (plan storage, text/PDF structuring, rendered view)."""

from __future__ import annotations

import json
import logging
from typing import Optional

from fastapi import APIRouter, File, Form, HTTPException, Query, UploadFile

from ..ai.errors import AIServiceError
from ..ai.jsonish import try_load_object
from ..auth.storage import require_user
from ..config import settings
from .extraction import (
    PDF_MIME,
    EmptyPDFError,
    NotADietPlanError,
    PDFExtractionError,
    PlanStructuringError,
    extract_plan_from_pdf,
    structure_text,
)
from .models import (
    DietPlanResponse,
    DietPlanSaveRequest,
    DietPlanSaveResponse,
    PdfUploadResponse,
    PlanViewResponse,
    ProcessTextRequest,
    ProcessTextResponse,
)
from .storage import get_diet_plan, save_diet_plan
from .view import build_plan_view

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Diet"])


@router.get("/diet", response_model=DietPlanResponse, summary="Get my diet plan")
def get_plan(username: Optional[str] = Query(default=None)):
    user = require_user(username)
    row = get_diet_plan(user_id=user["id"])
    if not row:
        return DietPlanResponse(diet_plan="")
    return DietPlanResponse(diet_plan=row["content"], updated_at=row["updated_at"])


@router.post("/diet", response_model=DietPlanSaveResponse, summary="Save (replace) my diet plan")
def save_plan(request: DietPlanSaveRequest):
    username = (request.username or "").strip()
    content = request.content if request.content is not None else ""
    if not username or not content.strip():
        raise HTTPException(status_code=400, detail="Username and content are required")
    user = require_user(username)

    structured = try_load_object(content) is not None
    if request.structure and not structured:
        try:
            content = json.dumps(structure_text(content), ensure_ascii=False)
            structured = True
        except (AIServiceError, PlanStructuringError) as exc:
            logger.warning("structuring on save failed for %s, keeping raw text: %s", username, exc)

    save_diet_plan(user_id=user["id"], content=content)
    return DietPlanSaveResponse(message="Diet plan saved successfully!", structured=structured)


@router.get("/diet/view", response_model=PlanViewResponse, summary="My diet plan rendered into cards")
def view_plan(username: Optional[str] = Query(default=None)):
    user = require_user(username)
    row = get_diet_plan(user_id=user["id"])
    return PlanViewResponse(view=build_plan_view(row["content"] if row else None))


@router.post("/process-text", response_model=ProcessTextResponse, summary="Structure a pasted plan with AI")
def process_text(request: ProcessTextRequest):
    text = (request.text or "").strip()
    if not text:
        raise HTTPException(status_code=400, detail="Text is required")
    try:
        plan = structure_text(text)
    except NotADietPlanError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except PlanStructuringError as exc:
        logger.warning("unusable AI output for process-text: %s", exc)
        raise HTTPException(status_code=400, detail="Could not parse the AI response as a diet plan") from exc
    except AIServiceError as exc:
        logger.error("process-text AI call failed: %s", exc)
        raise HTTPException(status_code=500, detail="Failed to process text") from exc
    return ProcessTextResponse(structured_data=plan)


def _looks_like_pdf(upload: UploadFile, head: bytes) -> bool:
    if (upload.content_type or "").lower() == PDF_MIME:
        return True
    if (upload.filename or "").lower().endswith(".pdf"):
        return True
    return head.startswith(b"%PDF")


@router.post("/pdf-upload", response_model=PdfUploadResponse, summary="Upload a PDF diet plan")
def pdf_upload(
    username: Optional[str] = Form(default=None),
    file: Optional[UploadFile] = File(default=None),
    pdf: Optional[UploadFile] = File(default=None),
):
    upload = file or pdf
    if upload is None:
        raise HTTPException(status_code=400, detail="No PDF file provided")
    user = require_user(username)

    max_bytes = settings.max_upload_mb * 1024 * 1024
    data = upload.file.read(max_bytes + 1)
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if len(data) > max_bytes:
        raise HTTPException(status_code=400, detail=f"File too large: more than {max_bytes} bytes")
    if not _looks_like_pdf(upload, data[:8]):
        raise HTTPException(status_code=400, detail="Only PDF files are accepted")

    try:
        result = extract_plan_from_pdf(data)
    except EmptyPDFError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except PDFExtractionError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    saved = True
    try:
        save_diet_plan(user_id=user["id"], content=result.content)
    except Exception:
        logger.error("saving extracted plan failed for user %s", user["id"], exc_info=True)
        saved = False

    return PdfUploadResponse(
        text=result.content,
        structured=result.structured is not None,
        saved=saved,
        source=result.source,
    )
