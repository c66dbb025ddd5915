# -*- coding: utf-8 -*-
"""AI — Gemini generateContent calls over httpx."""

from __future__ import annotations

import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from .errors import AIServiceError, AIUnavailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AISettings:
    api_key: str
    base_url: str
    model: str
    timeout: float
    temperature: float


@dataclass(frozen=True)
class InlineDocument:
    mime_type: str
    data: bytes


def is_available() -> bool:
    return bool(settings.gemini_api_key)


def resolve_ai_settings() -> AISettings:
    if not settings.gemini_api_key:
        raise AIUnavailableError("GEMINI_API_KEY not set")
    return AISettings(
        api_key=settings.gemini_api_key,
        base_url=settings.gemini_base_url.rstrip("/"),
        model=settings.gemini_model,
        timeout=settings.gemini_timeout,
        temperature=settings.gemini_temperature,
    )


def _build_payload(
    prompt: str,
    *,
    system: Optional[str],
    document: Optional[InlineDocument],
    temperature: float,
) -> Dict[str, Any]:
    parts: List[Dict[str, Any]] = []
    if document is not None:
        parts.append(
            {
                "inline_data": {
                    "mime_type": document.mime_type,
                    "data": base64.b64encode(document.data).decode("ascii"),
                }
            }
        )
    parts.append({"text": prompt})
    payload: Dict[str, Any] = {
        "contents": [{"role": "user", "parts": parts}],
        "generationConfig": {"temperature": temperature},
    }
    if system:
        payload["systemInstruction"] = {"parts": [{"text": system}]}
    return payload


def _extract_text(data: object) -> str:
    """Join the text parts of the first candidate."""
    if not isinstance(data, dict):
        return ""
    candidates = data.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        return ""
    first = candidates[0]
    if not isinstance(first, dict):
        return ""
    content = first.get("content")
    if not isinstance(content, dict):
        return ""
    out: List[str] = []
    for part in content.get("parts") or []:
        if isinstance(part, dict) and isinstance(part.get("text"), str):
            out.append(part["text"])
    return "".join(out)


def _extract_error(data: object) -> Optional[str]:
    if not isinstance(data, dict):
        return None
    err = data.get("error")
    if isinstance(err, dict):
        msg = err.get("message")
        status = err.get("status") or err.get("code")
        if isinstance(msg, str) and msg.strip():
            return f"{status}: {msg.strip()}" if status else msg.strip()
    feedback = data.get("promptFeedback")
    if isinstance(feedback, dict) and feedback.get("blockReason"):
        return f"prompt blocked: {feedback['blockReason']}"
    return None


def generate_text(
    prompt: str,
    *,
    system: Optional[str] = None,
    document: Optional[InlineDocument] = None,
    temperature: Optional[float] = None,
    client: Optional[httpx.Client] = None,
) -> str:
    cfg = resolve_ai_settings()
    url = f"{cfg.base_url}/models/{cfg.model}:generateContent"
    payload = _build_payload(
        prompt,
        system=system,
        document=document,
        temperature=cfg.temperature if temperature is None else temperature,
    )

    owns_client = client is None
    http = client or httpx.Client(timeout=cfg.timeout, follow_redirects=True)
    try:
        resp = http.post(url, params={"key": cfg.api_key}, json=payload)
        try:
            data = resp.json()
        except ValueError:
            data = None
        if resp.status_code >= 400:
            detail = _extract_error(data) or f"HTTP {resp.status_code}"
            raise AIServiceError(f"Gemini error: {detail}")
    except httpx.HTTPError as exc:
        logger.warning("gemini request failed: %s", exc)
        raise AIServiceError(f"Gemini unreachable: {exc}") from exc
    finally:
        if owns_client:
            http.close()

    text = _extract_text(data)
    if not text.strip():
        detail = _extract_error(data) or "empty response"
        raise AIServiceError(f"Gemini returned no text ({detail})")
    return text
