# -*- coding: utf-8 -*-
"""Chat — Pydantic models."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel


class ChatMessage(BaseModel):
    id: int
    role: Literal["user", "assistant"]
    content: str
    created_at: str


class ChatRequest(BaseModel):
    username: Optional[str] = None
    message: Optional[str] = None


class ChatReplyResponse(BaseModel):
    success: bool = True
    message: str


class ChatHistoryResponse(BaseModel):
    success: bool = True
    messages: list[ChatMessage]
