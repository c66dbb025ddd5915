# -*- coding: utf-8 -*-
"""Auth — Pydantic models."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: Optional[str] = Field(None, max_length=64)
    password: Optional[str] = Field(None, max_length=128)


class UserPublic(BaseModel):
    id: int
    username: str


class LoginResponse(BaseModel):
    success: bool = True
    user: UserPublic
