# -*- coding: utf-8 -*-
"""Auth — API endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from .models import LoginRequest, LoginResponse, UserPublic
from .storage import get_user_by_credentials

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("", response_model=LoginResponse, summary="Login with username/password")
def login(request: LoginRequest):
    username = (request.username or "").strip()
    password = request.password or ""
    if not username or not password:
        raise HTTPException(status_code=400, detail="Username and password are required")

    user = get_user_by_credentials(username, password)
    if not user:
        logger.info("login rejected for %s", username)
        raise HTTPException(status_code=401, detail="Invalid credentials")

    return LoginResponse(user=UserPublic(id=user["id"], username=user["username"]))
