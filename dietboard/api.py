# -*- coding: utf-8 -*-
"""
Diet board API

Login, diet plan storage (text / PDF / AI-structured), rendered plan view,
calorie-equivalent food swaps and the diet assistant chat.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .ai.gemini import is_available as ai_available
from .app_db import init_app_db, seed_users
from .auth.api import router as auth_router
from .chat.api import router as chat_router
from .config import settings
from .diet.api import router as diet_router
from .nutrition.api import router as nutrition_router

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Diet Board",
    description="Diet plans, AI structuring, food swaps and assistant chat",
    version=__version__,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_origins != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


def _init_storage() -> None:
    init_app_db(settings.db_path)
    created = seed_users(settings.db_path, settings.seed_users)
    if created:
        logger.info("seeded %d user(s) into %s", created, settings.db_path)


@app.on_event("startup")
def _startup_init_db() -> None:
    _init_storage()


# Ensure the DB exists even when lifespan events are not triggered (e.g. some test clients).
_init_storage()


@app.exception_handler(RequestValidationError)
async def _validation_error_to_400(request: Request, exc: RequestValidationError):
    fields = sorted({".".join(str(p) for p in err.get("loc", ())[1:]) or "body" for err in exc.errors()})
    logger.info("rejected %s %s: invalid %s", request.method, request.url.path, ", ".join(fields))
    return JSONResponse(status_code=400, content={"detail": f"Invalid request: {', '.join(fields)}"})


app.include_router(auth_router)
app.include_router(diet_router)
app.include_router(nutrition_router)
app.include_router(chat_router)


@app.get("/api/health")
def health_check():
    return {
        "status": "ok",
        "version": __version__,
        "ai_available": ai_available(),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


def run() -> None:
    """Console entry point (used by pyproject [project.scripts])."""
    import uvicorn

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("dietboard.api:app", host=settings.host, port=settings.port, reload=False)
