# -*- coding: utf-8 -*-
"""AI — error types."""

from __future__ import annotations


class AIServiceError(RuntimeError):
    """The model call failed (transport, HTTP status, blocked or empty output)."""


class AIUnavailableError(AIServiceError):
    """No API key configured; callers should degrade instead of failing."""
