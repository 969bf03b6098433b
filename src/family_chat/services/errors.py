"""Adapter-boundary error handling: network failures become user-visible state."""
from __future__ import annotations

import logging

from family_chat.application.exceptions import AppError, AuthenticationError
from family_chat.services.session import SessionStore

logger = logging.getLogger(__name__)


def describe_failure(
    exc: AppError,
    fallback: str,
    session: SessionStore | None = None,
) -> str:
    """Log ``exc``, invalidate the session on auth failures, return the text to show."""
    if isinstance(exc, AuthenticationError):
        logger.warning("%s: credential rejected", fallback)
        if session is not None:
            session.invalidate(exc.detail)
    else:
        logger.warning("%s: %s: %s", fallback, exc.__class__.__name__, exc.detail)
    return f"{fallback}: {exc.detail}" if exc.detail else fallback
