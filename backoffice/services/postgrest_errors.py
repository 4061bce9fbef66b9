"""Shared helpers for interpreting Supabase/PostgREST failures."""

from __future__ import annotations

import logging
from typing import NoReturn

from fastapi import HTTPException
from postgrest import APIError as PostgrestAPIError

logger = logging.getLogger(__name__)

# SQLSTATE codes that abort the transaction before it commits:
# serialization_failure, deadlock_detected, lock_not_available.
RETRYABLE_SQLSTATES = frozenset({"40001", "40P01", "55P03"})


def postgrest_status(exc: PostgrestAPIError) -> int:
    """Best effort extraction of an HTTP status code from the API error."""

    try:
        return int(exc.code) if exc.code else 502
    except (TypeError, ValueError):
        return 502


def is_retryable_postgrest_error(exc: PostgrestAPIError) -> bool:
    """Return True only for failures where the statement did not commit.

    Gateway and server errors (5xx) leave the outcome unknown and are not
    retried; 429 is rejected before the request reaches the database.
    """

    code = str(getattr(exc, "code", "") or "")
    if code in RETRYABLE_SQLSTATES:
        return True
    return code == "429"


def raise_postgrest_error(exc: PostgrestAPIError, *, context: str) -> NoReturn:
    """Map PostgREST errors to FastAPI HTTP exceptions with logging."""

    status_code = postgrest_status(exc)
    detail = exc.message or "Error while talking to Supabase."
    logger.error("%s failed (%s): %s", context, status_code, detail)
    if status_code == 401:
        raise HTTPException(status_code=401, detail="Supabase authentication required.") from exc
    if status_code == 403:
        raise HTTPException(status_code=403, detail="Access to the requested resource is denied.") from exc
    if status_code == 404:
        raise HTTPException(status_code=404, detail="Resource not found.") from exc
    raise HTTPException(status_code=502, detail="Error while talking to Supabase.") from exc


__all__ = [
    "RETRYABLE_SQLSTATES",
    "is_retryable_postgrest_error",
    "postgrest_status",
    "raise_postgrest_error",
]
