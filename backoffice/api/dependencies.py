"""FastAPI dependencies shared by the routers."""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import HTTPException
from openai import OpenAI

from backoffice.config.openai_client import get_openai_client
from backoffice.config.supabase_client import get_supabase_client
from backoffice.services.backoffice_dao import SupabaseBackofficeDAO
from backoffice.services.counters import (
    InMemoryCounterStore,
    SequenceCounter,
    SupabaseCounterStore,
)

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_sequence_counter() -> SequenceCounter:
    """Counter shared by every request; in-process when Supabase is not configured."""

    client = get_supabase_client()
    if client is None:
        logger.warning("Supabase is not configured; takeout numbers are kept in memory only.")
        return SequenceCounter(InMemoryCounterStore())
    return SequenceCounter(SupabaseCounterStore(client))


async def get_backoffice_dao(restaurant_id: str) -> SupabaseBackofficeDAO:
    client = get_supabase_client()
    if client is None:
        raise HTTPException(status_code=500, detail="Supabase is not configured.")
    return SupabaseBackofficeDAO(client, restaurant_id)


def get_ai_client() -> OpenAI:
    try:
        return get_openai_client()
    except RuntimeError as exc:
        logger.error("OpenAI client unavailable: %s", exc)
        raise HTTPException(status_code=500, detail="The AI service is not configured.") from exc


__all__ = ["get_ai_client", "get_backoffice_dao", "get_sequence_counter"]
