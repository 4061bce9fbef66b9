"""Supabase client configuration and helpers."""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv
from supabase import Client, create_client

load_dotenv()

SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_SERVICE_ROLE_KEY = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
SUPABASE_ANON_KEY = os.getenv("SUPABASE_ANON_KEY")

TAKEOUT_COUNTER_RPC = os.getenv("TAKEOUT_COUNTER_RPC", "next_takeout_counter")
TAKEOUT_COUNTER_MAX_ATTEMPTS = int(os.getenv("TAKEOUT_COUNTER_MAX_ATTEMPTS", "5"))
TAKEOUT_COUNTER_BACKOFF_SECONDS = float(os.getenv("TAKEOUT_COUNTER_BACKOFF_SECONDS", "0.05"))
TAKEOUT_COUNTER_TIMEZONE = os.getenv("TAKEOUT_COUNTER_TIMEZONE") or None


def supabase_configured() -> bool:
    """Return True when the service can reach Supabase with a server key."""
    return bool(SUPABASE_URL and (SUPABASE_SERVICE_ROLE_KEY or SUPABASE_ANON_KEY))


@lru_cache(maxsize=1)
def get_supabase_client() -> Optional[Client]:
    """Instantiate the Supabase client if credentials are configured."""
    api_key = SUPABASE_SERVICE_ROLE_KEY or SUPABASE_ANON_KEY
    if not SUPABASE_URL or not api_key:
        return None
    return create_client(SUPABASE_URL, api_key)


__all__ = [
    "get_supabase_client",
    "supabase_configured",
    "SUPABASE_URL",
    "SUPABASE_ANON_KEY",
    "SUPABASE_SERVICE_ROLE_KEY",
    "TAKEOUT_COUNTER_RPC",
    "TAKEOUT_COUNTER_MAX_ATTEMPTS",
    "TAKEOUT_COUNTER_BACKOFF_SECONDS",
    "TAKEOUT_COUNTER_TIMEZONE",
]
