"""OpenAI client configuration for the back-office AI helpers."""

import os
from functools import lru_cache

from dotenv import load_dotenv
from openai import OpenAI

load_dotenv()

AI_MODEL = os.getenv("AI_MODEL", "gpt-4o-mini")
AI_OUTPUT_LANGUAGE = os.getenv("AI_OUTPUT_LANGUAGE", "español")
AI_CURRENCY = os.getenv("AI_CURRENCY", "MXN")
AI_MARKET = os.getenv("AI_MARKET", "Mexican")


@lru_cache(maxsize=1)
def get_openai_client() -> OpenAI:
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError("OPENAI_API_KEY is missing from the environment or .env file")
    return OpenAI(api_key=api_key)


__all__ = ["get_openai_client", "AI_MODEL", "AI_OUTPUT_LANGUAGE", "AI_CURRENCY", "AI_MARKET"]
