"""FastAPI application exposing the restaurant back-office API."""

import logging
import sys
from pathlib import Path
from typing import Dict

sys.path.append(str(Path(__file__).resolve().parents[1]))

from fastapi import FastAPI

from backoffice.api.routes.ai import router as ai_router
from backoffice.api.routes.takeout import router as takeout_router
from backoffice.config.supabase_client import supabase_configured

app = FastAPI(title="Restaurant Back Office")
logger = logging.getLogger(__name__)

app.include_router(takeout_router)
app.include_router(ai_router)


@app.get("/health")
def health() -> Dict[str, str]:
    return {"status": "ok", "store": "supabase" if supabase_configured() else "memory"}


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    uvicorn.run("backoffice.main:app", host="127.0.0.1", port=8000, reload=True)
