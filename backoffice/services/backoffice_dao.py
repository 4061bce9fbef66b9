"""Supabase data access for takeout orders, inventory and sales history."""

from __future__ import annotations

import asyncio
import logging
from datetime import date, datetime, time
from typing import Any, Dict, List

from fastapi import HTTPException
from httpx import HTTPError as HttpxError
from postgrest import APIError as PostgrestAPIError
from supabase import Client

from backoffice.services.postgrest_errors import raise_postgrest_error

logger = logging.getLogger(__name__)

# Takeout orders live in their own table so they can carry the partition and takeout_id.
ORDER_TABLES = ("orders", "takeout_orders")


class SupabaseBackofficeDAO:
    """DAO scoped to a single restaurant, using the service-role Supabase client."""

    def __init__(self, client: Client, restaurant_id: str):
        self.client = client
        self.restaurant_id = str(restaurant_id)

    async def insert_takeout_order(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a takeout order and return the stored row."""

        def _request() -> List[Dict[str, Any]]:
            response = self.client.table("takeout_orders").insert(body).execute()
            return response.data or []

        rows = await self._run(_request, context="takeout order creation")
        if not rows:
            raise HTTPException(status_code=502, detail="Could not create the takeout order.")
        return rows[0]

    async def fetch_inventory_items(self) -> List[Dict[str, Any]]:
        """Return the restaurant's inventory items as ``{id, name, unit}`` rows."""

        def _request() -> List[Dict[str, Any]]:
            response = (
                self.client.table("inventory_items")
                .select("id,name,unit")
                .eq("restaurant_id", self.restaurant_id)
                .order("name")
                .execute()
            )
            return response.data or []

        rows = await self._run(_request, context="fetch inventory")
        return [
            {"id": str(row.get("id")), "name": row.get("name") or "", "unit": row.get("unit") or ""}
            for row in rows
            if row.get("id") and row.get("name")
        ]

    async def fetch_menu_items(self) -> List[Dict[str, Any]]:
        def _request() -> List[Dict[str, Any]]:
            response = (
                self.client.table("menu_items")
                .select("id,name,price,recipe_id")
                .eq("restaurant_id", self.restaurant_id)
                .execute()
            )
            return response.data or []

        return await self._run(_request, context="fetch menu items")

    async def fetch_recipes(self) -> List[Dict[str, Any]]:
        def _request() -> List[Dict[str, Any]]:
            response = (
                self.client.table("recipes")
                .select("id,cost")
                .eq("restaurant_id", self.restaurant_id)
                .execute()
            )
            return response.data or []

        return await self._run(_request, context="fetch recipes")

    async def fetch_orders_between(self, date_from: date, date_to: date) -> List[Dict[str, Any]]:
        """Return dine-in and takeout orders created between the start of
        ``date_from`` and the end of ``date_to``."""

        start = datetime.combine(date_from, time.min).isoformat()
        end = datetime.combine(date_to, time.max).isoformat()

        def _request() -> List[Dict[str, Any]]:
            rows: List[Dict[str, Any]] = []
            for table in ORDER_TABLES:
                response = (
                    self.client.table(table)
                    .select("id,status,items,created_at")
                    .eq("restaurant_id", self.restaurant_id)
                    .gte("created_at", start)
                    .lte("created_at", end)
                    .execute()
                )
                rows.extend(response.data or [])
            return rows

        return await self._run(_request, context="fetch orders")

    async def _run(self, request, *, context: str):
        try:
            return await asyncio.to_thread(request)
        except PostgrestAPIError as exc:  # pragma: no cover - network interaction
            raise_postgrest_error(exc, context=context)
        except HttpxError as exc:  # pragma: no cover - network interaction
            logger.error("Supabase %s unreachable: %s", context, exc)
            raise HTTPException(status_code=503, detail="Supabase is temporarily unreachable.") from exc


__all__ = ["SupabaseBackofficeDAO"]
