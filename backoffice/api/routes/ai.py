"""AI-assisted writing and analysis endpoints."""

from __future__ import annotations

from datetime import date
from typing import Awaitable, Callable, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query
from openai import OpenAI

from backoffice.api.dependencies import get_ai_client, get_backoffice_dao
from backoffice.schemas import (
    DishDescriptionInput,
    DishDescriptionOutput,
    InventoryItem,
    MenuInsightsInput,
    MenuInsightsOutput,
    PriceSuggestionInput,
    PriceSuggestionOutput,
    RecipeSuggestionInput,
    RecipeSuggestionOutput,
)
from backoffice.services import ai_service
from backoffice.services.backoffice_dao import SupabaseBackofficeDAO
from backoffice.services.menu_stats_service import aggregate_sales

router = APIRouter(tags=["AI"])

Result = TypeVar("Result")


async def _call_ai(flow: Callable[[], Awaitable[Result]]) -> Result:
    try:
        return await flow()
    except ai_service.AIInputError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except ai_service.AIGenerationError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc


@router.post("/api/ai/dish-description", response_model=DishDescriptionOutput)
async def dish_description(
    payload: DishDescriptionInput,
    client: OpenAI = Depends(get_ai_client),
) -> DishDescriptionOutput:
    return await _call_ai(lambda: ai_service.generate_dish_description(payload, client=client))


@router.post("/api/ai/price-suggestion", response_model=PriceSuggestionOutput)
async def price_suggestion(
    payload: PriceSuggestionInput,
    client: OpenAI = Depends(get_ai_client),
) -> PriceSuggestionOutput:
    return await _call_ai(lambda: ai_service.suggest_price(payload, client=client))


@router.post("/api/restaurants/{restaurant_id}/ai/recipe-suggestions", response_model=RecipeSuggestionOutput)
async def recipe_suggestions(
    restaurant_id: str,
    dao: SupabaseBackofficeDAO = Depends(get_backoffice_dao),
    client: OpenAI = Depends(get_ai_client),
) -> RecipeSuggestionOutput:
    rows = await dao.fetch_inventory_items()
    payload = RecipeSuggestionInput(inventory=[InventoryItem.model_validate(row) for row in rows])
    return await _call_ai(lambda: ai_service.suggest_recipes(payload, client=client))


@router.post("/api/restaurants/{restaurant_id}/ai/menu-insights", response_model=MenuInsightsOutput)
async def menu_insights(
    restaurant_id: str,
    date_from: date = Query(...),
    date_to: date = Query(...),
    dao: SupabaseBackofficeDAO = Depends(get_backoffice_dao),
    client: OpenAI = Depends(get_ai_client),
) -> MenuInsightsOutput:
    if date_to < date_from:
        raise HTTPException(status_code=400, detail="date_to must be on or after date_from.")

    orders = await dao.fetch_orders_between(date_from, date_to)
    menu_items = await dao.fetch_menu_items()
    recipes = await dao.fetch_recipes()
    payload = MenuInsightsInput(sales=aggregate_sales(orders, menu_items, recipes))
    return await _call_ai(lambda: ai_service.generate_menu_insights(payload, client=client))
