"""Schema-validated OpenAI helpers for menu and kitchen management."""

from __future__ import annotations

import asyncio
import json
import logging
import re
from typing import Any, Optional, Type, TypeVar

from openai import APIError, OpenAI
from pydantic import BaseModel, ValidationError

from backoffice.config.openai_client import (
    AI_CURRENCY,
    AI_MARKET,
    AI_MODEL,
    AI_OUTPUT_LANGUAGE,
    get_openai_client,
)
from backoffice.schemas import (
    DishDescriptionInput,
    DishDescriptionOutput,
    MenuInsightsInput,
    MenuInsightsOutput,
    PriceSuggestionInput,
    PriceSuggestionOutput,
    RecipeSuggestionInput,
    RecipeSuggestionOutput,
)

logger = logging.getLogger(__name__)

OutputModel = TypeVar("OutputModel", bound=BaseModel)

CODE_FENCE_PATTERN = re.compile(r"```(json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)
MAX_COMPLETION_TOKENS = 1200


class AIInputError(ValueError):
    """Raised when the request cannot be sent to the model as-is."""


class AIGenerationError(RuntimeError):
    """Raised when the model call fails or its reply does not match the schema."""


DISH_DESCRIPTION_PROMPT = (
    "You are an expert food writer and restaurant marketing consultant. "
    "Write a short, punchy and appetizing menu description for the dish below, in {language}. "
    "Reply with a JSON object of the form {{\"description\": \"...\"}} and nothing else.\n\n"
    "Dish name: {dish_name}\n"
    "Main ingredients: {ingredients}"
)

PRICE_SUGGESTION_PROMPT = (
    "You are a restaurant business consultant specialised in the {market} market. "
    "Suggest a competitive retail price for the dish below. Aim for a 65-75% gross margin "
    "(ingredient cost around 25-35% of the sale price) while staying competitive. "
    "Round to the nearest whole number. "
    "Reply with a JSON object of the form {{\"suggested_price\": 0}} and nothing else.\n\n"
    "Dish name: {dish_name}\n"
    "Ingredient cost: {cost} {currency}"
)

RECIPE_SUGGESTIONS_PROMPT = (
    "You are a creative chef who designs profitable dishes from the ingredients at hand. "
    "Suggest 3 to 5 distinct recipes, written in {language}, using only the inventory items listed below "
    "(format: \"name, id, unit\"). Give a realistic quantity for each ingredient. "
    "Reply with a JSON object of the form "
    "{{\"suggestions\": [{{\"recipe_name\": \"...\", \"ingredients\": "
    "[{{\"item_name\": \"...\", \"item_id\": \"...\", \"quantity\": 0, \"unit\": \"...\"}}]}}]}} "
    "and nothing else.\n\n"
    "Available inventory:\n{inventory}"
)

MENU_INSIGHTS_PROMPT = (
    "You are a restaurant menu optimisation expert. Analyse the sales data below "
    "(JSON list of dishes with quantity sold, revenue and ingredient cost) and recommend "
    "concrete changes to improve profitability and customer satisfaction: pricing, placement, "
    "ingredients, promotions. Write in {language}. "
    "Reply with a JSON object of the form {{\"summary\": \"...\", \"recommendations\": [\"...\"]}} "
    "and nothing else.\n\n"
    "Sales data:\n{sales}"
)


async def generate_dish_description(
    payload: DishDescriptionInput, *, client: Optional[OpenAI] = None
) -> DishDescriptionOutput:
    """Return an appetizing menu description for a dish."""

    dish_name = payload.dish_name.strip()
    if not dish_name or not payload.ingredients:
        raise AIInputError("Dish name and ingredients are required to generate a description.")

    prompt = DISH_DESCRIPTION_PROMPT.format(
        language=AI_OUTPUT_LANGUAGE,
        dish_name=dish_name,
        ingredients=", ".join(payload.ingredients),
    )
    return await _complete_json(prompt, DishDescriptionOutput, client=client, context="dish description")


async def suggest_price(
    payload: PriceSuggestionInput, *, client: Optional[OpenAI] = None
) -> PriceSuggestionOutput:
    """Suggest a retail price from the dish's ingredient cost."""

    if payload.cost <= 0:
        raise AIInputError("Dish cost must be greater than zero to suggest a price.")

    prompt = PRICE_SUGGESTION_PROMPT.format(
        market=AI_MARKET,
        dish_name=payload.dish_name.strip(),
        cost=f"{payload.cost:.2f}",
        currency=AI_CURRENCY,
    )
    return await _complete_json(prompt, PriceSuggestionOutput, client=client, context="price suggestion")


async def suggest_recipes(
    payload: RecipeSuggestionInput, *, client: Optional[OpenAI] = None
) -> RecipeSuggestionOutput:
    """Propose recipes that only use items from the restaurant's inventory."""

    if not payload.inventory:
        raise AIInputError("No inventory items found to generate suggestions.")

    inventory_list = "\n".join(f"{item.name}, {item.id}, {item.unit}" for item in payload.inventory)
    prompt = RECIPE_SUGGESTIONS_PROMPT.format(language=AI_OUTPUT_LANGUAGE, inventory=inventory_list)
    result = await _complete_json(prompt, RecipeSuggestionOutput, client=client, context="recipe suggestions")

    known_ids = {item.id for item in payload.inventory}
    for suggestion in result.suggestions:
        unknown = [entry.item_id for entry in suggestion.ingredients if entry.item_id not in known_ids]
        if unknown:
            logger.warning("Dropping ingredients outside the inventory from %r: %s", suggestion.recipe_name, unknown)
        suggestion.ingredients = [entry for entry in suggestion.ingredients if entry.item_id in known_ids]
    result.suggestions = [suggestion for suggestion in result.suggestions if suggestion.ingredients]
    return result


async def generate_menu_insights(
    payload: MenuInsightsInput, *, client: Optional[OpenAI] = None
) -> MenuInsightsOutput:
    """Summarize sales performance and list actionable menu changes."""

    if not payload.sales:
        raise AIInputError("No completed sales in the selected period.")

    sales_json = json.dumps([line.model_dump() for line in payload.sales], ensure_ascii=False)
    prompt = MENU_INSIGHTS_PROMPT.format(language=AI_OUTPUT_LANGUAGE, sales=sales_json)
    return await _complete_json(prompt, MenuInsightsOutput, client=client, context="menu insights")


async def _complete_json(
    prompt: str,
    output_model: Type[OutputModel],
    *,
    client: Optional[OpenAI],
    context: str,
) -> OutputModel:
    resolved_client = client or get_openai_client()

    def _request() -> str:
        completion = resolved_client.chat.completions.create(
            model=AI_MODEL,
            temperature=0.7,
            response_format={"type": "json_object"},
            messages=[{"role": "user", "content": prompt}],
            max_tokens=MAX_COMPLETION_TOKENS,
        )
        return completion.choices[0].message.content or ""

    try:
        raw = await asyncio.to_thread(_request)
    except APIError as exc:  # pragma: no cover - depends on network
        logger.error("OpenAI %s request failed: %s", context, exc)
        raise AIGenerationError("The AI service is temporarily unavailable.") from exc

    return parse_model_reply(raw, output_model, context=context)


def parse_model_reply(raw: str, output_model: Type[OutputModel], *, context: str) -> OutputModel:
    """Validate a JSON reply against ``output_model``."""

    text = _strip_code_fences(raw)
    try:
        data: Any = json.loads(text)
    except json.JSONDecodeError as exc:
        logger.warning("Invalid JSON from the %s model: %s", context, _preview_text(text))
        raise AIGenerationError("The AI returned an invalid response.") from exc
    try:
        return output_model.model_validate(data)
    except ValidationError as exc:
        logger.warning("Schema mismatch in %s reply: %s", context, exc.errors())
        raise AIGenerationError("The AI response did not match the expected format.") from exc


def _strip_code_fences(raw_text: str) -> str:
    if not raw_text or not raw_text.strip():
        raise AIGenerationError("The AI returned an empty response.")
    text = raw_text.strip()
    match = CODE_FENCE_PATTERN.search(text)
    if match:
        text = match.group(2).strip()
    return text


def _preview_text(text: str, limit: int = 280) -> str:
    safe = (text or "").replace("\n", " ").strip()
    if len(safe) <= limit:
        return safe
    return safe[: limit - 3] + "..."


__all__ = [
    "AIGenerationError",
    "AIInputError",
    "generate_dish_description",
    "generate_menu_insights",
    "parse_model_reply",
    "suggest_price",
    "suggest_recipes",
]
