"""Menu analytics helpers."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping

from backoffice.schemas import SalesLine

COMPLETED_ORDER_STATUSES = frozenset({"paid", "served"})


def aggregate_sales(
    orders: Iterable[Mapping[str, Any]],
    menu_items: Iterable[Mapping[str, Any]],
    recipes: Iterable[Mapping[str, Any]],
) -> List[SalesLine]:
    """Sum quantity, revenue and ingredient cost per dish over completed orders."""

    recipe_costs = {str(recipe.get("id")): _to_float(recipe.get("cost")) for recipe in recipes if recipe.get("id")}
    item_costs: Dict[str, float] = {}
    for menu_item in menu_items:
        item_id = menu_item.get("id")
        if not item_id:
            continue
        recipe_id = menu_item.get("recipe_id") or menu_item.get("recipeId")
        item_costs[str(item_id)] = recipe_costs.get(str(recipe_id), 0.0) if recipe_id else 0.0

    lines: Dict[str, SalesLine] = {}
    for order in orders:
        if order.get("status") not in COMPLETED_ORDER_STATUSES:
            continue
        for item in order.get("items") or []:
            item_id = item.get("id")
            if not item_id:
                continue
            key = str(item_id)
            quantity = _to_float(item.get("quantity"))
            line = lines.get(key)
            if line is None:
                line = SalesLine(item_name=str(item.get("name") or key))
                lines[key] = line
            line.quantity_sold += quantity
            line.revenue += _to_float(item.get("price")) * quantity
            line.cost += item_costs.get(key, 0.0) * quantity

    return sorted(lines.values(), key=lambda entry: entry.revenue, reverse=True)


def _to_float(value: Any) -> float:
    try:
        return float(value) if value is not None else 0.0
    except (TypeError, ValueError):
        return 0.0


__all__ = ["aggregate_sales", "COMPLETED_ORDER_STATUSES"]
