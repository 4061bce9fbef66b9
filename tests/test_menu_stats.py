import pytest

from backoffice.services.menu_stats_service import aggregate_sales


def test_aggregate_sales_counts_only_completed_orders() -> None:
    orders = [
        {
            "status": "paid",
            "items": [
                {"id": "m1", "name": "Tacos", "quantity": 3, "price": 20},
                {"id": "m2", "name": "Horchata", "quantity": 1, "price": 35},
            ],
        },
        {"status": "served", "items": [{"id": "m1", "name": "Tacos", "quantity": 2, "price": 20}]},
        {"status": "pending", "items": [{"id": "m2", "name": "Horchata", "quantity": 9, "price": 35}]},
    ]
    menu_items = [
        {"id": "m1", "name": "Tacos", "recipe_id": "r-tacos"},
        {"id": "m2", "name": "Horchata"},
    ]
    recipes = [{"id": "r-tacos", "cost": 6.5}]

    lines = aggregate_sales(orders, menu_items, recipes)

    assert [line.item_name for line in lines] == ["Tacos", "Horchata"]
    tacos, horchata = lines
    assert tacos.quantity_sold == 5
    assert tacos.revenue == pytest.approx(100)
    assert tacos.cost == pytest.approx(32.5)
    assert horchata.quantity_sold == 1
    assert horchata.cost == 0


def test_aggregate_sales_ignores_malformed_lines() -> None:
    orders = [
        {"status": "paid", "items": [{"name": "No id", "quantity": 1, "price": 10}, {"id": "m1", "quantity": "x", "price": None}]},
        {"status": "paid"},
    ]

    lines = aggregate_sales(orders, [], [])

    assert len(lines) == 1
    assert lines[0].item_name == "m1"
    assert lines[0].quantity_sold == 0
    assert lines[0].revenue == 0
