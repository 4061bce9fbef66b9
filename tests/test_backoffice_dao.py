import asyncio
import types
from datetime import date

from backoffice.services.backoffice_dao import SupabaseBackofficeDAO


class FakeQuery:
    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.filters = []

    def select(self, columns):
        self.filters.append(("select", columns))
        return self

    def eq(self, column, value):
        self.filters.append(("eq", column, value))
        return self

    def gte(self, column, value):
        self.filters.append(("gte", column, value))
        return self

    def lte(self, column, value):
        self.filters.append(("lte", column, value))
        return self

    def execute(self):
        self.client.executed.append((self.table, self.filters))
        return types.SimpleNamespace(data=self.client.rows.get(self.table, []))


class FakeSupabaseClient:
    def __init__(self, rows):
        self.rows = rows
        self.executed = []

    def table(self, name):
        return FakeQuery(self, name)


def test_orders_in_range_include_takeout_orders() -> None:
    client = FakeSupabaseClient(
        {
            "orders": [{"id": "o-1", "status": "paid", "items": []}],
            "takeout_orders": [{"id": "t-1", "status": "served", "items": []}],
        }
    )
    dao = SupabaseBackofficeDAO(client, "resto-1")

    rows = asyncio.run(dao.fetch_orders_between(date(2024, 7, 1), date(2024, 7, 7)))

    assert [row["id"] for row in rows] == ["o-1", "t-1"]
    assert [table for table, _ in client.executed] == ["orders", "takeout_orders"]
    for _, filters in client.executed:
        assert ("eq", "restaurant_id", "resto-1") in filters
        assert ("gte", "created_at", "2024-07-01T00:00:00") in filters
        assert ("lte", "created_at", "2024-07-07T23:59:59.999999") in filters


def test_orders_in_range_tolerate_empty_tables() -> None:
    client = FakeSupabaseClient({"takeout_orders": [{"id": "t-9", "status": "paid", "items": []}]})
    dao = SupabaseBackofficeDAO(client, "resto-1")

    rows = asyncio.run(dao.fetch_orders_between(date(2024, 7, 1), date(2024, 7, 1)))

    assert rows == [{"id": "t-9", "status": "paid", "items": []}]
