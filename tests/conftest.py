"""
Pytest fixtures: an in-memory row store with the same interface as utils.database.Store.
"""
from collections import Counter

import pytest

from utils.database import TABLES
from factories import seed_scenario


def _matches(row, filters):
    for key, value in filters.items():
        if key.endswith("__gt"):
            actual = getattr(row, key[:-4])
            if actual is None or not actual > value:
                return False
        elif getattr(row, key) != value:
            return False
    return True


class InMemoryStore:
    """Keeps rows in insertion order, like an unindexed table scan."""

    def __init__(self):
        self.tables = {name: [] for name in TABLES}
        self.insert_calls = []

    def seed(self, table, rows):
        self.tables[table].extend(rows)

    async def create_tables(self):
        return None

    async def count(self, table):
        return len(self.tables[table])

    async def count_by(self, table, group_column, filters=None):
        counts = Counter(
            getattr(row, group_column) for row in self.tables[table] if _matches(row, filters or {})
        )
        return dict(sorted(counts.items(), key=lambda item: (-item[1], item[0])))

    async def insert_many(self, table, rows):
        self.insert_calls.append((table, len(rows)))
        self.tables[table].extend(rows)
        return len(rows)

    async def fetch(self, table, filters=None, order_by=(), limit=None):
        rows = [row for row in self.tables[table] if _matches(row, filters or {})]
        for key in reversed(list(order_by)):
            column = key.lstrip("-")
            rows.sort(key=lambda row: getattr(row, column), reverse=key.startswith("-"))
        if limit is not None:
            rows = rows[:limit]
        return rows

    async def fetch_one(self, table, filters=None, order_by=()):
        rows = await self.fetch(table, filters, order_by, limit=1)
        return rows[0] if rows else None


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def seeded_store():
    return seed_scenario(InMemoryStore())
