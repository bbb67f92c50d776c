import os
import sys
from collections import defaultdict
from datetime import datetime

import pytest

# Ensure the project root is on sys.path so tests can import cryptostats
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

from cryptostats.config import StatsSettings
from cryptostats.models.currency_model import Currency
from cryptostats.models.price_model import PricePoint
from cryptostats.services.currency_service import CurrencyService
from cryptostats.services.domain import MinMaxStats
from cryptostats.services.errors import DuplicateCurrencyError
from cryptostats.services.stats_service import CurrencyStatsService

DATA_DIR = os.path.join(os.path.dirname(__file__), "data")

# fixed "now" so defaulted periods are deterministic
NOW = datetime(2024, 1, 15, 12, 0, 0)


class InMemoryCurrencyRepository:
    def __init__(self):
        self.items = {}

    async def find_by_id(self, symbol):
        return self.items.get(symbol)

    async def find_all(self):
        return [self.items[k] for k in sorted(self.items)]

    async def save(self, currency):
        if currency.symbol in self.items:
            raise DuplicateCurrencyError(f"Currency '{currency.symbol}' already exists")
        self.items[currency.symbol] = currency
        return currency


class InMemoryStatsRepository:
    """Keeps flushed rows pending until commit, like a session would."""

    def __init__(self):
        self.committed = []
        self.pending = []
        self.flushes = []
        self.commits = 0
        self.rollbacks = 0
        self.queries = []

    def add_point(self, symbol, when, price):
        self.committed.append(PricePoint(currency_id=symbol, date_time=when, price=price))

    async def save_all(self, batch):
        batch = list(batch)
        self.flushes.append(len(batch))
        self.pending.extend(batch)

    async def commit(self):
        self.committed.extend(self.pending)
        self.pending = []
        self.commits += 1

    async def rollback(self):
        self.pending = []
        self.rollbacks += 1

    async def find_stats_by_symbol(self, symbol, start, end):
        self.queries.append((symbol, start, end))
        return {r.symbol: r for r in self._ranges(start, end)}.get(symbol)

    async def find_price_ranges(self, start, end):
        self.queries.append((None, start, end))
        return self._ranges(start, end)

    def _ranges(self, start, end):
        grouped = defaultdict(list)
        for p in self.committed:
            if start <= p.date_time < end:
                grouped[p.currency_id].append(p)
        return [
            MinMaxStats(
                symbol=symbol,
                oldest_date=min(p.date_time for p in points),
                newest_date=max(p.date_time for p in points),
                min_price=min(p.price for p in points),
                max_price=max(p.price for p in points),
            )
            for symbol, points in sorted(grouped.items())
        ]


@pytest.fixture
def currency_repo():
    repo = InMemoryCurrencyRepository()
    repo.items["BTC"] = Currency(symbol="BTC")
    return repo


@pytest.fixture
def stats_repo():
    return InMemoryStatsRepository()


@pytest.fixture
def settings():
    return StatsSettings()


@pytest.fixture
def stats_service(currency_repo, stats_repo, settings):
    return CurrencyStatsService(currency_repo, stats_repo, settings, clock=lambda: NOW)


@pytest.fixture
def currency_service(currency_repo):
    return CurrencyService(currency_repo)


@pytest.fixture
def app_module(monkeypatch):
    """The FastAPI module with startup DB initialization stubbed out."""
    import cryptostats.app as app_module

    async def _noop(*a, **k):
        return None

    monkeypatch.setattr(app_module, "init_db", _noop)
    return app_module


@pytest.fixture
def client(app_module, currency_service, stats_service):
    from fastapi.testclient import TestClient

    app = app_module.app
    app.dependency_overrides[app_module.get_currency_service] = lambda: currency_service
    app.dependency_overrides[app_module.get_stats_service] = lambda: stats_service
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
