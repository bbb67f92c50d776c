from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal


@dataclass(frozen=True)
class CurrencyDomain:
    symbol: str


@dataclass(frozen=True)
class MinMaxStats:
    """Grouped price statistics of one currency over a date range."""

    symbol: str
    oldest_date: datetime
    newest_date: datetime
    min_price: Decimal
    max_price: Decimal


@dataclass(frozen=True)
class NormalizedPrice:
    symbol: str
    normalized_price: Decimal
