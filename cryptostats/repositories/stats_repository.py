from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from cryptostats.models.price_model import PricePoint
from cryptostats.services.domain import MinMaxStats


def _stats_query(start: datetime, end: datetime):
    # [start, end) grouped per currency
    return (
        select(
            PricePoint.currency_id.label("symbol"),
            func.min(PricePoint.date_time).label("oldest_date"),
            func.max(PricePoint.date_time).label("newest_date"),
            func.min(PricePoint.price).label("min_price"),
            func.max(PricePoint.price).label("max_price"),
        )
        .where(PricePoint.date_time >= start, PricePoint.date_time < end)
        .group_by(PricePoint.currency_id)
    )


def _to_stats(row) -> MinMaxStats:
    return MinMaxStats(
        symbol=row.symbol,
        oldest_date=row.oldest_date,
        newest_date=row.newest_date,
        min_price=Decimal(row.min_price),
        max_price=Decimal(row.max_price),
    )


class CurrencyStatsRepository:
    """Price point persistence and the grouped range queries over it."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def save_all(self, batch: Iterable[PricePoint]) -> None:
        self.session.add_all(batch)
        await self.session.flush()

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    async def find_stats_by_symbol(
        self, symbol: str, start: datetime, end: datetime
    ) -> Optional[MinMaxStats]:
        q = _stats_query(start, end).where(PricePoint.currency_id == symbol)
        res = await self.session.execute(q)
        row = res.first()
        return _to_stats(row) if row else None

    async def find_price_ranges(self, start: datetime, end: datetime) -> List[MinMaxStats]:
        q = _stats_query(start, end).order_by(PricePoint.currency_id)
        res = await self.session.execute(q)
        return [_to_stats(r) for r in res.all()]
