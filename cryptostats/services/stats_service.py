"""Ingestion of uploaded price CSV files and the aggregate queries over them.

A CSV upload carries the prices of exactly one currency::

    Timestamp,Symbol,Price
    1641009600000,BTC,46813.21
    1641031200000,BTC,46979.61

The header is skipped, the symbol of the first data row must already be
registered, and every following row must name the same symbol (compared
case-insensitively). Rows are flushed to the database in batches of
``StatsSettings.batch_size`` and the whole file is committed at once.
"""

import asyncio
import csv
import io
import logging
from datetime import datetime, date, time, timedelta
from decimal import Decimal
from itertools import islice
from typing import Callable, Iterator, List, Optional, Tuple

from cryptostats.config import StatsSettings
from cryptostats.models.price_model import PricePoint
from cryptostats.services.domain import MinMaxStats, NormalizedPrice
from cryptostats.services.errors import (
    CurrencyMismatchError,
    CurrencyNotRegisteredError,
    EntityNotFoundError,
    MalformedRowError,
    StreamReadError,
    WrongTimePeriodError,
)

logger = logging.getLogger("cryptostats.services.stats")

CSV_COLUMNS = 3
PRICE_INTEGER_DIGITS = 18  # Numeric(25, 7)


def format_local_datetime(value: datetime) -> str:
    """ISO local date-time, dropping the seconds when they are zero."""
    if value.second == 0 and value.microsecond == 0:
        return value.isoformat(timespec="minutes")
    return value.isoformat()


def parse_millis(millis: str) -> datetime:
    return datetime.fromtimestamp(int(millis) / 1000)


def _to_local(value: Optional[datetime]) -> Optional[datetime]:
    # stored date-times are naive local time
    if value is not None and value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def _read_rows(stream) -> Iterator[Tuple[int, List[str]]]:
    try:
        with io.TextIOWrapper(stream, encoding="utf-8", newline="") as text:
            reader = csv.reader(text)
            for row in reader:
                yield reader.line_num, row
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise StreamReadError("Exception occurs while reading CSV file") from e


async def _read_chunk(rows: Iterator[Tuple[int, List[str]]], size: int):
    # the upload is a blocking file object, read it off the event loop
    return await asyncio.to_thread(lambda: list(islice(rows, size)))


def _validate_columns(row: List[str]) -> None:
    if len(row) != CSV_COLUMNS:
        raise MalformedRowError("CSV file must contain exactly 3 columns per line")


class CurrencyStatsService:
    def __init__(
        self,
        currency_repository,
        stats_repository,
        settings: StatsSettings = StatsSettings(),
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.currency_repository = currency_repository
        self.stats_repository = stats_repository
        self.settings = settings
        self.clock = clock

    async def create_stats(self, stream) -> int:
        """Ingest a CSV byte stream and return the number of stored rows.

        Raises MalformedRowError, CurrencyNotRegisteredError,
        CurrencyMismatchError or StreamReadError; on any failure the
        transaction is rolled back, including batches already flushed.
        """
        try:
            count = await self._ingest(stream)
        except Exception:
            await self.stats_repository.rollback()
            raise
        await self.stats_repository.commit()
        return count

    async def _ingest(self, stream) -> int:
        rows = _read_rows(stream)
        try:
            head = await _read_chunk(rows, 2)  # header and first price row
            if len(head) < 2:
                raise MalformedRowError("CSV file does not contain any price rows")
            line_num, row = head[1]
            _validate_columns(row)
            currency = await self.currency_repository.find_by_id(row[1])
            if currency is None:
                raise CurrencyNotRegisteredError(
                    "Currency not found, need to enable the currency first"
                )
            symbol = currency.symbol

            batch: List[PricePoint] = []
            flushes = 0
            total = 0
            chunk = head[1:]
            while chunk:
                for line_num, row in chunk:
                    _validate_columns(row)
                    if row[1].lower() != symbol.lower():
                        raise CurrencyMismatchError(symbol, row[1])
                    batch.append(self._parse_row(line_num, row, symbol))
                    total += 1
                    if len(batch) == self.settings.batch_size:
                        await self.stats_repository.save_all(batch)
                        flushes += 1
                        batch = []
                chunk = await _read_chunk(rows, self.settings.batch_size)

            if batch:
                await self.stats_repository.save_all(batch)
                flushes += 1
        finally:
            # releases the text wrapper and the upload's file handle
            rows.close()
        logger.info(f"Ingested {total} price rows for {symbol} in {flushes} batches")
        return total

    @staticmethod
    def _parse_row(line_num: int, row: List[str], symbol: str) -> PricePoint:
        try:
            price = Decimal(row[2])
            # NaN/Infinity and values wider than Numeric(25, 7) cannot be stored
            if not price.is_finite() or price.adjusted() >= PRICE_INTEGER_DIGITS:
                raise ValueError(f"price out of range: {row[2]}")
            return PricePoint(
                date_time=parse_millis(row[0]),
                currency_id=symbol,
                price=price,
            )
        except (ValueError, ArithmeticError, OSError) as e:
            raise MalformedRowError(
                f"Unable to parse CSV line {line_num}: {','.join(row)}"
            ) from e

    async def get_currency_stats(
        self,
        symbol: str,
        start_date_time: Optional[datetime] = None,
        end_date_time: Optional[datetime] = None,
    ) -> MinMaxStats:
        start, end = self._resolve_period(start_date_time, end_date_time)
        stats = await self.stats_repository.find_stats_by_symbol(symbol, start, end)
        if stats is None:
            raise EntityNotFoundError(f"Currency '{symbol}' not found")
        return stats

    async def get_all_currencies_normalized(
        self,
        start_date_time: Optional[datetime] = None,
        end_date_time: Optional[datetime] = None,
    ) -> List[NormalizedPrice]:
        start, end = self._resolve_period(start_date_time, end_date_time)
        return self._rank(await self.stats_repository.find_price_ranges(start, end))

    async def get_highest_normalized_price_for_day(
        self, day: Optional[date] = None
    ) -> NormalizedPrice:
        day = day or self.clock().date()
        start = datetime.combine(day, time.min)
        end = start + timedelta(days=1)
        ranking = self._rank(await self.stats_repository.find_price_ranges(start, end))
        if not ranking:
            raise EntityNotFoundError(f"Prices not found for the day '{day.isoformat()}'")
        return ranking[0]

    def _resolve_period(
        self, start: Optional[datetime], end: Optional[datetime]
    ) -> Tuple[datetime, datetime]:
        now = self.clock()
        start = _to_local(start) or now - self.settings.default_period
        end = _to_local(end) or now
        if start >= end:
            raise WrongTimePeriodError(
                f"The start date '{format_local_datetime(start)}' must be before "
                f"the end date '{format_local_datetime(end)}'"
            )
        logger.debug(f"Resolved stats period [{start}, {end})")
        return start, end

    @staticmethod
    def _rank(ranges: List[MinMaxStats]) -> List[NormalizedPrice]:
        result = []
        for r in ranges:
            if not (r.min_price.is_finite() and r.max_price.is_finite()):
                logger.warning(f"Skipping {r.symbol}: stored prices are not finite")
                continue
            if r.min_price == 0:
                logger.warning(
                    f"Skipping {r.symbol}: minimum price is zero, normalized price undefined"
                )
                continue
            value = (r.max_price - r.min_price) / r.min_price
            result.append(NormalizedPrice(r.symbol, value))
        # ties keep symbol order
        result.sort(key=lambda n: n.symbol)
        result.sort(key=lambda n: n.normalized_price, reverse=True)
        return result
