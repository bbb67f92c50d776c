from typing import List, Optional
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cryptostats.models.currency_model import Currency
from cryptostats.services.errors import DuplicateCurrencyError

logger = logging.getLogger("cryptostats.repositories.currency")


class CurrencyRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_id(self, symbol: str) -> Optional[Currency]:
        return await self.session.get(Currency, symbol)

    async def find_all(self) -> List[Currency]:
        res = await self.session.execute(select(Currency).order_by(Currency.symbol))
        return list(res.scalars().all())

    async def save(self, currency: Currency) -> Currency:
        try:
            self.session.add(currency)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(f"Currency insert rejected for {currency.symbol}: {e.orig}")
            raise DuplicateCurrencyError(
                f"Currency '{currency.symbol}' already exists"
            ) from e
        except Exception:
            await self.session.rollback()
            logger.exception("Currency DB write failed")
            raise
        return currency
