import logging
from typing import List

from cryptostats.models.currency_model import Currency
from cryptostats.services.domain import CurrencyDomain
from cryptostats.services.errors import EntityNotFoundError

logger = logging.getLogger("cryptostats.services.currency")


class CurrencyService:
    """Create, get one and get all currencies."""

    def __init__(self, currency_repository):
        self.currency_repository = currency_repository

    async def create(self, currency: CurrencyDomain) -> None:
        # uniqueness is enforced by the primary key, see CurrencyRepository.save
        await self.currency_repository.save(Currency(symbol=currency.symbol))
        logger.info(f"Currency created: {currency.symbol}")

    async def get_one(self, symbol: str) -> CurrencyDomain:
        entity = await self.currency_repository.find_by_id(symbol)
        if entity is None:
            raise EntityNotFoundError(f"Currency '{symbol}' not found")
        return CurrencyDomain(entity.symbol)

    async def get_all(self) -> List[CurrencyDomain]:
        return [CurrencyDomain(e.symbol) for e in await self.currency_repository.find_all()]
