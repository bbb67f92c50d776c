from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class CurrencyDTO(BaseModel):
    symbol: str = Field(..., min_length=1, examples=["BTC"])


class CurrencyStatsMinMaxDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    symbol: str
    oldest_date: datetime = Field(..., alias="oldestDate")
    newest_date: datetime = Field(..., alias="newestDate")
    min_price: Decimal = Field(..., alias="minPrice")
    max_price: Decimal = Field(..., alias="maxPrice")


class CurrencyNormalizedPriceDTO(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    symbol: str
    normalized_price: Decimal = Field(..., alias="normalizedPrice")
