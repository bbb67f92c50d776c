import logging
from datetime import date, datetime
from typing import List, Optional

from fastapi import Depends, FastAPI, File, Query, Request, Response, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from cryptostats.config import LOG_LEVEL, load_stats_settings
from cryptostats.database import AsyncSessionLocal, init_db
from cryptostats.repositories.currency_repository import CurrencyRepository
from cryptostats.repositories.stats_repository import CurrencyStatsRepository
from cryptostats.schemas import (
    CurrencyDTO,
    CurrencyNormalizedPriceDTO,
    CurrencyStatsMinMaxDTO,
)
from cryptostats.services.currency_service import CurrencyService
from cryptostats.services.domain import CurrencyDomain, NormalizedPrice
from cryptostats.services.errors import CurrencyServiceError, EntityNotFoundError
from cryptostats.services.stats_service import CurrencyStatsService

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
)
logger = logging.getLogger("cryptostats.app")

app = FastAPI(title="Crypto Currency Stats")

# CORS for the streamlit dev UI
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # narrow this in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

stats_settings = load_stats_settings()


# dependency for getting DB session
async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


def get_currency_service(db: AsyncSession = Depends(get_db)) -> CurrencyService:
    return CurrencyService(CurrencyRepository(db))


def get_stats_service(db: AsyncSession = Depends(get_db)) -> CurrencyStatsService:
    return CurrencyStatsService(
        CurrencyRepository(db), CurrencyStatsRepository(db), stats_settings
    )


@app.on_event("startup")
async def startup_event():
    logger.info(
        f"Starting up application: batch_size={stats_settings.batch_size}, "
        f"default_period={stats_settings.default_period}"
    )
    await init_db()
    logger.info("Startup complete: DB initialized")


# Error translation: not found -> 404, other domain errors -> 400
@app.exception_handler(EntityNotFoundError)
async def entity_not_found_handler(request: Request, exc: EntityNotFoundError):
    logger.error(f"EntityNotFoundError on {request.url.path}: {exc}")
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(CurrencyServiceError)
async def currency_service_error_handler(request: Request, exc: CurrencyServiceError):
    logger.error(f"{type(exc).__name__} on {request.url.path}: {exc}")
    return JSONResponse(status_code=400, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def general_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unexpected error on {request.url.path}")
    return JSONResponse(
        status_code=500, content={"detail": "An unexpected error occurred."}
    )


# REST: health
@app.get("/health")
async def health():
    logger.debug("Health check requested")
    return {"status": "ok"}


# REST: currencies
@app.post("/currencies", status_code=201)
async def create_currency(
    payload: CurrencyDTO, service: CurrencyService = Depends(get_currency_service)
):
    logger.info(f"Create currency requested: {payload.symbol}")
    await service.create(CurrencyDomain(payload.symbol))
    return Response(status_code=201)


@app.get("/currencies", response_model=List[CurrencyDTO])
async def get_all_currencies(service: CurrencyService = Depends(get_currency_service)):
    return [CurrencyDTO(symbol=c.symbol) for c in await service.get_all()]


# stats routes are declared before /currencies/{name} so "stats" is not taken as a name
@app.post("/currencies/stats", status_code=201)
async def create_stats(
    file: UploadFile = File(...),
    service: CurrencyStatsService = Depends(get_stats_service),
):
    logger.info(f"Stats upload received: {file.filename}")
    await service.create_stats(file.file)
    return Response(status_code=201)


@app.get("/currencies/stats", response_model=List[CurrencyNormalizedPriceDTO])
async def get_all_currencies_normalized(
    start_date_time: Optional[datetime] = Query(None, alias="startDateTime"),
    end_date_time: Optional[datetime] = Query(None, alias="endDateTime"),
    service: CurrencyStatsService = Depends(get_stats_service),
):
    ranking = await service.get_all_currencies_normalized(start_date_time, end_date_time)
    return [_normalized_dto(n) for n in ranking]


@app.get("/currencies/stats/highest", response_model=CurrencyNormalizedPriceDTO)
async def get_highest_normalized_price_for_day(
    day: Optional[date] = Query(None),
    service: CurrencyStatsService = Depends(get_stats_service),
):
    return _normalized_dto(await service.get_highest_normalized_price_for_day(day))


@app.get("/currencies/stats/{name}", response_model=CurrencyStatsMinMaxDTO)
async def get_one_currency_stats(
    name: str,
    start_date_time: Optional[datetime] = Query(None, alias="startDateTime"),
    end_date_time: Optional[datetime] = Query(None, alias="endDateTime"),
    service: CurrencyStatsService = Depends(get_stats_service),
):
    stats = await service.get_currency_stats(name, start_date_time, end_date_time)
    return CurrencyStatsMinMaxDTO(
        symbol=stats.symbol,
        oldest_date=stats.oldest_date,
        newest_date=stats.newest_date,
        min_price=stats.min_price,
        max_price=stats.max_price,
    )


@app.get("/currencies/{name}", response_model=CurrencyDTO)
async def get_one_currency(
    name: str, service: CurrencyService = Depends(get_currency_service)
):
    return CurrencyDTO(symbol=(await service.get_one(name)).symbol)


def _normalized_dto(n: NormalizedPrice) -> CurrencyNormalizedPriceDTO:
    return CurrencyNormalizedPriceDTO(symbol=n.symbol, normalized_price=n.normalized_price)
