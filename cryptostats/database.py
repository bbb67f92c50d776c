from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from cryptostats.config import DATABASE_URL
import asyncio
import logging

engine = create_async_engine(DATABASE_URL, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    bind=engine, class_=AsyncSession, expire_on_commit=False
)
Base = declarative_base()

logger = logging.getLogger("cryptostats.database")


async def init_db(max_attempts: int = 10):
    # import models so their tables are registered on Base.metadata
    from cryptostats.models import currency_model, price_model  # noqa: F401

    # create tables with basic retry while Postgres starts
    attempt = 0
    while True:
        try:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Database tables ready")
            break
        except Exception as e:
            attempt += 1
            if attempt >= max_attempts:
                logger.error(f"Database still unavailable after {attempt} attempts")
                raise
            wait_seconds = min(5, 0.5 * attempt)
            logger.warning(
                f"Database not ready (attempt {attempt}): {e}. Retrying in {wait_seconds}s..."
            )
            await asyncio.sleep(wait_seconds)
