from logging.config import fileConfig
import os
import re
import sys
from sqlalchemy import engine_from_config
from sqlalchemy import pool
from alembic import context

# this is the Alembic Config object, which provides
# access to the values within the .ini file in use.
config = context.config

# Interpret the config file for Python logging.
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

# model MetaData for 'autogenerate' support
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))
from cryptostats.config import DATABASE_URL
from cryptostats.database import Base
from cryptostats.models.currency_model import Currency  # noqa: F401
from cryptostats.models.price_model import PricePoint  # noqa: F401

target_metadata = Base.metadata

# DATABASE_URL from the environment wins, cryptostats.config supplies the default
database_url = os.getenv('DATABASE_URL', DATABASE_URL)

# migrations run on a synchronous driver: postgresql+asyncpg://... -> postgresql://...
if database_url.startswith("postgresql+") and "+async" in database_url:
    database_url = re.sub(r"\+[^:]+", "", database_url, count=1)

config.set_main_option('sqlalchemy.url', database_url)


def run_migrations_offline():
    url = config.get_main_option('sqlalchemy.url')
    context.configure(url=url, target_metadata=target_metadata, literal_binds=True)

    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix='sqlalchemy.',
        poolclass=pool.NullPool,
    )

    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata)

        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
