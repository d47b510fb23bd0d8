from functools import lru_cache

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from motorent.config.settings import Settings


@lru_cache()
def _engine_for(database_url: str) -> Engine:
    return create_engine(database_url, pool_pre_ping=True, future=True)


def get_engine(settings: Settings) -> Engine:
    return _engine_for(settings.database_url)


def get_sessionmaker(settings: Settings) -> sessionmaker:
    return sessionmaker(
        bind=get_engine(settings),
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
        future=True,
    )
