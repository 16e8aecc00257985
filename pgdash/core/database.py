from typing import Dict

from fastapi import HTTPException, status
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from pgdash.core.config import settings

# One engine per managed environment (dev, prod)
engines: Dict[str, AsyncEngine] = {
    env: create_async_engine(url, echo=settings.SQL_ECHO)
    for env, url in settings.database_urls.items()
}

# Talk to the DB through async sessions without refreshes after closed conn to avoid errors in async programming
session_factories: Dict[str, async_sessionmaker[AsyncSession]] = {
    env: async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    for env, engine in engines.items()
}


def get_environment(env: str) -> str:
    """Validate the `{env}` path segment against the configured environments."""
    if env not in session_factories:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid environment"
        )
    return env


# This is the "Bridge" that gives my routes access to postgres
async def get_db(env: str):
    async with session_factories[get_environment(env)]() as session:
        yield session


async def dispose_engines():
    for engine in engines.values():
        await engine.dispose()


# All the models are "stored" in the Base class will be processed by the Engine
class Base(DeclarativeBase):
    pass
