from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from leave_portal.core.config import Settings
from leave_portal.core.errors import ConfigurationError


class Base(DeclarativeBase):
    pass


def build_engine(settings: Settings) -> AsyncEngine:
    if not settings.DATABASE_URL:
        raise ConfigurationError("DATABASE_URL is not set")
    return create_async_engine(settings.DATABASE_URL, echo=settings.DEBUG)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def create_tables(engine: AsyncEngine) -> None:
    # Importing the models registers them on Base.metadata
    import leave_portal.models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
