"""Database connection and session management."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.config import get_settings

settings = get_settings()


def _engine_options(url: str) -> dict:
    # SQLite (local dev, tests) does not accept queue pool sizing.
    if url.startswith("sqlite"):
        return {"echo": settings.debug}
    return {"echo": settings.debug, "pool_size": 5, "max_overflow": 10}


engine = create_async_engine(settings.database_url, **_engine_options(settings.database_url))

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncSession:
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
