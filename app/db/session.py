from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings


# ── Base ───────────────────────────────────────────────────────────────────────
class Base(DeclarativeBase):
    pass


# ── Engine ─────────────────────────────────────────────────────────────────────
_engine_kwargs = {"echo": settings.APP_ENV == "development", "pool_pre_ping": True}
if not str(settings.DATABASE_URL).startswith("sqlite"):
    # SQLite uses a static/null pool that rejects sizing arguments
    _engine_kwargs.update(pool_size=10, max_overflow=20)

engine = create_async_engine(str(settings.DATABASE_URL), **_engine_kwargs)

# ── Session factory ────────────────────────────────────────────────────────────
async_session_maker = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── FastAPI dependency ─────────────────────────────────────────────────────────
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as session:
        yield session
