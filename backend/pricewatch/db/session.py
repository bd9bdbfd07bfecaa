"""Engine and session factory for the configured database."""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from pricewatch.config import settings


def build_engine(url: str) -> AsyncEngine:
    """Create an async engine; pool sizing only applies to server databases."""
    kwargs: dict = {"echo": settings.DEBUG and settings.ENVIRONMENT != "test"}
    if not url.startswith("sqlite"):
        kwargs.update(pool_size=10, max_overflow=5, pool_pre_ping=True)
    return create_async_engine(url, **kwargs)


engine = build_engine(settings.DATABASE_URL)

# Tracking passes keep using loaded products after commit
async_session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
