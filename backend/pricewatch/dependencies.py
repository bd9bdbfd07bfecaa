"""FastAPI dependency injection providers."""

import uuid
from typing import AsyncGenerator

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from pricewatch.db.session import async_session_factory
from pricewatch.services.user_service import UserService


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield a database session for request-scoped usage.

    The session is automatically committed on success or rolled back on error.
    Always closed after the request completes.
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def get_current_user_id(
    x_user_id: str = Header(..., alias="X-User-Id", description="Owner UUID from the auth gateway"),
    db: AsyncSession = Depends(get_db),
) -> uuid.UUID:
    """Resolve the caller from the X-User-Id header.

    Authentication happens upstream; the header carries the user's UUID.
    The user row is created the first time an id is seen.
    """
    try:
        user_id = uuid.UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid X-User-Id header",
        )

    await UserService(db).get_or_create(user_id)
    return user_id


def get_fetcher():
    """The fetch orchestrator used by request handlers."""
    from pricewatch.scrapers.fetcher import get_fetch_orchestrator

    return get_fetch_orchestrator()


def get_tracker():
    from pricewatch.services.price_tracker import get_price_tracker

    return get_price_tracker()


def get_scheduler():
    from pricewatch.scrapers.scheduler import get_tracking_scheduler

    return get_tracking_scheduler()
