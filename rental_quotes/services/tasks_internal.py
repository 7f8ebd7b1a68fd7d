import logging
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from rental_quotes.core.config import settings
from rental_quotes.services.quotes import expire_quotes

logger = logging.getLogger(__name__)


async def expire_quotes_async(session_factory=None) -> int:
    """Background task body: expire stale quotes with a worker-owned engine."""
    engine = None
    if session_factory is None:
        engine = create_async_engine(settings.DATABASE_URL, future=True, echo=False)
        session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    try:
        async with session_factory() as db:
            return await expire_quotes(db)
    except Exception as e:
        logger.error(f"Quote expiry task failed: {e}")
        raise
    finally:
        if engine is not None:
            await engine.dispose()
