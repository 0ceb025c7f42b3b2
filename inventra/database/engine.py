from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from inventra.config import settings

# Pooled connections are bound to the event loop that opened them; Celery
# tasks dispose the engine after each asyncio.run.
engine = create_async_engine(
    settings.database_url,
    pool_size=settings.database_pool_size,
    max_overflow=settings.database_max_overflow,
    pool_pre_ping=True,
    pool_recycle=settings.database_pool_recycle_seconds,
    echo=settings.database_echo,
)

async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
