from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from cohort_payments.core.config import settings


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # Local file database: one connection may be used from the aiosqlite worker thread.
        return {"connect_args": {"check_same_thread": False}}
    # pool_pre_ping: check connection is alive before use; pool_recycle: drop idle connections
    # the server may already have closed.
    return {"pool_pre_ping": True, "pool_recycle": 300}


engine = create_async_engine(
    settings.database_url,
    echo=settings.sql_echo,
    future=True,
    **_engine_options(settings.database_url),
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session
