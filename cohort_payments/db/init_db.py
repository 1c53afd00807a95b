import asyncio
import logging

from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncEngine

from cohort_payments.core import models  # noqa: F401  (registers tables on Base.metadata)
from cohort_payments.db.session import Base, engine

logger = logging.getLogger(__name__)


async def ensure_tables(db_engine: AsyncEngine) -> None:
    """
    Create any payment tables missing from the connected database.
    Existing tables are left untouched.
    """
    async with db_engine.begin() as conn:
        existing = await conn.run_sync(lambda sync_conn: set(inspect(sync_conn).get_table_names()))
        missing = [name for name in Base.metadata.tables if name not in existing]
        await conn.run_sync(Base.metadata.create_all)

    if missing:
        logger.info("Created missing tables: %s", ", ".join(missing))
    else:
        logger.info("All payment tables already exist in the database.")


async def main() -> None:
    logging.basicConfig(level=logging.INFO)
    await ensure_tables(engine)


if __name__ == "__main__":
    asyncio.run(main())
