"""
Walk the statement chain from its tail back to genesis and report any breaks.

Usage:
    uv run python -m scripts.verify_chain
"""

import asyncio
import logging
import sys

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker

# Import the app to ensure all models are registered with SQLAlchemy
import veritas.main  # noqa: F401

from veritas.config import settings
from veritas.ledger.chain import ChainLinker
from veritas.ledger.store import LedgerStore

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


async def verify() -> bool:
    engine = create_async_engine(str(settings.SQLALCHEMY_DATABASE_URI))
    async_session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    try:
        async with async_session() as db:
            report = await ChainLinker(LedgerStore(db)).verify()
    finally:
        await engine.dispose()

    logger.info(f"Chain length from tail: {report.length}, tail: {report.tail}")
    for brk in report.breaks:
        logger.error(f"{brk.kind} at {brk.entry_id}: {brk.detail}")
    if report.valid:
        logger.info("OK: chain verified")
    return report.valid


if __name__ == "__main__":
    sys.exit(0 if asyncio.run(verify()) else 1)
