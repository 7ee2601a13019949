"""
Create the ledger and chat tables directly from the models.

Usage:
    python -m veritas.scripts.init_db [--reset]

Use the migrations for a real deployment; this is for local development.
"""
import asyncio
import sys

from veritas.database import engine, Base

# Import all models to ensure they are registered in Base.metadata
from veritas.ledger.models import LedgerEntry  # noqa: F401
from veritas.chat.models import ChatTurn  # noqa: F401


async def init_models(reset: bool = False):
    async with engine.begin() as conn:
        if reset:
            await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()
    print("Database tables created.")

if __name__ == "__main__":
    asyncio.run(init_models(reset="--reset" in sys.argv[1:]))
