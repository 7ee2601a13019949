import asyncio
from datetime import date

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker

from veritas.config import settings
from veritas.ledger.chain import ChainLinker
from veritas.ledger.schemas import StatementCreate
from veritas.ledger.store import LedgerStore

engine = create_async_engine(str(settings.SQLALCHEMY_DATABASE_URI), echo=True)
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)

SEED_STATEMENTS = [
    StatementCreate(
        statement="The Earth orbits the Sun once every 365.25 days.",
        speaker="NASA",
        source_url="https://solarsystem.nasa.gov/planets/earth/overview/",
    ),
    StatementCreate(
        statement="Water boils at 100 degrees Celsius at sea level.",
        speaker="National Institute of Standards and Technology",
    ),
    StatementCreate(
        statement="The Great Wall of China is visible from the Moon with the naked eye.",
        speaker="Popular myth",
        statement_date=date(1932, 1, 1),
    ),
]


async def seed_data():
    async with AsyncSessionLocal() as session:
        linker = ChainLinker(LedgerStore(session))
        if await linker.store.latest_entry() is not None:
            print("Ledger already has statements; skipping seed.")
            return

        for candidate in SEED_STATEMENTS:
            entry = await linker.append(candidate)
            print(f"Added {entry.id} -> block {entry.block_hash[:16]}")

    print("Seeding complete!")

if __name__ == "__main__":
    asyncio.run(seed_data())
