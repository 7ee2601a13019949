from typing import Optional

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from veritas.chat.service import ChatLogStore
from veritas.database import get_db
from veritas.ledger.store import LedgerStore
from veritas.oracle import OracleClient, get_oracle


async def get_ledger_store(db: AsyncSession = Depends(get_db)) -> LedgerStore:
    return LedgerStore(db)


async def get_chat_store(db: AsyncSession = Depends(get_db)) -> ChatLogStore:
    return ChatLogStore(db)


def get_oracle_client() -> Optional[OracleClient]:
    return get_oracle()
