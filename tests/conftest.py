import asyncio
import json
import os
import uuid
from datetime import datetime
from typing import AsyncGenerator, Callable, List, Optional, Sequence

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from veritas.chat.models import ChatRole, ChatTurn
from veritas.chat.service import ChatLogStore
from veritas.database import Base
from veritas.ledger.models import LedgerEntry
from veritas.ledger.store import LedgerStore, StaleTailError
from veritas.main import app
from veritas.oracle import OracleClient
from veritas.shared.dependencies import get_chat_store, get_ledger_store, get_oracle_client
from veritas.shared.exceptions import StoreError

# SQL store tests run against TEST_DATABASE_URL when set (PostgreSQL), otherwise
# against a throwaway SQLite file. Full-text search only exists on PostgreSQL.
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL")


# Service and API tests use these in-memory stand-ins. They keep the store
# contract without needing a database.


class InMemoryLedgerStore(LedgerStore):
    def __init__(self):
        super().__init__(db=None)
        self.entries: List[LedgerEntry] = []
        self.fail_search = False
        self.fail_set_verification = False

    async def append_entry(self, entry: LedgerEntry) -> LedgerEntry:
        await asyncio.sleep(0)
        if any(e.previous_hash == entry.previous_hash for e in self.entries):
            raise StaleTailError(entry.previous_hash)
        now = datetime.utcnow()
        entry.id = entry.id or uuid.uuid4()
        entry.created_at = now
        entry.updated_at = now
        self.entries.append(entry)
        return entry

    async def latest_entry(self) -> Optional[LedgerEntry]:
        await asyncio.sleep(0)
        pointed_at = {e.previous_hash for e in self.entries}
        heads = [e for e in self.entries if e.block_hash not in pointed_at]
        return max(heads, key=lambda e: e.appended_at_ms) if heads else None

    async def get_by_id(self, entry_id):
        return next((e for e in self.entries if e.id == entry_id), None)

    async def find_by_statement_fingerprint(self, statement_hash: str):
        matches = [e for e in self.entries if e.statement_hash == statement_hash]
        return matches[-1] if matches else None

    async def search(self, query: str, limit: int = 5) -> List[LedgerEntry]:
        if self.fail_search:
            raise StoreError("Failed to full-text search")
        words = [w for w in query.lower().split() if len(w) > 2]
        return [e for e in self.entries if any(w in e.statement.lower() for w in words)][:limit]

    async def keyword_search(self, words: Sequence[str], limit: int = 5) -> List[LedgerEntry]:
        return [
            e for e in self.entries
            if any(w.lower() in e.statement.lower() for w in words)
        ][:limit]

    async def recent(self, limit: int = 50) -> List[LedgerEntry]:
        return sorted(self.entries, key=lambda e: e.appended_at_ms, reverse=True)[:limit]

    async def walk_chain(self) -> List[LedgerEntry]:
        return sorted(self.entries, key=lambda e: e.appended_at_ms)

    async def set_verification(self, entry_id, status, confidence) -> bool:
        if self.fail_set_verification:
            raise StoreError("Failed to store verification")
        entry = await self.get_by_id(entry_id)
        if entry is None or entry.verification_status is not None:
            return False
        entry.verification_status = status
        entry.verification_confidence = confidence
        entry.updated_at = datetime.utcnow()
        return True


class InMemoryChatLog(ChatLogStore):
    def __init__(self):
        super().__init__(db=None)
        self.turns: List[ChatTurn] = []

    async def append_turn(self, session_id, role, content, sources=None, confidence=None) -> ChatTurn:
        turn = ChatTurn(
            id=uuid.uuid4(),
            session_id=session_id,
            message_type=ChatRole(role),
            content=content,
            sources=sources,
            confidence=getattr(confidence, "value", confidence),
            created_at=datetime.utcnow(),
        )
        self.turns.append(turn)
        return turn

    async def history(self, session_id: str, limit: Optional[int] = None) -> List[ChatTurn]:
        return [t for t in self.turns if t.session_id == session_id]

    async def purge(self, session_id: str) -> int:
        before = len(self.turns)
        self.turns = [t for t in self.turns if t.session_id != session_id]
        return before - len(self.turns)


def completion(content: str) -> httpx.Response:
    """A successful chat-completions envelope."""
    return httpx.Response(200, json={"choices": [{"message": {"role": "assistant", "content": content}}]})


def make_oracle(handler: Callable[[httpx.Request], httpx.Response]) -> OracleClient:
    return OracleClient(
        api_key="test-key",
        base_url="https://oracle.test/v1",
        model="test-model",
        timeout=5.0,
        transport=httpx.MockTransport(handler),
    )


def request_payload(request: httpx.Request) -> dict:
    return json.loads(request.content)


@pytest.fixture
def store() -> InMemoryLedgerStore:
    return InMemoryLedgerStore()


@pytest.fixture
def chat_log() -> InMemoryChatLog:
    return InMemoryChatLog()


@pytest.fixture
def oracle_holder():
    """Mutable slot so API tests can swap the oracle per test."""
    return {"oracle": None}


@pytest_asyncio.fixture(scope="function")
async def async_client(store, chat_log, oracle_holder) -> AsyncGenerator[AsyncClient, None]:
    """Client for testing API endpoints against in-memory stores."""
    app.dependency_overrides[get_ledger_store] = lambda: store
    app.dependency_overrides[get_chat_store] = lambda: chat_log
    app.dependency_overrides[get_oracle_client] = lambda: oracle_holder["oracle"]

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest_asyncio.fixture(scope="function")
async def db_sessionmaker(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh schema per test; yields a factory so tests can open competing sessions."""
    url = TEST_DATABASE_URL or f"sqlite+aiosqlite:///{tmp_path / 'veritas.db'}"
    test_engine = create_async_engine(url, echo=False)
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(bind=test_engine, expire_on_commit=False, autoflush=False)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(db_sessionmaker) -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test."""
    async with db_sessionmaker() as session:
        yield session
