import logging
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy import exists, func, literal_column, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from veritas.ledger.models import LedgerEntry, VerificationConfidence, VerificationStatus
from veritas.shared.exceptions import StoreError

logger = logging.getLogger(__name__)


class StaleTailError(Exception):
    """The predecessor named by a new entry already has a successor."""

    def __init__(self, previous_hash: str):
        self.previous_hash = previous_hash
        super().__init__(f"Block {previous_hash[:16]} already has a successor")


def _tsvector():
    return func.to_tsvector(literal_column("'english'"), LedgerEntry.statement)


def _escape_like(word: str) -> str:
    return word.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class LedgerStore:
    """Reads and appends against the veritas_chain table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append_entry(self, entry: LedgerEntry) -> LedgerEntry:
        """Insert iff entry.previous_hash is still the tail's block hash.

        The unique index on previous_hash turns a lost race into an
        IntegrityError, reported as StaleTailError.
        """
        self.db.add(entry)
        try:
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise StaleTailError(entry.previous_hash) from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError("Failed to add statement") from e
        await self.db.refresh(entry)
        return entry

    async def latest_entry(self) -> Optional[LedgerEntry]:
        """The current tail: the newest entry nothing points back to."""
        successor = aliased(LedgerEntry)
        stmt = (
            select(LedgerEntry)
            .where(~exists().where(successor.previous_hash == LedgerEntry.block_hash))
            .order_by(LedgerEntry.appended_at_ms.desc(), LedgerEntry.created_at.desc())
            .limit(1)
        )
        return await self._scalar(stmt, "read chain tail")

    async def get_by_id(self, entry_id: UUID) -> Optional[LedgerEntry]:
        return await self._scalar(
            select(LedgerEntry).where(LedgerEntry.id == entry_id), "read statement"
        )

    async def find_by_statement_fingerprint(self, statement_hash: str) -> Optional[LedgerEntry]:
        """Newest entry recording the same statement, speaker and source."""
        stmt = (
            select(LedgerEntry)
            .where(LedgerEntry.statement_hash == statement_hash)
            .order_by(LedgerEntry.appended_at_ms.desc())
            .limit(1)
        )
        return await self._scalar(stmt, "read statement")

    async def search(self, query: str, limit: int = 5) -> List[LedgerEntry]:
        """Full-text search over statement content, best matches first."""
        ts_query = func.websearch_to_tsquery(literal_column("'english'"), query)
        stmt = (
            select(LedgerEntry)
            .where(_tsvector().op("@@")(ts_query))
            .order_by(func.ts_rank(_tsvector(), ts_query).desc())
            .limit(limit)
        )
        return await self._scalars(stmt, "full-text search")

    async def keyword_search(self, words: Sequence[str], limit: int = 5) -> List[LedgerEntry]:
        """Entries whose statement contains any of the words, case-insensitively."""
        if not words:
            return []
        stmt = (
            select(LedgerEntry)
            .where(or_(*[
                LedgerEntry.statement.ilike(f"%{_escape_like(word)}%", escape="\\")
                for word in words
            ]))
            .limit(limit)
        )
        return await self._scalars(stmt, "keyword search")

    async def recent(self, limit: int = 50) -> List[LedgerEntry]:
        stmt = (
            select(LedgerEntry)
            .order_by(LedgerEntry.appended_at_ms.desc(), LedgerEntry.created_at.desc())
            .limit(limit)
        )
        return await self._scalars(stmt, "list statements")

    async def walk_chain(self) -> List[LedgerEntry]:
        """Every entry, oldest first."""
        stmt = select(LedgerEntry).order_by(
            LedgerEntry.appended_at_ms.asc(), LedgerEntry.created_at.asc()
        )
        return await self._scalars(stmt, "read chain")

    async def set_verification(
        self,
        entry_id: UUID,
        status: VerificationStatus,
        confidence: VerificationConfidence,
    ) -> bool:
        """Record a verification judgment once. Returns False if already set."""
        stmt = (
            update(LedgerEntry)
            .where(LedgerEntry.id == entry_id, LedgerEntry.verification_status.is_(None))
            .values(verification_status=status, verification_confidence=confidence)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.db.execute(stmt)
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError("Failed to store verification") from e
        return result.rowcount > 0

    async def _scalar(self, stmt, action: str):
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            # An aborted transaction would poison any follow-up query
            await self.db.rollback()
            raise StoreError(f"Failed to {action}") from e
        return result.scalars().first()

    async def _scalars(self, stmt, action: str) -> list:
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError(f"Failed to {action}") from e
        return list(result.scalars().all())
