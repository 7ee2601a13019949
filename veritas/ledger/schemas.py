from datetime import date, datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from veritas.ledger.models import LedgerEntry, VerificationConfidence, VerificationStatus


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class StatementCreate(CamelModel):
    statement: str
    speaker: str
    source_url: Optional[str] = None
    statement_date: Optional[date] = None


class LedgerEntryResponse(CamelModel):
    id: UUID
    statement: str
    speaker: str
    source_url: Optional[str] = None
    statement_date: Optional[date] = None
    statement_fingerprint: str
    previous_hash: str
    block_fingerprint: str
    appended_at_ms: int
    verification_status: Optional[VerificationStatus] = None
    verification_confidence: Optional[VerificationConfidence] = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entry(cls, entry: LedgerEntry) -> "LedgerEntryResponse":
        return cls(
            id=entry.id,
            statement=entry.statement,
            speaker=entry.speaker,
            source_url=entry.source_url,
            statement_date=entry.statement_date,
            statement_fingerprint=entry.statement_hash,
            previous_hash=entry.previous_hash,
            block_fingerprint=entry.block_hash,
            appended_at_ms=entry.appended_at_ms,
            verification_status=entry.verification_status,
            verification_confidence=entry.verification_confidence,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )


class AppendResponse(CamelModel):
    success: bool = True
    entry: LedgerEntryResponse
    message: str = "Statement added to the Veritas chain"


ChainBreakKind = Literal["fingerprint_mismatch", "missing_predecessor", "fork", "cycle", "orphan"]


class ChainBreak(CamelModel):
    entry_id: UUID
    kind: ChainBreakKind
    detail: str


class ChainReport(CamelModel):
    valid: bool
    length: int
    tail: Optional[str] = None
    breaks: List[ChainBreak] = []
