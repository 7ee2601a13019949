from datetime import date
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import Field

from veritas.ledger.models import LedgerEntry
from veritas.ledger.schemas import CamelModel


class AnswerConfidence(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class AskRequest(CamelModel):
    query: str
    session_id: Optional[str] = Field(default=None, max_length=200)


class SourceSummary(CamelModel):
    id: Optional[UUID] = None
    statement: str
    speaker: str
    statement_date: Optional[date] = Field(default=None, alias="date")
    source_url: Optional[str] = None
    block_fingerprint: str

    @classmethod
    def from_entry(cls, entry: LedgerEntry) -> "SourceSummary":
        return cls(
            id=entry.id,
            statement=entry.statement,
            speaker=entry.speaker,
            statement_date=entry.statement_date,
            source_url=entry.source_url,
            block_fingerprint=entry.block_hash,
        )


class AskResponse(CamelModel):
    answer: str
    sources: List[SourceSummary] = []
    confidence: AnswerConfidence
    error: Optional[str] = None
