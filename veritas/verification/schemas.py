from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from veritas.ledger.models import VerificationConfidence, VerificationStatus
from veritas.ledger.schemas import CamelModel


class VerifyRequest(CamelModel):
    statement: str
    speaker: Optional[str] = None
    source_url: Optional[str] = None
    statement_date: Optional[date] = None


class VerificationResult(CamelModel):
    status: VerificationStatus
    confidence: VerificationConfidence
    key_facts: List[str] = []
    issues: List[str] = []
    context: str = ""
    recommendation: str
    reasoning: str


class VerifyResponse(CamelModel):
    statement: str
    speaker: str
    source_url: Optional[str] = None
    statement_date: Optional[date] = None
    statement_id: Optional[UUID] = None
    verification: VerificationResult
    timestamp: datetime
