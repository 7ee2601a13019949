import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from langchain_core.prompts import ChatPromptTemplate

from veritas.ledger.fingerprint import statement_fingerprint
from veritas.ledger.models import LedgerEntry
from veritas.ledger.store import LedgerStore
from veritas.oracle import OracleClient
from veritas.shared.exceptions import (
    NotFoundError,
    OracleNotConfiguredError,
    ValidationError,
    VeritasError,
)
from veritas.verification.parser import ParsedJudgment, parse_judgment
from veritas.verification.prompts import FACT_CHECKER_SYSTEM_PROMPT, VERIFY_STATEMENT_USER_PROMPT
from veritas.verification.schemas import VerifyRequest, VerifyResponse

logger = logging.getLogger(__name__)

VERIFY_TEMPERATURE = 0.1
VERIFY_MAX_TOKENS = 1000


class VerificationService:
    def __init__(self, oracle: Optional[OracleClient], store: Optional[LedgerStore] = None):
        self.oracle = oracle
        self.store = store
        self.prompt = ChatPromptTemplate.from_messages([
            ("system", FACT_CHECKER_SYSTEM_PROMPT),
            ("user", VERIFY_STATEMENT_USER_PROMPT),
        ])

    async def judge(self, request: VerifyRequest) -> ParsedJudgment:
        """Ask the oracle for a judgment on one statement.

        Oracle transport, status and envelope failures propagate; a judgment
        the oracle returns in the wrong shape does not.
        """
        if not request.statement or not request.statement.strip():
            raise ValidationError("Statement is required")
        if self.oracle is None:
            raise OracleNotConfiguredError("Oracle API key not configured")

        messages = self.prompt.format_messages(
            statement=request.statement,
            speaker=request.speaker or "Unknown",
            statement_date=request.statement_date.isoformat() if request.statement_date else "Unknown",
            source_url=request.source_url or "No source provided",
        )
        content = await self.oracle.complete(
            messages, temperature=VERIFY_TEMPERATURE, max_tokens=VERIFY_MAX_TOKENS
        )
        judgment = parse_judgment(content)
        logger.info(
            f"Verification completed ({judgment.kind}): "
            f"{judgment.result.status.value}/{judgment.result.confidence.value}"
        )
        return judgment

    async def verify(self, request: VerifyRequest) -> VerifyResponse:
        """Verify an ad hoc statement, recording the judgment on the matching entry if any."""
        judgment = await self.judge(request)

        entry_id = None
        if self.store is not None and request.speaker:
            entry_id = await self._record_on_matching_entry(request, judgment)

        return self._response(request, judgment, entry_id)

    async def verify_entry(self, entry_id: UUID) -> VerifyResponse:
        """Verify a statement already on the ledger and record the judgment on it."""
        if self.store is None:
            raise NotFoundError(f"Statement {entry_id} not found")
        entry = await self.store.get_by_id(entry_id)
        if entry is None:
            raise NotFoundError(f"Statement {entry_id} not found")

        request = VerifyRequest(
            statement=entry.statement,
            speaker=entry.speaker,
            source_url=entry.source_url,
            statement_date=entry.statement_date,
        )
        judgment = await self.judge(request)
        await self._record(entry, judgment)
        return self._response(request, judgment, entry.id)

    async def _record_on_matching_entry(
        self, request: VerifyRequest, judgment: ParsedJudgment
    ) -> Optional[UUID]:
        statement_hash = statement_fingerprint(
            request.statement.strip(), request.speaker.strip(), request.source_url or None
        )
        try:
            entry = await self.store.find_by_statement_fingerprint(statement_hash)
        except VeritasError:
            logger.exception("Failed to look up ledger entry for verification")
            return None
        if entry is None:
            return None
        await self._record(entry, judgment)
        return entry.id

    async def _record(self, entry: LedgerEntry, judgment: ParsedJudgment) -> None:
        """Best-effort write-back. Failures are logged, never raised."""
        try:
            stored = await self.store.set_verification(
                entry.id, judgment.result.status, judgment.result.confidence
            )
        except VeritasError:
            logger.exception(f"Failed to store verification for statement {entry.id}")
            return
        if not stored:
            logger.info(f"Statement {entry.id} already carries a verification; left unchanged")

    @staticmethod
    def _response(
        request: VerifyRequest, judgment: ParsedJudgment, entry_id: Optional[UUID]
    ) -> VerifyResponse:
        return VerifyResponse(
            statement=request.statement,
            speaker=request.speaker or "Unknown",
            source_url=request.source_url,
            statement_date=request.statement_date,
            statement_id=entry_id,
            verification=judgment.result,
            timestamp=datetime.now(timezone.utc),
        )
