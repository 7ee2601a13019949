import logging
import re
from typing import List, Optional

from langchain_core.prompts import ChatPromptTemplate

from veritas.ask.prompts import ANSWER_USER_PROMPT, VERITAS_SYSTEM_PROMPT
from veritas.ask.retrieval import StatementRetriever
from veritas.ask.schemas import AnswerConfidence, AskResponse, SourceSummary
from veritas.chat.models import ChatRole
from veritas.chat.service import ChatLogStore
from veritas.ledger.models import LedgerEntry
from veritas.ledger.store import LedgerStore
from veritas.oracle import OracleClient
from veritas.shared.exceptions import (
    OracleError,
    OracleMalformedResponseError,
    OracleUnavailableError,
    ValidationError,
    VeritasError,
)

logger = logging.getLogger(__name__)

NO_RESULTS_ANSWER = "I couldn't find any relevant statements in the Veritas database for your query."

ANSWER_TEMPERATURE = 0.1
ANSWER_MAX_TOKENS = 500

# Regex to strip reasoning-model thinking tokens
THINK_RE = re.compile(r"<think>.*?</think>", re.DOTALL)


def _strip_thinking(text: str) -> str:
    return THINK_RE.sub("", text).strip()


def format_entries_as_context(entries: List[LedgerEntry]) -> str:
    """Format ledger entries into the context block handed to the oracle."""
    return "\n\n".join(
        f'Statement: "{entry.statement}"\n'
        f"Speaker: {entry.speaker}\n"
        f"Date: {entry.statement_date.isoformat() if entry.statement_date else 'Unknown'}\n"
        f"Source: {entry.source_url or 'No source provided'}"
        for entry in entries
    )


class AskService:
    def __init__(
        self,
        store: LedgerStore,
        oracle: Optional[OracleClient],
        chat_log: Optional[ChatLogStore] = None,
        retriever: Optional[StatementRetriever] = None,
    ):
        self.store = store
        self.oracle = oracle
        self.chat_log = chat_log
        self.retriever = retriever or StatementRetriever(store, oracle)
        self.prompt = ChatPromptTemplate.from_messages([
            ("system", VERITAS_SYSTEM_PROMPT),
            ("user", ANSWER_USER_PROMPT),
        ])

    async def ask(self, query: str, session_id: Optional[str] = None) -> AskResponse:
        if not query or not query.strip():
            raise ValidationError("Query is required")
        query = query.strip()
        logger.info(f"Processing query: {query[:200]}")

        await self._log_turn(session_id, ChatRole.USER, query)
        response = await self._answer(query)
        await self._log_turn(
            session_id,
            ChatRole.BOT,
            response.answer,
            sources=[s.model_dump(mode="json", by_alias=True) for s in response.sources],
            confidence=response.confidence,
        )
        return response

    async def _answer(self, query: str) -> AskResponse:
        entries = await self.retriever.retrieve(query)
        logger.info(f"Found statements: {len(entries)}")
        if not entries:
            return AskResponse(answer=NO_RESULTS_ANSWER, sources=[], confidence=AnswerConfidence.LOW)

        sources = [SourceSummary.from_entry(e) for e in entries]
        context = format_entries_as_context(entries)

        if self.oracle is None:
            return self._database_summary(entries, sources, context)

        messages = self.prompt.format_messages(context=context, query=query)
        try:
            content = await self.oracle.complete(
                messages, temperature=ANSWER_TEMPERATURE, max_tokens=ANSWER_MAX_TOKENS
            )
        except OracleUnavailableError as e:
            logger.warning(f"Oracle unreachable, answering from the database only: {e}")
            response = self._database_summary(entries, sources, context)
            response.error = f"API connection error: {e.message}"
            return response
        except OracleError as e:
            return AskResponse(
                answer=(
                    "I found relevant information but encountered an error with the AI service. "
                    f"Here's what I found: {len(entries)} relevant statements about your query."
                ),
                sources=sources,
                confidence=AnswerConfidence.LOW,
                error=f"API error ({e.status})",
            )
        except OracleMalformedResponseError:
            return AskResponse(
                answer=(
                    "I found relevant information but received an unexpected response from the AI service. "
                    f"Here's what I found: {len(entries)} relevant statements about your query."
                ),
                sources=sources,
                confidence=AnswerConfidence.LOW,
                error="Unexpected API response structure",
            )

        answer = _strip_thinking(content)
        if not answer:
            logger.warning("Oracle answer was empty after removing reasoning blocks")
            return AskResponse(
                answer=(
                    "I found relevant information but the AI service returned an empty answer. "
                    f"Here's what I found: {len(entries)} relevant statements about your query."
                ),
                sources=sources,
                confidence=AnswerConfidence.LOW,
                error="Empty answer from the AI service",
            )

        return AskResponse(answer=answer, sources=sources, confidence=AnswerConfidence.HIGH)

    @staticmethod
    def _database_summary(
        entries: List[LedgerEntry], sources: List[SourceSummary], context: str
    ) -> AskResponse:
        return AskResponse(
            answer=(
                f"Based on the Veritas database, I found {len(entries)} relevant statement(s). "
                f"Here are the details: {context}"
            ),
            sources=sources,
            confidence=AnswerConfidence.MEDIUM,
        )

    async def _log_turn(self, session_id: Optional[str], role: ChatRole, content: str, **extra) -> None:
        if not session_id or self.chat_log is None:
            return
        try:
            await self.chat_log.append_turn(session_id, role, content, **extra)
        except VeritasError:
            logger.exception(f"Failed to log chat turn for session {session_id}")
