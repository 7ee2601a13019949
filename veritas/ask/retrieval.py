import json
import logging
import re
from typing import List, Optional

from langchain_core.prompts import ChatPromptTemplate

from veritas.ask.prompts import SELECTION_SYSTEM_PROMPT, SELECTION_USER_PROMPT
from veritas.config import settings
from veritas.ledger.models import LedgerEntry
from veritas.ledger.store import LedgerStore
from veritas.oracle import OracleClient
from veritas.shared.exceptions import StoreError, VeritasError

logger = logging.getLogger(__name__)

FENCE_RE = re.compile(r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL | re.IGNORECASE)


def keywords(query: str) -> List[str]:
    """Lower-cased words longer than two characters."""
    return [word for word in query.lower().split() if len(word) > 2]


def parse_selection(text: str) -> Optional[List[str]]:
    """Parse the oracle's id array. None when it is not a JSON array."""
    match = FENCE_RE.match(text)
    try:
        data = json.loads(match.group(1) if match else text)
    except ValueError:
        return None
    if not isinstance(data, list):
        return None
    return [str(item) for item in data if isinstance(item, (str, int))]


class StatementRetriever:
    """Picks the ledger entries relevant to a question.

    Strategies, first success wins: oracle-assisted selection (when enabled),
    full-text search, then keyword matching if full-text search errors.
    """

    def __init__(
        self,
        store: LedgerStore,
        oracle: Optional[OracleClient] = None,
        limit: Optional[int] = None,
        oracle_selection: Optional[bool] = None,
    ):
        self.store = store
        self.oracle = oracle
        self.limit = limit or settings.RETRIEVAL_LIMIT
        self.oracle_selection = (
            settings.ORACLE_SELECTION_ENABLED if oracle_selection is None else oracle_selection
        )
        self.selection_prompt = ChatPromptTemplate.from_messages([
            ("system", SELECTION_SYSTEM_PROMPT),
            ("user", SELECTION_USER_PROMPT),
        ])

    async def retrieve(self, query: str) -> List[LedgerEntry]:
        if self.oracle_selection and self.oracle is not None:
            selected = await self._select_with_oracle(query)
            if selected:
                return selected
            logger.info("Oracle selection produced nothing usable; using search")

        try:
            return await self.store.search(query, self.limit)
        except StoreError:
            logger.warning("Full-text search failed; falling back to keyword matching", exc_info=True)

        return await self.store.keyword_search(keywords(query), self.limit)

    async def _select_with_oracle(self, query: str) -> List[LedgerEntry]:
        try:
            snapshot = await self.store.recent(settings.ORACLE_SELECTION_SNAPSHOT)
        except StoreError:
            logger.warning("Could not read ledger snapshot for oracle selection", exc_info=True)
            return []
        if not snapshot:
            return []

        records = "\n".join(
            json.dumps({
                "id": str(entry.id),
                "statement": entry.statement,
                "speaker": entry.speaker,
                "date": entry.statement_date.isoformat() if entry.statement_date else None,
            }, separators=(",", ":"))
            for entry in snapshot
        )
        messages = self.selection_prompt.format_messages(records=records, query=query)

        try:
            content = await self.oracle.complete(messages, temperature=0.0, max_tokens=200)
        except VeritasError as e:
            logger.warning(f"Oracle selection failed: {e}")
            return []

        ids = parse_selection(content)
        if ids is None:
            logger.warning("Oracle selection was not a JSON array")
            return []

        by_id = {str(entry.id): entry for entry in snapshot}
        selected: List[LedgerEntry] = []
        for entry_id in ids:
            entry = by_id.get(entry_id)
            if entry is not None and entry not in selected:
                selected.append(entry)
        return selected[: self.limit]
