import logging
import time
from collections import defaultdict
from typing import Callable, Dict, List, Sequence

from veritas.config import settings
from veritas.ledger.fingerprint import block_fingerprint, statement_fingerprint
from veritas.ledger.models import GENESIS_HASH, LedgerEntry
from veritas.ledger.schemas import ChainBreak, ChainReport, StatementCreate
from veritas.ledger.store import LedgerStore, StaleTailError
from veritas.shared.exceptions import ChainConflictError, ValidationError

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class ChainLinker:
    """Links new statements onto the tail of the chain.

    Appends are optimistic: read the tail, compute hashes, insert with the
    observed tail as predecessor. If another append won the race the store
    rejects the insert and we start over from a fresh tail.
    """

    def __init__(
        self,
        store: LedgerStore,
        max_retries: int | None = None,
        clock: Callable[[], int] = _now_ms,
    ):
        self.store = store
        self.max_retries = settings.CHAIN_APPEND_MAX_RETRIES if max_retries is None else max_retries
        self.clock = clock

    async def append(self, candidate: StatementCreate) -> LedgerEntry:
        statement = (candidate.statement or "").strip()
        speaker = (candidate.speaker or "").strip()
        if not statement or not speaker:
            raise ValidationError("Statement and speaker are required")
        source_url = candidate.source_url or None

        statement_hash = statement_fingerprint(statement, speaker, source_url)

        for attempt in range(self.max_retries + 1):
            tail = await self.store.latest_entry()
            previous_hash = tail.block_hash if tail else GENESIS_HASH
            appended_at_ms = self.clock()

            entry = LedgerEntry(
                statement=statement,
                speaker=speaker,
                source_url=source_url,
                statement_date=candidate.statement_date,
                statement_hash=statement_hash,
                previous_hash=previous_hash,
                block_hash=block_fingerprint(statement_hash, previous_hash, appended_at_ms),
                appended_at_ms=appended_at_ms,
            )
            try:
                entry = await self.store.append_entry(entry)
            except StaleTailError:
                logger.warning(
                    f"Chain tail {previous_hash[:16]} moved during append "
                    f"(attempt {attempt + 1}/{self.max_retries + 1})"
                )
                continue

            logger.info(f"Statement {entry.id} appended as block {entry.block_hash[:16]}")
            return entry

        raise ChainConflictError(
            f"Chain tail kept changing; gave up after {self.max_retries + 1} attempts"
        )

    async def verify(self) -> ChainReport:
        return verify_chain(await self.store.walk_chain())


def verify_chain(entries: Sequence[LedgerEntry]) -> ChainReport:
    """Check every link of the chain and report all breaks found.

    The walk starts at the tail (newest entry without a successor) and follows
    previous_hash back to the genesis sentinel.
    """
    if not entries:
        return ChainReport(valid=True, length=0, tail=None, breaks=[])

    breaks: List[ChainBreak] = []
    by_block: Dict[str, LedgerEntry] = {}
    successors: Dict[str, List[LedgerEntry]] = defaultdict(list)
    for entry in entries:
        by_block[entry.block_hash] = entry
        successors[entry.previous_hash].append(entry)

    for entry in entries:
        expected_statement = statement_fingerprint(entry.statement, entry.speaker, entry.source_url)
        if expected_statement != entry.statement_hash:
            breaks.append(ChainBreak(
                entry_id=entry.id,
                kind="fingerprint_mismatch",
                detail="statement fingerprint does not match statement, speaker and source",
            ))
        expected_block = block_fingerprint(entry.statement_hash, entry.previous_hash, entry.appended_at_ms)
        if expected_block != entry.block_hash:
            breaks.append(ChainBreak(
                entry_id=entry.id,
                kind="fingerprint_mismatch",
                detail="block fingerprint does not match its inputs",
            ))
        if entry.previous_hash != GENESIS_HASH and entry.previous_hash not in by_block:
            breaks.append(ChainBreak(
                entry_id=entry.id,
                kind="missing_predecessor",
                detail=f"predecessor {entry.previous_hash[:16]} is not in the ledger",
            ))

    for previous_hash, children in successors.items():
        if len(children) > 1:
            for child in children:
                breaks.append(ChainBreak(
                    entry_id=child.id,
                    kind="fork",
                    detail=f"{len(children)} entries share predecessor {previous_hash[:16]}",
                ))

    heads = [e for e in entries if e.block_hash not in successors]
    tail = max(heads, key=lambda e: e.appended_at_ms) if heads else entries[-1]

    visited = set()
    length = 0
    current = tail
    while current is not None:
        if current.block_hash in visited:
            breaks.append(ChainBreak(entry_id=current.id, kind="cycle", detail="chain loops back on itself"))
            break
        visited.add(current.block_hash)
        length += 1
        if current.previous_hash == GENESIS_HASH:
            break
        current = by_block.get(current.previous_hash)

    for entry in entries:
        if entry.block_hash not in visited:
            breaks.append(ChainBreak(
                entry_id=entry.id,
                kind="orphan",
                detail="entry is not reachable from the chain tail",
            ))

    return ChainReport(valid=not breaks, length=length, tail=tail.block_hash, breaks=breaks)
