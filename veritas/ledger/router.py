from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from veritas.ledger.chain import ChainLinker
from veritas.ledger.schemas import AppendResponse, ChainReport, LedgerEntryResponse, StatementCreate
from veritas.ledger.store import LedgerStore
from veritas.shared.dependencies import get_ledger_store
from veritas.shared.exceptions import NotFoundError

router = APIRouter(tags=["ledger"])


@router.post("/statements", response_model=AppendResponse)
async def add_statement(
    request: StatementCreate,
    store: LedgerStore = Depends(get_ledger_store),
):
    """Append a statement to the chain."""
    entry = await ChainLinker(store).append(request)
    return AppendResponse(entry=LedgerEntryResponse.from_entry(entry))


@router.get("/statements", response_model=List[LedgerEntryResponse])
async def list_statements(
    limit: int = Query(50, ge=1, le=500),
    store: LedgerStore = Depends(get_ledger_store),
):
    entries = await store.recent(limit)
    return [LedgerEntryResponse.from_entry(e) for e in entries]


@router.get("/statements/{statement_id}", response_model=LedgerEntryResponse)
async def get_statement(
    statement_id: UUID,
    store: LedgerStore = Depends(get_ledger_store),
):
    entry = await store.get_by_id(statement_id)
    if entry is None:
        raise NotFoundError(f"Statement {statement_id} not found")
    return LedgerEntryResponse.from_entry(entry)


@router.get("/chain/verify", response_model=ChainReport)
async def verify_chain(store: LedgerStore = Depends(get_ledger_store)):
    """Recompute every fingerprint and walk the chain back to genesis."""
    return await ChainLinker(store).verify()
