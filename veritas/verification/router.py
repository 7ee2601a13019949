from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends

from veritas.ledger.store import LedgerStore
from veritas.oracle import OracleClient
from veritas.shared.dependencies import get_ledger_store, get_oracle_client
from veritas.verification.schemas import VerifyRequest, VerifyResponse
from veritas.verification.service import VerificationService

router = APIRouter(tags=["verification"])


@router.post("/verify", response_model=VerifyResponse)
async def verify_statement(
    request: VerifyRequest,
    store: LedgerStore = Depends(get_ledger_store),
    oracle: Optional[OracleClient] = Depends(get_oracle_client),
):
    service = VerificationService(oracle, store)
    return await service.verify(request)


@router.post("/statements/{statement_id}/verify", response_model=VerifyResponse)
async def verify_ledger_statement(
    statement_id: UUID,
    store: LedgerStore = Depends(get_ledger_store),
    oracle: Optional[OracleClient] = Depends(get_oracle_client),
):
    service = VerificationService(oracle, store)
    return await service.verify_entry(statement_id)
