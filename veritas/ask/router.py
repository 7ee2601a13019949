from typing import Optional

from fastapi import APIRouter, Depends

from veritas.ask.schemas import AskRequest, AskResponse
from veritas.ask.service import AskService
from veritas.chat.service import ChatLogStore
from veritas.ledger.store import LedgerStore
from veritas.oracle import OracleClient
from veritas.shared.dependencies import get_chat_store, get_ledger_store, get_oracle_client

router = APIRouter(tags=["ask"])


@router.post("/ask", response_model=AskResponse, response_model_exclude_none=True)
async def ask_veritas(
    request: AskRequest,
    store: LedgerStore = Depends(get_ledger_store),
    chat_log: ChatLogStore = Depends(get_chat_store),
    oracle: Optional[OracleClient] = Depends(get_oracle_client),
):
    """Answer a question from the statements on the ledger."""
    service = AskService(store, oracle, chat_log=chat_log)
    return await service.ask(request.query, session_id=request.session_id)
