from typing import List

from fastapi import APIRouter, Depends

from veritas.chat.schemas import ChatTurnCreate, ChatTurnResponse, PurgeResponse
from veritas.chat.service import ChatLogStore
from veritas.shared.dependencies import get_chat_store

router = APIRouter(prefix="/chat", tags=["chat"])


@router.get("/{session_id}", response_model=List[ChatTurnResponse])
async def get_chat_history(
    session_id: str,
    chat_log: ChatLogStore = Depends(get_chat_store),
):
    turns = await chat_log.history(session_id)
    return [ChatTurnResponse.from_turn(t) for t in turns]


@router.post("/{session_id}/turns", response_model=ChatTurnResponse)
async def add_chat_turn(
    session_id: str,
    request: ChatTurnCreate,
    chat_log: ChatLogStore = Depends(get_chat_store),
):
    turn = await chat_log.append_turn(
        session_id,
        request.role,
        request.content,
        sources=request.sources,
        confidence=request.confidence,
    )
    return ChatTurnResponse.from_turn(turn)


@router.delete("/{session_id}", response_model=PurgeResponse)
async def clear_chat_history(
    session_id: str,
    chat_log: ChatLogStore = Depends(get_chat_store),
):
    deleted = await chat_log.purge(session_id)
    return PurgeResponse(session_id=session_id, deleted=deleted)
