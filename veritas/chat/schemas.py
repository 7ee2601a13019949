from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import Field

from veritas.ask.schemas import AnswerConfidence
from veritas.chat.models import ChatRole, ChatTurn
from veritas.ledger.schemas import CamelModel


class ChatTurnCreate(CamelModel):
    role: ChatRole
    content: str = Field(min_length=1)
    sources: Optional[List[Dict[str, Any]]] = None
    confidence: Optional[AnswerConfidence] = None


class ChatTurnResponse(CamelModel):
    id: UUID
    session_id: str
    role: ChatRole
    content: str
    sources: Optional[List[Dict[str, Any]]] = None
    confidence: Optional[AnswerConfidence] = None
    created_at: datetime

    @classmethod
    def from_turn(cls, turn: ChatTurn) -> "ChatTurnResponse":
        return cls(
            id=turn.id,
            session_id=turn.session_id,
            role=turn.message_type,
            content=turn.content,
            sources=turn.sources,
            confidence=turn.confidence,
            created_at=turn.created_at,
        )


class PurgeResponse(CamelModel):
    session_id: str
    deleted: int
