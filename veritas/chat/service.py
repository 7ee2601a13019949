import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from veritas.chat.models import ChatRole, ChatTurn
from veritas.config import settings
from veritas.shared.exceptions import StoreError, ValidationError

logger = logging.getLogger(__name__)


class ChatLogStore:
    """Append-only chat log partitioned by an opaque session id."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append_turn(
        self,
        session_id: str,
        role: ChatRole,
        content: str,
        sources: Optional[List[Dict[str, Any]]] = None,
        confidence: Optional[str] = None,
    ) -> ChatTurn:
        if not session_id:
            raise ValidationError("Session id is required")
        turn = ChatTurn(
            session_id=session_id,
            message_type=ChatRole(role),
            content=content,
            sources=sources,
            confidence=getattr(confidence, "value", confidence),
        )
        self.db.add(turn)
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError("Failed to save chat message") from e
        await self.db.refresh(turn)
        return turn

    async def history(self, session_id: str, limit: Optional[int] = None) -> List[ChatTurn]:
        """Most recent turns of a session, oldest first."""
        stmt = (
            select(ChatTurn)
            .where(ChatTurn.session_id == session_id)
            .order_by(ChatTurn.created_at.desc())
            .limit(limit or settings.CHAT_HISTORY_LIMIT)
        )
        try:
            result = await self.db.execute(stmt)
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError("Failed to load chat history") from e
        return list(reversed(result.scalars().all()))

    async def purge(self, session_id: str) -> int:
        try:
            result = await self.db.execute(delete(ChatTurn).where(ChatTurn.session_id == session_id))
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            raise StoreError("Failed to clear chat history") from e
        logger.info(f"Cleared {result.rowcount} chat turns for session {session_id}")
        return result.rowcount
