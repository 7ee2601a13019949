from enum import Enum
from sqlalchemy import JSON, Column, String, Text
from sqlalchemy import Enum as SAEnum
from sqlalchemy.dialects.postgresql import JSONB
from veritas.database import Base
from veritas.shared.models import CreatedAtMixin, UUIDMixin


class ChatRole(str, Enum):
    USER = "user"
    BOT = "bot"


class ChatTurn(Base, UUIDMixin, CreatedAtMixin):
    """One message of a chat session. Inserted, never updated."""
    __tablename__ = "chat_history"

    session_id = Column(String, nullable=False, index=True)
    message_type = Column(
        SAEnum(ChatRole, values_callable=lambda roles: [r.value for r in roles], name="chatrole"),
        nullable=False,
    )
    content = Column(Text, nullable=False)
    sources = Column(JSON().with_variant(JSONB, "postgresql"), nullable=True)
    confidence = Column(String, nullable=True)  # "low" | "medium" | "high"
