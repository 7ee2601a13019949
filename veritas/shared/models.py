import uuid
from datetime import datetime
from sqlalchemy import Column, DateTime, Uuid

class UUIDMixin:
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

class CreatedAtMixin:
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

class TimestampMixin(CreatedAtMixin):
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

class AuditMixin(UUIDMixin, TimestampMixin):
    """Combines UUID and Timestamps for standard entities."""
    pass
