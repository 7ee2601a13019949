"""create chat_history table

Revision ID: 8c2f4d6a1e53
Revises: 3b7e91c2d4a0
Create Date: 2026-07-05 08:10:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '8c2f4d6a1e53'
down_revision: Union[str, Sequence[str], None] = '3b7e91c2d4a0'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("DO $$ BEGIN IF NOT EXISTS (SELECT 1 FROM pg_type WHERE typname = 'chatrole') THEN CREATE TYPE chatrole AS ENUM ('user', 'bot'); END IF; END $$;")

    op.create_table(
        'chat_history',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('session_id', sa.String(), nullable=False),
        sa.Column('message_type', postgresql.ENUM('user', 'bot', name='chatrole', create_type=False), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('sources', postgresql.JSONB(), nullable=True),
        sa.Column('confidence', sa.String(), nullable=True),
        sa.CheckConstraint("confidence IN ('low', 'medium', 'high')", name='ck_chat_history_confidence'),
    )
    op.create_index('ix_chat_history_session_id', 'chat_history', ['session_id'])
    op.create_index('ix_chat_history_created_at', 'chat_history', ['created_at'])


def downgrade() -> None:
    op.drop_index('ix_chat_history_created_at', table_name='chat_history')
    op.drop_index('ix_chat_history_session_id', table_name='chat_history')
    op.drop_table('chat_history')
    op.execute("DROP TYPE IF EXISTS chatrole")
