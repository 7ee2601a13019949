"""create veritas_chain table

Revision ID: 3b7e91c2d4a0
Revises:
Create Date: 2026-07-05 07:42:52.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '3b7e91c2d4a0'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

STATUS_VALUES = ('VERIFIED', 'UNVERIFIED', 'DISPUTED')
CONFIDENCE_VALUES = ('LOW', 'MEDIUM', 'HIGH')


def upgrade() -> None:
    """Create the statement chain with its integrity and search indexes."""
    status_enum = postgresql.ENUM(*STATUS_VALUES, name='verificationstatus')
    confidence_enum = postgresql.ENUM(*CONFIDENCE_VALUES, name='verificationconfidence')
    status_enum.create(op.get_bind(), checkfirst=True)
    confidence_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'veritas_chain',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('statement', sa.Text(), nullable=False),
        sa.Column('speaker', sa.String(), nullable=False),
        sa.Column('source_url', sa.String(), nullable=True),
        sa.Column('statement_date', sa.Date(), nullable=True),
        sa.Column('statement_hash', sa.String(64), nullable=False),
        sa.Column('previous_hash', sa.String(64), nullable=False),
        sa.Column('block_hash', sa.String(64), nullable=False),
        sa.Column('appended_at_ms', sa.BigInteger(), nullable=False),
        sa.Column(
            'verification_status',
            postgresql.ENUM(*STATUS_VALUES, name='verificationstatus', create_type=False),
            nullable=True,
        ),
        sa.Column(
            'verification_confidence',
            postgresql.ENUM(*CONFIDENCE_VALUES, name='verificationconfidence', create_type=False),
            nullable=True,
        ),
        # At most one successor per block: concurrent appends on the same tail
        # cannot both commit.
        sa.UniqueConstraint('previous_hash', name='uq_veritas_chain_previous_hash'),
        sa.UniqueConstraint('block_hash', name='uq_veritas_chain_block_hash'),
    )
    op.create_index('ix_veritas_chain_speaker', 'veritas_chain', ['speaker'])
    op.create_index('ix_veritas_chain_created_at', 'veritas_chain', ['created_at'])
    op.create_index('ix_veritas_chain_verification_status', 'veritas_chain', ['verification_status'])
    op.execute(
        "CREATE INDEX ix_veritas_chain_statement_fts ON veritas_chain "
        "USING GIN (to_tsvector('english', statement))"
    )

    # Keep updated_at current on verification write-back
    op.execute("""
        CREATE OR REPLACE FUNCTION update_updated_at_column()
        RETURNS trigger AS $$
        BEGIN
            NEW.updated_at := timezone('utc', now());
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql;
    """)
    op.execute("""
        CREATE TRIGGER trg_veritas_chain_updated_at
        BEFORE UPDATE ON veritas_chain
        FOR EACH ROW EXECUTE FUNCTION update_updated_at_column();
    """)


def downgrade() -> None:
    op.execute('DROP TRIGGER IF EXISTS trg_veritas_chain_updated_at ON veritas_chain')
    op.execute('DROP FUNCTION IF EXISTS update_updated_at_column()')
    op.execute('DROP INDEX IF EXISTS ix_veritas_chain_statement_fts')
    op.drop_index('ix_veritas_chain_verification_status', table_name='veritas_chain')
    op.drop_index('ix_veritas_chain_created_at', table_name='veritas_chain')
    op.drop_index('ix_veritas_chain_speaker', table_name='veritas_chain')
    op.drop_table('veritas_chain')
    op.execute('DROP TYPE IF EXISTS verificationconfidence')
    op.execute('DROP TYPE IF EXISTS verificationstatus')
