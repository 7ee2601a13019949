from enum import Enum
from sqlalchemy import BigInteger, Column, Date, Index, String, Text, func, literal_column
from sqlalchemy import Enum as SAEnum
from veritas.database import Base
from veritas.shared.models import AuditMixin

GENESIS_HASH = "0"


class VerificationStatus(str, Enum):
    VERIFIED = "VERIFIED"
    UNVERIFIED = "UNVERIFIED"
    DISPUTED = "DISPUTED"


class VerificationConfidence(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class LedgerEntry(Base, AuditMixin):
    """One block of the statement chain.

    Everything except the two verification columns is written once, at append
    time. The verification columns are outside the fingerprint input.
    """
    __tablename__ = "veritas_chain"

    statement = Column(Text, nullable=False)
    speaker = Column(String, nullable=False, index=True)
    source_url = Column(String, nullable=True)
    statement_date = Column(Date, nullable=True)

    statement_hash = Column(String(64), nullable=False)
    # Unique: a block can have at most one successor. The chain linker's
    # compare-and-swap relies on this.
    previous_hash = Column(String(64), nullable=False, unique=True)
    block_hash = Column(String(64), nullable=False, unique=True)
    appended_at_ms = Column(BigInteger, nullable=False)

    verification_status = Column(SAEnum(VerificationStatus), nullable=True, index=True)
    verification_confidence = Column(SAEnum(VerificationConfidence), nullable=True)


Index(
    "ix_veritas_chain_statement_fts",
    func.to_tsvector(literal_column("'english'"), LedgerEntry.statement),
    postgresql_using="gin",
).ddl_if(dialect="postgresql")
