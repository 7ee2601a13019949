import hashlib
from typing import Iterable


def fingerprint(parts: Iterable[str]) -> str:
    """SHA-256 over an ordered sequence of strings, as lowercase hex.

    Each part is length-prefixed before hashing so that ("ab", "c") and
    ("a", "bc") produce different digests.
    """
    digest = hashlib.sha256()
    for part in parts:
        encoded = part.encode("utf-8")
        digest.update(f"{len(encoded)}:".encode("ascii"))
        digest.update(encoded)
    return digest.hexdigest()


def statement_fingerprint(statement: str, speaker: str, source_url: str | None) -> str:
    return fingerprint([statement, speaker, source_url or ""])


def block_fingerprint(statement_hash: str, previous_hash: str, appended_at_ms: int) -> str:
    return fingerprint([statement_hash, previous_hash, str(appended_at_ms)])
