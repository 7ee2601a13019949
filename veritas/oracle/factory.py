from typing import Optional

from veritas.config import settings
from veritas.oracle.client import OracleClient

# Module-level cache, cleared by tests
_oracle_cache: dict[str, OracleClient] = {}


def clear_oracle_cache() -> None:
    _oracle_cache.clear()


def get_oracle() -> Optional[OracleClient]:
    """Completion oracle used for answer synthesis and verification.

    Returns None when no API key is configured.
    """
    if not settings.MISTRAL_API_KEY:
        return None
    key = "default"
    if key not in _oracle_cache:
        _oracle_cache[key] = OracleClient(
            api_key=settings.MISTRAL_API_KEY,
            base_url=settings.ORACLE_BASE_URL,
            model=settings.ORACLE_MODEL,
            timeout=settings.ORACLE_TIMEOUT_SECONDS,
        )
    return _oracle_cache[key]


async def close_oracle() -> None:
    """Close pooled oracle connections and drop the cached client."""
    for oracle in list(_oracle_cache.values()):
        await oracle.aclose()
    clear_oracle_cache()
