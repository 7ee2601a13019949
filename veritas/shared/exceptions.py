from typing import Any, Optional


class VeritasError(Exception):
    """Base error carrying a stable machine-readable kind and an HTTP status."""

    kind = "internal_error"
    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": self.kind}


class ValidationError(VeritasError):
    kind = "validation_error"
    status_code = 400


class NotFoundError(VeritasError):
    kind = "not_found"
    status_code = 404


class StoreError(VeritasError):
    """Persistence read/write failure. Never retried by the core."""

    kind = "store_error"
    status_code = 500


class ChainConflictError(VeritasError):
    """The chain tail kept moving underneath an append until retries ran out."""

    kind = "chain_conflict"
    status_code = 409


class OracleUnavailableError(VeritasError):
    """Transport failure or timeout talking to the completion service."""

    kind = "oracle_unavailable"
    status_code = 502


class OracleNotConfiguredError(VeritasError):
    kind = "oracle_not_configured"
    status_code = 502


class OracleError(VeritasError):
    """The completion service answered with a non-success status."""

    kind = "oracle_error"
    status_code = 502

    def __init__(self, status: int, body: Any, message: Optional[str] = None):
        self.status = status
        self.body = body
        super().__init__(message or f"Oracle returned an error ({status})")

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["status"] = self.status
        return data


class OracleMalformedResponseError(VeritasError):
    """The completion envelope has no choices[0].message.content."""

    kind = "oracle_malformed_response"
    status_code = 502
