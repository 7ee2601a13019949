import logging
from typing import Any, Dict, List, Optional, Sequence, Union

import httpx
from langchain_core.messages import BaseMessage, convert_to_openai_messages

from veritas.shared.exceptions import (
    OracleError,
    OracleMalformedResponseError,
    OracleUnavailableError,
)

logger = logging.getLogger(__name__)

Messages = Sequence[Union[BaseMessage, Dict[str, Any]]]


def extract_content(data: Any) -> str:
    """Pull choices[0].message.content out of a completion envelope."""
    try:
        content = data["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError):
        content = None
    if not isinstance(content, str) or not content:
        raise OracleMalformedResponseError("Unexpected response structure from the oracle")
    return content


class OracleClient:
    """Client for an OpenAI-compatible /chat/completions endpoint.

    Every failure mode maps to one exception type; nothing is retried.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str,
        model: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Shared connection pool, created on first use."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self.transport)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def complete(
        self,
        messages: Messages,
        *,
        temperature: float = 0.1,
        max_tokens: int = 500,
    ) -> str:
        payload = {
            "model": self.model,
            "messages": convert_to_openai_messages(list(messages)),
            "max_tokens": max_tokens,
            "temperature": temperature,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            response = await self.client.post(
                f"{self.base_url}/chat/completions", json=payload, headers=headers
            )
        except httpx.DecodingError as e:
            logger.error(f"Oracle response body could not be decoded: {e!r}")
            raise OracleMalformedResponseError("Undecodable response from the oracle") from e
        except httpx.RequestError as e:
            # Transport failures, timeouts and redirect loops
            logger.error(f"Oracle network error: {e!r}")
            raise OracleUnavailableError(f"Failed to connect to the oracle: {e}") from e

        if not response.is_success:
            try:
                details: Any = response.json()
            except ValueError:
                details = response.text
            logger.error(f"Oracle error response ({response.status_code}): {details}")
            raise OracleError(response.status_code, details)

        try:
            data = response.json()
        except ValueError as e:
            logger.error("Failed to parse oracle response as JSON")
            raise OracleMalformedResponseError("Invalid response from the oracle") from e

        try:
            return extract_content(data)
        except OracleMalformedResponseError:
            logger.error(f"Unexpected oracle response structure: {data}")
            raise
