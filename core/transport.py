"""HTTP transport for the OpenAI Responses API.

One operation: POST an ``OutboundRequest`` with a bearer credential and hand
back the raw ``httpx.Response``. Status codes are left to the caller; only
connection-level failures are raised, as ``TransportError``.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

import httpx

from core.errors import TransportError
from core.models import OutboundRequest

logger = logging.getLogger(__name__)

DEFAULT_RESPONSES_URL = "https://api.openai.com/v1/responses"


class Transport(Protocol):
    def send(self, request: OutboundRequest) -> httpx.Response: ...


class ResponsesTransport:
    """Sends Responses API calls over a shared ``httpx.Client``.

    The client is lazy-initialised so the transport can be built before a
    credential is available, and so tests can inject one backed by
    ``httpx.MockTransport``.
    """

    def __init__(
        self,
        api_key: str,
        url: str = DEFAULT_RESPONSES_URL,
        timeout: Optional[float] = 120.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.url = url
        self.timeout = timeout
        self._api_key = api_key
        self._client = client

    @property
    def client(self) -> httpx.Client:
        """Lazy-initialise and return the HTTP client."""
        if self._client is None:
            self._client = httpx.Client(timeout=self.timeout)
        return self._client

    def send(self, request: OutboundRequest) -> httpx.Response:
        """POST *request* and return the response, whatever its status.

        Raises:
            TransportError: On connection errors, timeouts and other
                ``httpx`` failures.
        """
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = self.client.post(self.url, json=request.payload(), headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Request to %s failed: %s", self.url, exc)
            raise TransportError(str(exc) or "Could not reach the API.") from exc

        logger.info("POST %s -> %d", self.url, response.status_code)
        return response

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None
