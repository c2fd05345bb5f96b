"""
HTTP client for the remote record store.

All network traffic of the registry and the entity store goes through
``StoreClient``. Requests are independent and never retried; a non-2xx
response or a network failure surfaces as ``TransportError``.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import structlog

from .cache import ListingCache
from .codec.transport import MetadataEnvelope
from .config import Settings, get_settings
from .exceptions import TransportError

logger = structlog.get_logger()


def normalize_collection(payload: Any) -> List[Any]:
    """Accept either a bare JSON array or an object with a ``data`` array.

    Any other shape degrades to an empty list.
    """
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict) and isinstance(payload.get("data"), list):
        return payload["data"]
    logger.warning("unexpected_collection_shape", payload_type=type(payload).__name__)
    return []


def _error_message(response: httpx.Response, fallback: str) -> str:
    """Use the store's ``message`` (or ``detail``) string when it sent one."""
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        for key in ("message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return fallback


class StoreClient:
    """
    Async client for the record store's HTTP API.
    """

    def __init__(
        self,
        base_url: str,
        api_token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_token = api_token
        # shared by every registry and store built on this client
        self.cache = ListingCache()
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Authorization": f"Bearer {api_token}"} if api_token else {},
            transport=transport,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> "StoreClient":
        settings = settings or get_settings()
        return cls(
            settings.api_url,
            api_token=settings.api_token,
            timeout=settings.request_timeout_seconds,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def __aenter__(self) -> "StoreClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _request(
        self, method: str, path: str, operation: str, **kwargs: Any
    ) -> httpx.Response:
        fallback = f"Failed to {operation}"
        try:
            response = await self.client.request(method, path, **kwargs)
        except httpx.RequestError as e:
            logger.error("store_request_failed", method=method, path=path, error=str(e))
            raise TransportError(fallback) from e

        if response.is_error:
            message = _error_message(response, fallback)
            logger.error(
                "store_request_rejected",
                method=method,
                path=path,
                status_code=response.status_code,
                message=message,
            )
            raise TransportError(message, status_code=response.status_code)

        logger.debug(
            "store_request_ok", method=method, path=path, status_code=response.status_code
        )
        return response

    @staticmethod
    def _json(response: httpx.Response, operation: str) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            logger.error(
                "store_response_undecodable",
                url=str(response.request.url),
                status_code=response.status_code,
            )
            raise TransportError(
                f"Failed to {operation}", status_code=response.status_code
            ) from e

    async def get_collection(self, path: str, operation: str) -> List[Any]:
        """GET a listing and normalize its shape."""
        response = await self._request("GET", path, operation)
        return normalize_collection(self._json(response, operation))

    async def send_json(
        self, method: str, path: str, body: Dict[str, Any], operation: str
    ) -> Any:
        """Send a JSON body (POST/PUT) and return the decoded response."""
        response = await self._request(method, path, operation, json=body)
        return self._json(response, operation)

    async def send_form(
        self, method: str, path: str, envelope: MetadataEnvelope, operation: str
    ) -> Any:
        """Send a multipart envelope (POST/PUT) and return the decoded response."""
        response = await self._request(method, path, operation, files=envelope.to_httpx())
        return self._json(response, operation)

    async def delete(self, path: str, operation: str) -> None:
        await self._request("DELETE", path, operation)
