"""Client for the shared ``/store`` record."""

from __future__ import annotations

import logging
from typing import Any

import httpx
from opentelemetry.propagate import inject

from stayplan.config import get_settings

logger = logging.getLogger(__name__)


class StoreServiceError(RuntimeError):
    """Raised when the remote store rejects or fails a request."""


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(payload, dict):
        return str(payload.get("details") or payload.get("error") or payload)
    return str(payload)


class RemoteStoreClient:
    """Async access to the remote snapshot: load, save and clear."""

    def __init__(
        self,
        base_url: str | None = None,
        *,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        self._base_url = (base_url or settings.remote_store_url or "").rstrip("/")
        self._timeout = timeout_seconds if timeout_seconds is not None else settings.remote_store_timeout_seconds
        self._transport = transport

    @property
    def url(self) -> str:
        return f"{self._base_url}/store"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout, transport=self._transport)

    @staticmethod
    def _headers() -> dict[str, str]:
        headers: dict[str, str] = {}
        inject(headers)
        return headers

    async def load(self) -> dict[str, Any] | None:
        """Fetch the remote snapshot; any failure means "no remote data"."""

        try:
            async with self._client() as client:
                response = await client.get(self.url, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.warning("Remote store unreachable: %s", exc)
            return None

        if response.status_code == 404:
            return None
        if response.status_code >= 400:
            logger.warning("Remote store load failed (%s): %s", response.status_code, _error_detail(response))
            return None
        try:
            payload = response.json()
        except ValueError:
            logger.warning("Remote store returned a non-JSON response")
            return None
        if not isinstance(payload, dict):
            logger.warning("Remote store payload is not an object")
            return None
        return payload

    async def save(self, data: dict[str, Any]) -> dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.post(self.url, json=data, headers=self._headers())
        except httpx.HTTPError as exc:
            raise StoreServiceError(f"Failed to reach remote store: {exc}") from exc

        try:
            payload = response.json()
        except ValueError as exc:
            raise StoreServiceError(f"Remote store returned invalid JSON (status {response.status_code})") from exc
        if response.status_code >= 400:
            raise StoreServiceError(_error_detail(response))
        return payload

    async def clear(self) -> dict[str, Any]:
        try:
            async with self._client() as client:
                response = await client.delete(self.url, headers=self._headers())
        except httpx.HTTPError as exc:
            raise StoreServiceError(f"Failed to reach remote store: {exc}") from exc

        if response.status_code >= 400:
            raise StoreServiceError(_error_detail(response))
        try:
            return response.json()
        except ValueError as exc:
            raise StoreServiceError("Remote store returned invalid JSON") from exc


__all__ = ["RemoteStoreClient", "StoreServiceError"]
