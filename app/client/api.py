"""
Authenticated HTTP client for the Table Tamer API
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[str]]

DEFAULT_READY_TIMEOUT = 10.0


class ApiError(Exception):
    """Non-2xx response; ``message`` is the envelope's ``error`` string"""

    def __init__(self, message: str, status_code: int, payload: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.status_code = status_code
        self.payload = payload or {}
        super().__init__(f"{status_code}: {message}")


class AuthState:
    """Signed-in identity with an awaitable readiness signal.

    Request code awaits :meth:`wait_ready` once instead of polling for a user.
    """

    def __init__(self) -> None:
        self._ready = asyncio.Event()
        self.user_id: Optional[str] = None
        self._token_provider: Optional[TokenProvider] = None

    @property
    def is_ready(self) -> bool:
        return self._ready.is_set()

    def sign_in(self, user_id: str, token_provider: TokenProvider) -> None:
        self.user_id = user_id
        self._token_provider = token_provider
        self._ready.set()

    def sign_out(self) -> None:
        self.user_id = None
        self._token_provider = None
        self._ready.clear()

    async def wait_ready(self, timeout: float = DEFAULT_READY_TIMEOUT) -> None:
        try:
            await asyncio.wait_for(self._ready.wait(), timeout)
        except asyncio.TimeoutError:
            raise ApiError("Authentication required", 401) from None

    async def token(self) -> str:
        if self._token_provider is None:
            raise ApiError("Authentication required", 401)
        # Providers refresh expired tokens themselves, so ask on every request
        return await self._token_provider()


class ApiClient:
    def __init__(
        self,
        base_url: str,
        auth: AuthState,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        ready_timeout: float = DEFAULT_READY_TIMEOUT,
    ) -> None:
        self.auth = auth
        self.ready_timeout = ready_timeout
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport)

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        authenticated: bool = True,
    ) -> Dict[str, Any]:
        headers = {}
        if authenticated:
            await self.auth.wait_ready(self.ready_timeout)
            headers["Authorization"] = f"Bearer {await self.auth.token()}"

        response = await self._http.request(method, path, json=json, params=params, headers=headers)
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {"data": payload}

        if response.is_success and response.status_code != 207 and payload.get("success", True):
            return payload

        message = payload.get("error") or response.reason_phrase or "Request failed"
        logger.error(f"{method} {path} failed with {response.status_code}: {message}")
        raise ApiError(message, response.status_code, payload)

    async def get(self, path: str, **params: Any) -> Dict[str, Any]:
        return await self.request("GET", path, params=params or None)

    async def post(self, path: str, json: Any = None) -> Dict[str, Any]:
        return await self.request("POST", path, json=json)

    async def patch(self, path: str, json: Any = None) -> Dict[str, Any]:
        return await self.request("PATCH", path, json=json)

    async def delete(self, path: str, **params: Any) -> Dict[str, Any]:
        return await self.request("DELETE", path, params=params or None)
