"""
Async client for the hosted backend's REST API.

The backend exposes PostgREST conventions under ``/rest/v1``:

* ``GET /rest/v1/<table>?select=*&col=eq.X&id=in.(1,2)&order=name``
* ``POST /rest/v1/rpc/<function>`` with a JSON body of named arguments
* ``POST /rest/v1/<table>`` with ``Prefer: return=representation``

Uses ``httpx.AsyncClient`` for non-blocking I/O.  Every call is bounded
by the client timeout; failures surface as ``NetworkError`` (no
response) or ``ServerError`` (non-success status), never as empty data.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Iterable, Mapping, Optional

import httpx

from src.config import settings
from src.domain.errors import NetworkError, ServerError

logger = logging.getLogger(__name__)

REST_PREFIX = "/rest/v1"


def _literal(value: Any) -> str:
    if isinstance(value, enum.Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class BackendClient:
    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        key = settings.backend_api_key if api_key is None else api_key
        self._client = httpx.AsyncClient(
            base_url=(base_url or settings.backend_url).rstrip("/") + REST_PREFIX,
            headers={
                "apikey": key,
                "Authorization": f"Bearer {key}",
                "Content-Type": "application/json",
            },
            timeout=timeout or settings.request_timeout_seconds,
            transport=transport,
        )

    # ── Public API ────────────────────────────────────────────────────

    async def select(
        self,
        table: str,
        *,
        columns: str = "*",
        eq: Optional[Mapping[str, Any]] = None,
        in_: Optional[Mapping[str, Iterable[Any]]] = None,
        order: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[dict]:
        """Read rows from *table*.

        ``None`` values in *eq* and empty collections in *in_* are skipped,
        so an absent filter never turns into ``col=eq.None``.
        """
        params: list[tuple[str, str]] = [("select", columns)]
        for column, value in (eq or {}).items():
            if value is not None:
                params.append((column, f"eq.{_literal(value)}"))
        for column, values in (in_ or {}).items():
            values = [_literal(v) for v in values]
            if values:
                params.append((column, f"in.({','.join(values)})"))
        if order:
            params.append(("order", order))
        if limit is not None:
            params.append(("limit", str(limit)))
        return await self._request("GET", f"/{table}", params=params)

    async def rpc(self, function: str, args: Mapping[str, Any]) -> list[dict]:
        payload = {k: _literal(v) if isinstance(v, enum.Enum) else v for k, v in args.items()}
        return await self._request("POST", f"/rpc/{function}", json=payload)

    async def insert(self, table: str, row: Mapping[str, Any]) -> list[dict]:
        return await self._request(
            "POST",
            f"/{table}",
            json=dict(row),
            headers={"Prefer": "return=representation"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    # context-manager support
    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    # ── Internals ─────────────────────────────────────────────────────

    async def _request(self, method: str, path: str, **kwargs) -> list[dict]:
        logger.debug("%s %s %s", method, path, kwargs.get("params") or "")
        try:
            response = await self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            logger.warning("%s %s timed out", method, path)
            raise NetworkError(f"Request timed out: {exc}") from exc
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise NetworkError(f"Network error: {exc}") from exc

        if not response.is_success:
            logger.warning(
                "%s %s returned HTTP %d", method, path, response.status_code
            )
            raise ServerError(response.status_code, response.reason_phrase)

        try:
            data = response.json()
        except ValueError as exc:
            raise ServerError(response.status_code, "invalid JSON body") from exc
        if data is None:
            return []
        return data if isinstance(data, list) else [data]
