"""
Product store backed by the Supabase row API (PostgREST).

Every method is a single round trip against `<SUPABASE_URL>/rest/v1/<table>`.
Failures of any kind (HTTP error status, transport error, timeout, bad body)
are raised as StoreError carrying the provider's message.

Usage:
    async with httpx.AsyncClient(timeout=10) as client:
        store = ProductStore(client, settings.supabase_url, settings.supabase_key)
        products = await store.list_all()
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from core.config import DEFAULT_PRODUCTS_TABLE
from core.http_errors import response_error_message
from core.models import Product, ProductFields

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the data store reports a failure."""


class ProductStore:
    """Repository over the products collection."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        api_key: str,
        table: str = DEFAULT_PRODUCTS_TABLE,
    ):
        self._client = client
        self.table = table
        self.rest_url = f"{base_url.rstrip('/')}/rest/v1/{table}"
        self._headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        }

    # ── Public API ────────────────────────────────────────────────────────────

    async def list_all(self) -> list[Product]:
        """Return every product, in store order."""
        return await self._request("GET", params={"select": "*"})

    async def list_by_expiration(self, expiration_date: str) -> list[Product]:
        """Return products whose expiration_date equals the given string exactly."""
        params = {"select": "*", "expiration_date": f"eq.{expiration_date}"}
        return await self._request("GET", params=params)

    async def insert_one(self, fields: ProductFields) -> Product:
        """Insert a single row and return it as persisted, id included."""
        rows = await self._request(
            "POST",
            json=[dict(fields)],
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise StoreError(f"Insert into '{self.table}' returned no rows")
        return rows[0]

    async def update_by_id(self, product_id: Any, fields: ProductFields) -> list[Product]:
        """
        Set both fields on the row matching product_id.

        Returns the updated rows; an empty list means no row matched.
        """
        return await self._request(
            "PATCH",
            params={"id": f"eq.{product_id}"},
            json=dict(fields),
            headers={"Prefer": "return=representation"},
        )

    async def delete_by_id(self, product_id: Any) -> None:
        """Delete the row matching product_id. A missing row is not an error."""
        await self._request(
            "DELETE",
            params={"id": f"eq.{product_id}"},
            headers={"Prefer": "return=minimal"},
        )

    # ── Internals ─────────────────────────────────────────────────────────────

    async def _request(
        self,
        method: str,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> list[Product]:
        merged = {**self._headers, **(headers or {})}
        try:
            resp = await self._client.request(
                method, self.rest_url, params=params, json=json, headers=merged
            )
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, self.table, exc)
            raise StoreError(str(exc) or exc.__class__.__name__) from exc

        if resp.is_error:
            message = response_error_message(resp)
            logger.error("%s %s returned %d: %s", method, self.table, resp.status_code, message)
            raise StoreError(message)

        if resp.status_code == 204 or not resp.content:
            return []

        try:
            body = resp.json()
        except ValueError as exc:
            raise StoreError(f"Invalid JSON from store: {exc}") from exc

        if not isinstance(body, list):
            raise StoreError(f"Unexpected store response: {body!r}"[:500])
        return body
