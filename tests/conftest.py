from __future__ import annotations

from collections.abc import Generator
from datetime import date
from typing import Any

import pytest
from fastapi.testclient import TestClient

from core.config import Settings
from core.mailer import EmailError
from core.store import StoreError
from server import app, get_mailer, get_settings, get_store, get_today

TODAY = date(2024, 1, 1)


class FakeStore:
    """In-memory stand-in for ProductStore that records every call."""

    def __init__(self, rows: list[dict[str, Any]] | None = None):
        self.rows: list[dict[str, Any]] = [dict(r) for r in rows or []]
        self.calls: list[tuple[str, tuple]] = []
        self.error: str | None = None
        self._next_id = max((r["id"] for r in self.rows), default=0) + 1

    def _check(self, op: str, *args):
        self.calls.append((op, args))
        if self.error:
            raise StoreError(self.error)

    async def list_all(self):
        self._check("list_all")
        return [dict(r) for r in self.rows]

    async def list_by_expiration(self, expiration_date):
        self._check("list_by_expiration", expiration_date)
        return [dict(r) for r in self.rows if r["expiration_date"] == expiration_date]

    async def insert_one(self, fields):
        self._check("insert_one", fields)
        row = {"id": self._next_id, **fields}
        self._next_id += 1
        self.rows.append(row)
        return dict(row)

    async def update_by_id(self, product_id, fields):
        self._check("update_by_id", product_id, fields)
        updated = []
        for row in self.rows:
            if str(row["id"]) == str(product_id):
                row.update(fields)
                updated.append(dict(row))
        return updated

    async def delete_by_id(self, product_id):
        self._check("delete_by_id", product_id)
        self.rows = [r for r in self.rows if str(r["id"]) != str(product_id)]

    @property
    def mutations(self) -> list[str]:
        return [op for op, _ in self.calls if op in ("insert_one", "update_by_id", "delete_by_id")]


class FakeMailer:
    """Records sent emails instead of calling the provider."""

    def __init__(self):
        self.sent: list[dict[str, Any]] = []
        self.error: str | None = None

    async def send(self, sender, to, subject, html):
        if self.error:
            raise EmailError(self.error)
        self.sent.append({"from": sender, "to": to, "subject": subject, "html": html})
        return f"email-{len(self.sent)}"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://project.supabase.co",
        supabase_key="supabase-key",
        resend_api_key="re_test",
        alert_email_from="alerts@shop.test",
        alert_email_to="owner@shop.test",
    )


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def today() -> date:
    return TODAY


@pytest.fixture
def client(store, mailer, settings, today) -> Generator[TestClient, None, None]:
    """TestClient with all collaborators overridden; the lifespan never runs."""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_today] = lambda: today
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
