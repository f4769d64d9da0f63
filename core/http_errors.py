"""
Error-message extraction shared by the outbound HTTP clients.

Supabase (PostgREST) and Resend both report failures as JSON objects with a
"message" field; anything else falls back to the raw body or the status line.
"""

from __future__ import annotations

import httpx


def response_error_message(resp: httpx.Response) -> str:
    """Return the provider's own description of a failed response."""
    try:
        body = resp.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        for key in ("message", "error", "msg"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
            if isinstance(value, dict) and value.get("message"):
                return str(value["message"])

    text = resp.text.strip()
    if text:
        return text[:500]
    return f"HTTP {resp.status_code}"
