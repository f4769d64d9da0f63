"""
Product Alert API CLI Entry Point.

Starts the HTTP server, or runs a single expiration scan for an external
scheduler (cron, Render cron job, ...).

Usage:
    python main.py                      # serve on $PORT (default 3000)
    python main.py --port 8080          # serve on a custom port
    python main.py --send-alerts        # scan once, email, and exit
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date

import httpx

from core.alerts import AlertResult, scan_and_alert
from core.config import LOG_LEVEL, ConfigError, Settings, load_settings
from core.mailer import EmailClient
from core.store import ProductStore

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("product-alert-api")


async def run_alerts(settings: Settings, today: date | None = None) -> AlertResult:
    """Run one scan-and-alert cycle outside the HTTP server."""
    async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
        store = ProductStore(client, settings.supabase_url, settings.supabase_key, settings.products_table)
        mailer = EmailClient(client, settings.resend_api_key)
        return await scan_and_alert(
            store,
            mailer,
            settings.alert_email_from,
            settings.alert_email_to,
            today or date.today(),
        )


def print_summary(result: AlertResult):
    """Print a human-readable scan summary."""
    print(f"Target date: {result.target_date}")
    if not result.products:
        print("No products expiring on the target date.")
        return

    print(f"Products expiring ({len(result.products)}):")
    for product in result.products:
        print(f"  → {product['name']} (id={product.get('id')})")
    print(f"Email sent to 1 recipient (id={result.email_id or '?'})")


def serve(settings: Settings, host: str, port: int | None = None, reload: bool = False):
    import uvicorn

    port = port or settings.port
    print("Product Alert API Server")
    print(f"   http://localhost:{port}")
    print(f"   http://localhost:{port}/docs (Swagger UI)")
    uvicorn.run("server:app", host=host, port=port, reload=reload)


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(
        description="Product Alert API: product expiration tracking with email alerts"
    )
    parser.add_argument("--host", default="0.0.0.0", help="Interface to bind")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on (overrides $PORT)")
    parser.add_argument("--reload", action="store_true", help="Auto-reload on code changes")
    parser.add_argument("--send-alerts", action="store_true", help="Run one expiration scan and exit")
    args = parser.parse_args(argv)

    # Config validation
    try:
        settings = load_settings()
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        print("  Copy .env.example to .env and fill in your credentials.\n", file=sys.stderr)
        sys.exit(1)

    if args.send_alerts:
        try:
            result = asyncio.run(run_alerts(settings))
        except Exception as e:
            print(f"Alert processing failed: {e}", file=sys.stderr)
            logger.exception("Alert processing error")
            sys.exit(1)
        print_summary(result)
        return

    serve(settings, host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
