"""
Expiration alert scan.

Finds products expiring exactly ALERT_DAYS_AHEAD days from today and mails
one summary listing them. Shared by the /send-alerts endpoint and the
`--send-alerts` CLI mode.
"""

from __future__ import annotations

import html
import logging
from dataclasses import dataclass, field
from datetime import date, timedelta

from core.mailer import EmailClient
from core.models import Product, product_names
from core.store import ProductStore

logger = logging.getLogger(__name__)

ALERT_DAYS_AHEAD = 7


@dataclass
class AlertResult:
    target_date: str
    products: list[Product] = field(default_factory=list)
    email_id: str | None = None

    @property
    def email_sent(self) -> bool:
        return self.email_id is not None


def target_date_for(today: date, days_ahead: int = ALERT_DAYS_AHEAD) -> str:
    """
    Return today + days_ahead as YYYY-MM-DD.

    Built from the local calendar fields of a naive date, never from a UTC
    timestamp, so the result cannot shift by a day around midnight.
    """
    target = today + timedelta(days=days_ahead)
    return f"{target.year:04d}-{target.month:02d}-{target.day:02d}"


def build_product_list_html(products: list[Product]) -> str:
    items = "".join(f"<li>{html.escape(str(p['name']))}</li>" for p in products)
    return f"<ul>{items}</ul>"


def build_alert_email(products: list[Product], target_date: str) -> tuple[str, str]:
    """Return (subject, html body) for the alert summary."""
    subject = f"Expiration alert - {len(products)} products!"
    body = (
        "<p>Hello!</p>"
        f"<p>The following products expire in {ALERT_DAYS_AHEAD} days ({target_date}):</p>"
        f"{build_product_list_html(products)}"
    )
    return subject, body


async def scan_and_alert(
    store: ProductStore,
    mailer: EmailClient,
    sender: str,
    recipient: str,
    today: date,
) -> AlertResult:
    """
    Read the products expiring on the target date and, if any, send one email.

    StoreError and EmailError propagate unchanged; the caller decides how to
    report them. The read is discarded when the send fails.
    """
    target_date = target_date_for(today)
    logger.info("Looking for products expiring on %s", target_date)

    products = await store.list_by_expiration(target_date)
    if not products:
        logger.info("No products expiring on %s", target_date)
        return AlertResult(target_date=target_date)

    logger.info("Found %d products expiring on %s: %s",
                len(products), target_date, ", ".join(product_names(products)))

    subject, body = build_alert_email(products, target_date)
    email_id = await mailer.send(sender, [recipient], subject, body)

    return AlertResult(target_date=target_date, products=products, email_id=email_id)
