"""
Product Alert API FastAPI Server.

CRUD over the Supabase "produtos" table plus an on-request expiration scan
that emails a summary through Resend. Exposes:
  - GET    /produtos          list products
  - POST   /produtos          create a product
  - PUT    /produtos/{id}     update a product
  - DELETE /produtos/{id}     delete a product
  - GET    /send-alerts       email products expiring in 7 days

Every error response has the shape {"erro": "<message>"}.
"""

from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from datetime import date
from typing import Any

import httpx
from fastapi import Body, Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

from core.alerts import scan_and_alert
from core.config import LOG_LEVEL, Settings, load_settings
from core.mailer import EmailClient
from core.store import ProductStore, StoreError

logging.basicConfig(
    level=getattr(logging, LOG_LEVEL, logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("product-alert-api")

REQUIRED_FIELDS_MESSAGE = "name and expiration_date are required"
INVALID_DATE_MESSAGE = "expiration_date must be a date in YYYY-MM-DD format"
NO_PRODUCTS_MESSAGE = "No products expiring on the target date."
ALERTS_SENT_MESSAGE = "Alerts processed and email sent!"

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


# ── Lifespan ─────────────────────────────────────────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = load_settings()

    async with httpx.AsyncClient(timeout=settings.http_timeout) as client:
        app.state.settings = settings
        app.state.store = ProductStore(
            client, settings.supabase_url, settings.supabase_key, settings.products_table
        )
        app.state.mailer = EmailClient(client, settings.resend_api_key)
        logger.info("Connected to Supabase table '%s'.", settings.products_table)
        logger.info("CORS enabled for all origins.")
        yield

    logger.info("HTTP client closed.")


# ── FastAPI App ──────────────────────────────────────────────────────────────

app = FastAPI(
    title="Product Alert API",
    description="Product expiration tracking with email alerts",
    version="1.0.0",
    lifespan=lifespan,
)


@app.middleware("http")
async def render_unhandled_errors(request: Request, call_next):
    # Must be registered before CORSMiddleware to sit inside it.
    try:
        return await call_next(request)
    except Exception as exc:
        logger.error("Unhandled exception on %s %s: %s", request.method, request.url.path, exc, exc_info=True)
        return JSONResponse(status_code=500, content={"erro": str(exc)})


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"erro": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = [error.get("msg", "invalid request") for error in exc.errors()]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"erro": "; ".join(messages) or "Invalid request body"},
    )


# ── Dependencies ─────────────────────────────────────────────────────────────

def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> ProductStore:
    return request.app.state.store


def get_mailer(request: Request) -> EmailClient:
    return request.app.state.mailer


def get_today() -> date:
    """Local calendar date of the server clock."""
    return date.today()


# ── Request Models ───────────────────────────────────────────────────────────

class ProductPayload(BaseModel):
    name: str | None = None
    expiration_date: str | None = None


def _validated_fields(payload: ProductPayload | None) -> dict[str, str]:
    """Presence and date-format checks, done before any store call."""
    if payload is None or not (payload.name or "").strip() or not (payload.expiration_date or "").strip():
        raise HTTPException(status_code=400, detail=REQUIRED_FIELDS_MESSAGE)

    expiration_date = payload.expiration_date.strip()
    if not _ISO_DATE.match(expiration_date):
        raise HTTPException(status_code=400, detail=INVALID_DATE_MESSAGE)
    try:
        date.fromisoformat(expiration_date)
    except ValueError:
        raise HTTPException(status_code=400, detail=INVALID_DATE_MESSAGE)

    return {"name": payload.name, "expiration_date": expiration_date}


# ── Products ─────────────────────────────────────────────────────────────────

@app.get("/produtos")
async def list_products(store: ProductStore = Depends(get_store)) -> list[dict[str, Any]]:
    """List every product."""
    try:
        return await store.list_all()
    except StoreError as e:
        logger.error("Failed to list products: %s", e)
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/produtos", status_code=status.HTTP_201_CREATED)
async def create_product(
    payload: ProductPayload | None = Body(default=None),
    store: ProductStore = Depends(get_store),
) -> dict[str, Any]:
    """Create a product and return it with its assigned id."""
    fields = _validated_fields(payload)
    try:
        product = await store.insert_one(fields)
    except StoreError as e:
        logger.error("Failed to create product: %s", e)
        raise HTTPException(status_code=500, detail=str(e))

    logger.info("New product created: %s", product)
    return product


@app.put("/produtos/{product_id}")
async def update_product(
    product_id: str,
    payload: ProductPayload | None = Body(default=None),
    store: ProductStore = Depends(get_store),
) -> dict[str, Any]:
    """Replace name and expiration_date of an existing product."""
    logger.info("Received request to update product %s", product_id)
    fields = _validated_fields(payload)
    try:
        rows = await store.update_by_id(product_id, fields)
    except StoreError as e:
        logger.error("Failed to update product %s: %s", product_id, e)
        raise HTTPException(status_code=500, detail=str(e))

    if not rows:
        raise HTTPException(status_code=404, detail=f"Product {product_id} not found")

    logger.info("Product updated: %s", rows[0])
    return rows[0]


@app.delete("/produtos/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(product_id: str, store: ProductStore = Depends(get_store)) -> Response:
    """Delete a product. Deleting an unknown id also answers 204."""
    logger.info("Received request to delete product %s", product_id)
    try:
        await store.delete_by_id(product_id)
    except StoreError as e:
        logger.error("Failed to delete product %s: %s", product_id, e)
        raise HTTPException(status_code=500, detail=str(e))

    logger.info("Product %s deleted", product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ── Alerts ───────────────────────────────────────────────────────────────────

@app.get("/send-alerts")
async def send_alerts(
    store: ProductStore = Depends(get_store),
    mailer: EmailClient = Depends(get_mailer),
    settings: Settings = Depends(get_settings),
    today: date = Depends(get_today),
) -> dict[str, Any]:
    """Email the products expiring 7 days from today."""
    logger.info("Received request to check expiration alerts...")

    try:
        result = await scan_and_alert(
            store, mailer, settings.alert_email_from, settings.alert_email_to, today
        )
    except Exception as e:
        logger.exception("Alert processing failed")
        raise HTTPException(status_code=500, detail=str(e))

    if not result.products:
        return {"message": NO_PRODUCTS_MESSAGE}
    return {"message": ALERTS_SENT_MESSAGE, "products": result.products}


# ── Main ─────────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    from main import main as run_cli

    run_cli()
