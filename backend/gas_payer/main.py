# backend/gas_payer/main.py
from __future__ import annotations

"""
FastAPI application setup.

This module depends on:
- gas_payer.config.get_settings for configuration
- gas_payer.services.relay.HttpRelayClient for the relay connection
- gas_payer.api.api_router for route registration
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from gas_payer.api import api_router
from gas_payer.config import get_settings
from gas_payer.schemas import TransactionResult
from gas_payer.services.gas_payer_service import GasPayerService
from gas_payer.services.relay import HttpRelayClient
from gas_payer.services.statsig_client import get_statsig_client, shutdown_statsig

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# ---- Lifecycle ----


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the relay client and service once; close them on shutdown."""
    # Statsig setup does blocking network I/O; keep it off the event loop
    await asyncio.to_thread(get_statsig_client)
    relay = HttpRelayClient.from_settings(settings)
    app.state.gas_payer_service = GasPayerService(relay)
    logger.info("Relay client targeting %s", relay.base_url)
    try:
        yield
    finally:
        await relay.aclose()
        await asyncio.to_thread(shutdown_statsig)


app = FastAPI(
    title="Gas Payer Service API",
    version="1.0.0",
    description=(
        "Service for relaying blockchain transactions with gas payment handling.\n\n"
        "When security is enabled, every endpoint requires an API key in the "
        "`X-API-KEY` header and a request from a whitelisted IP address."
    ),
    lifespan=lifespan,
)


# ---- CORS ----

app.add_middleware(
    CORSMiddleware,
    allow_origins=[str(o).rstrip("/") for o in settings.allowed_origins],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---- Routes ----

app.include_router(api_router, prefix="/api")


# ---- Errors ----


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Answer anything that escaped the routes with a failed TransactionResult."""
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    result = TransactionResult.failed(f"Internal server error: {str(exc) or 'Unknown error occurred'}")
    return JSONResponse(status_code=500, content=result.model_dump(by_alias=True))


# ---- Healthcheck ----


@app.get("/health", tags=["health"])
def health() -> dict:
    return {"status": "ok"}
