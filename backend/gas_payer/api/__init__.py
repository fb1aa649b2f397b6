# backend/gas_payer/api/__init__.py
from __future__ import annotations

"""
API router aggregation.

This module exposes a single `api_router` that the FastAPI app
includes with the `/api` prefix.
"""

from fastapi import APIRouter

from . import transactions

api_router = APIRouter()
api_router.include_router(transactions.router)
