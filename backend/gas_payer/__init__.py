# backend/gas_payer/__init__.py
from __future__ import annotations

"""
Marks `gas_payer` as a Python package.

Routers live in gas_payer/api, the enrichment pipeline and relay client in
gas_payer/services.
"""
