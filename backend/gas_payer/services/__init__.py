# backend/gas_payer/services/__init__.py
