# backend/gas_payer/schemas/__init__.py
from __future__ import annotations

"""
Pydantic schemas for request/response models.

This module is the API contract layer. Field names are camelCase on the wire
(``userWalletAddress``) and snake_case in Python (``user_wallet_address``).

It is used by:
- API routes
- the relay client, which parses relay responses into TransactionResult
- GasPayerService, which produces enriched TransactionResults
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

WALLET_ADDRESS_PATTERN = r"^0x[a-fA-F0-9]{40}$"
SIGNED_TRANSACTION_PATTERN = r"^0x[a-fA-F0-9]+$"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------- Transaction Result ----------


class TransactionResult(CamelModel):
    """Outcome of a relay or funding call.

    Use ``succeeded`` / ``failed`` to build results; ``error`` is set exactly
    when ``success`` is false.
    """

    model_config = ConfigDict(frozen=True)

    success: bool
    transaction_hash: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def succeeded(cls, transaction_hash: Optional[str]) -> "TransactionResult":
        return cls(success=True, transaction_hash=transaction_hash, error=None)

    @classmethod
    def failed(cls, error: str) -> "TransactionResult":
        return cls(success=False, transaction_hash=None, error=error)


# ---------- Requests ----------


class SignedTransactionRequest(CamelModel):
    user_wallet_address: str = Field(
        ...,
        pattern=WALLET_ADDRESS_PATTERN,
        description="User's wallet address that will receive gas transfer if needed",
        examples=["0x742b35Cc6834C0532Fee23f35E4cdb41c176fBc2"],
    )
    signed_transaction_hex: str = Field(
        ...,
        pattern=SIGNED_TRANSACTION_PATTERN,
        description="Hex-encoded signed transaction ready for blockchain submission",
    )
    operation_name: str = Field(
        "unknown",
        description="Name of the blockchain operation for gas cost estimation",
        examples=["transfer"],
    )


class FundWalletRequest(CamelModel):
    wallet_address: str = Field(
        ...,
        pattern=WALLET_ADDRESS_PATTERN,
        description="Wallet address to fund",
        examples=["0x742b35Cc6834C0532Fee23f35E4cdb41c176fBc2"],
    )
    total_amount_needed_wei: int = Field(
        ...,
        description="Total amount in wei needed by the wallet (decimal string or integer)",
        examples=["1000000000000000000"],
    )

    @field_validator("total_amount_needed_wei", mode="before")
    @classmethod
    def parse_wei(cls, value: object) -> int:
        # Wei amounts overflow JSON number precision in most clients, so
        # decimal strings are the normal form. Floats are never accepted.
        if isinstance(value, bool):
            raise ValueError("Amount must be an integer")
        if isinstance(value, str):
            text = value.strip()
            if not text.isdigit():
                raise ValueError("Amount must be a decimal integer string")
            value = int(text)
        if not isinstance(value, int):
            raise ValueError("Amount must be an integer")
        if value <= 0:
            raise ValueError("Amount must be positive")
        return value
