from __future__ import annotations

"""backend/gas_payer/services/relay/base.py

Interface of the external relay service.

The relay owns everything chain-specific: decoding and validating the signed
transaction, topping up the user's wallet from the gas payer, submitting to
RPC and polling balances. This service only calls into it.
"""

from dataclasses import dataclass, field
from typing import Optional, Protocol

from gas_payer.schemas import TransactionResult


class RelayServiceError(Exception):
    """Raised when the relay answers with something that is not a result."""


@dataclass(frozen=True)
class ClientCredentials:
    """Opaque capability identifying the caller's gas payer wallet.

    Resolved by the API key layer and handed to the relay untouched.
    """

    client_id: str
    token: str = field(repr=False)


class RelayService(Protocol):
    """Minimal interface that relay implementations must provide."""

    async def process_transaction_with_gas_transfer(
        self,
        user_wallet_address: str,
        signed_transaction_hex: str,
        operation_name: str,
        client_credentials: Optional[ClientCredentials] = None,
    ) -> TransactionResult:
        """Fund the user's wallet with gas if needed, then submit the transaction.

        May raise; callers are expected to convert faults into results.
        """
        ...

    async def conditional_funding(
        self,
        wallet_address: str,
        total_amount_needed_wei: int,
    ) -> TransactionResult:
        """Top ``wallet_address`` up to ``total_amount_needed_wei`` if it holds less."""
        ...
