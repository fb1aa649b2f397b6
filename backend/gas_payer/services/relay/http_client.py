from __future__ import annotations

"""backend/gas_payer/services/relay/http_client.py

httpx-based client for the external blockchain relay service.

Endpoints (relative to ``relay_base_url``):
- POST /transactions/relay  -> TransactionResult JSON
- POST /wallets/fund        -> TransactionResult JSON

Any response whose JSON body carries a ``success`` field is treated as a
relay result, whatever the HTTP status (the relay answers 400 for logical
failures). Anything else raises ``RelayServiceError``. Transport errors and
timeouts propagate as httpx exceptions.
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from gas_payer.config import Settings
from gas_payer.schemas import TransactionResult
from gas_payer.services.relay.base import ClientCredentials, RelayServiceError

logger = logging.getLogger(__name__)

RELAY_TRANSACTION_PATH = "/transactions/relay"
RELAY_FUNDING_PATH = "/wallets/fund"

_BODY_PREVIEW_CHARS = 200


class HttpRelayClient:
    def __init__(
        self,
        *,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 60.0,
        chain_id: int | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.chain_id = chain_id
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpRelayClient":
        return cls(
            base_url=settings.relay_base_url,
            api_key=settings.relay_api_key,
            timeout=settings.relay_timeout_seconds,
            chain_id=settings.chain_id,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self, client_credentials: Optional[ClientCredentials] = None) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["X-API-KEY"] = self.api_key
        if client_credentials is not None:
            headers["X-Client-Id"] = client_credentials.client_id
            headers["X-Client-Credentials"] = client_credentials.token
        return headers

    async def _post(
        self,
        path: str,
        payload: dict[str, Any],
        client_credentials: Optional[ClientCredentials] = None,
    ) -> TransactionResult:
        if self.chain_id is not None:
            payload["chainId"] = self.chain_id

        response = await self._client.post(
            f"{self.base_url}{path}",
            json=payload,
            headers=self._headers(client_credentials),
        )
        logger.debug("Relay %s answered HTTP %s", path, response.status_code)

        try:
            body = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict) or "success" not in body:
            preview = (response.text or "").strip()[:_BODY_PREVIEW_CHARS]
            raise RelayServiceError(
                f"Relay returned HTTP {response.status_code} without a transaction result: "
                f"{preview or 'empty body'}"
            )

        try:
            return TransactionResult.model_validate(body)
        except ValidationError as exc:
            raise RelayServiceError(f"Relay returned a malformed transaction result: {exc}") from exc

    async def process_transaction_with_gas_transfer(
        self,
        user_wallet_address: str,
        signed_transaction_hex: str,
        operation_name: str,
        client_credentials: Optional[ClientCredentials] = None,
    ) -> TransactionResult:
        payload = {
            "userWalletAddress": user_wallet_address,
            "signedTransactionHex": signed_transaction_hex,
            "operationName": operation_name,
        }
        return await self._post(RELAY_TRANSACTION_PATH, payload, client_credentials)

    async def conditional_funding(
        self,
        wallet_address: str,
        total_amount_needed_wei: int,
    ) -> TransactionResult:
        payload = {
            "walletAddress": wallet_address,
            # decimal string keeps full precision across JSON parsers
            "totalAmountNeededWei": str(total_amount_needed_wei),
        }
        return await self._post(RELAY_FUNDING_PATH, payload)
