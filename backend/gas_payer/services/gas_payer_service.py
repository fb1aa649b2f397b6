from __future__ import annotations

"""backend/gas_payer/services/gas_payer_service.py

Request-level policy around the relay service.

Responsibilities:
- Delegate signed-transaction relays and wallet funding to a RelayService
- Pass successful relay results through untouched
- Enrich failed results (classified headline + wallet/operation context)
- Report failures and faults as best-effort analytics events
- Convert any fault raised by the relay into a failed TransactionResult

GasPayerService is the last line of defense: neither public method raises
for relay faults, including timeouts and cancellation of the relay call,
and a broken formatter or event sink never turns a result into an exception.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

from gas_payer.schemas import TransactionResult
from gas_payer.services.diagnostics.context_annotator import ContextFields, create_detailed_error
from gas_payer.services.diagnostics.wei_formatter import format_wei_scientific
from gas_payer.services.relay.base import ClientCredentials, RelayService
from gas_payer.services.statsig_client import log_backend_event

logger = logging.getLogger(__name__)

WALLET_FUNDING_OPERATION = "wallet_funding"
UNKNOWN_FAULT_MESSAGE = "Unknown error occurred"

EventLogger = Callable[..., None]


class GasPayerService:
    def __init__(self, relay: RelayService, *, event_logger: EventLogger = log_backend_event):
        self.relay = relay
        self._log_event = event_logger

    def _emit(self, event_name: str, **kwargs: Any) -> None:
        try:
            self._log_event(event_name, **kwargs)
        except Exception:
            logger.warning("Could not log event %s", event_name, exc_info=True)

    def _detailed_error(
        self,
        raw_error: Optional[str],
        *,
        operation_name: str,
        wallet_address: str,
        extra_fields: Optional[ContextFields] = None,
    ) -> str:
        try:
            return create_detailed_error(raw_error, operation_name, wallet_address, extra_fields)
        except Exception:
            logger.exception("Could not build detailed error for operation: %s", operation_name)
            return (raw_error or "").strip() or UNKNOWN_FAULT_MESSAGE

    def _enrich_result(
        self,
        result: TransactionResult,
        *,
        operation_name: str,
        wallet_address: str,
        extra_fields: Optional[ContextFields] = None,
    ) -> Optional[TransactionResult]:
        """Return an enriched copy of a failed result, or None to pass it through.

        A failed result with a missing or blank error still gets the
        "Unknown transaction error" headline so callers always see a message.
        """
        if result.success:
            return None
        enhanced = self._detailed_error(
            result.error,
            operation_name=operation_name,
            wallet_address=wallet_address,
            extra_fields=extra_fields,
        )
        return result.model_copy(update={"error": enhanced})

    def _fault_result(
        self,
        exc: BaseException,
        *,
        operation_name: str,
        wallet_address: str,
        extra_fields: dict[str, Any],
    ) -> TransactionResult:
        extra_fields["exceptionType"] = type(exc).__name__
        try:
            message = str(exc)
        except Exception:
            message = ""
        enhanced = self._detailed_error(
            message or UNKNOWN_FAULT_MESSAGE,
            operation_name=operation_name,
            wallet_address=wallet_address,
            extra_fields=extra_fields,
        )
        return TransactionResult(success=False, transaction_hash=None, error=enhanced)

    async def process_signed_transaction(
        self,
        user_wallet_address: str,
        signed_transaction_hex: str,
        operation_name: str,
        credentials: Optional[ClientCredentials] = None,
    ) -> TransactionResult:
        logger.info(
            "Processing transaction for wallet: %s, operation: %s",
            user_wallet_address,
            operation_name,
        )

        relay_kwargs: dict[str, Any] = {}
        if credentials is not None:
            relay_kwargs["client_credentials"] = credentials

        try:
            result = await self.relay.process_transaction_with_gas_transfer(
                user_wallet_address=user_wallet_address,
                signed_transaction_hex=signed_transaction_hex,
                operation_name=operation_name,
                **relay_kwargs,
            )
        except (Exception, asyncio.CancelledError) as exc:
            logger.exception(
                "Error processing signed transaction for wallet: %s, operation: %s",
                user_wallet_address,
                operation_name,
            )
            failed = self._fault_result(
                exc,
                operation_name=operation_name,
                wallet_address=user_wallet_address,
                extra_fields={},
            )
            self._emit(
                "relay_transaction_fault",
                value=operation_name,
                metadata={"exceptionType": type(exc).__name__},
            )
            return failed

        enriched = self._enrich_result(
            result,
            operation_name=operation_name,
            wallet_address=user_wallet_address,
        )
        if enriched is None:
            return result

        logger.warning("Transaction failed with enhanced details: %s", enriched.error)
        self._emit("relay_transaction_failed", value=operation_name)
        return enriched

    async def conditional_funding(
        self,
        wallet_address: str,
        total_amount_needed_wei: int,
    ) -> TransactionResult:
        logger.info(
            "Processing conditional funding for wallet: %s, amount: %s",
            wallet_address,
            total_amount_needed_wei,
        )
        requested_amount = format_wei_scientific(total_amount_needed_wei)

        try:
            result = await self.relay.conditional_funding(
                wallet_address=wallet_address,
                total_amount_needed_wei=total_amount_needed_wei,
            )
        except (Exception, asyncio.CancelledError) as exc:
            logger.exception(
                "Error processing conditional funding for wallet: %s, amount: %s",
                wallet_address,
                total_amount_needed_wei,
            )
            failed = self._fault_result(
                exc,
                operation_name=WALLET_FUNDING_OPERATION,
                wallet_address=wallet_address,
                extra_fields={"requestedAmount": requested_amount},
            )
            self._emit(
                "wallet_funding_fault",
                value=requested_amount,
                metadata={"exceptionType": type(exc).__name__},
            )
            return failed

        enriched = self._enrich_result(
            result,
            operation_name=WALLET_FUNDING_OPERATION,
            wallet_address=wallet_address,
            extra_fields={"requestedAmount": requested_amount},
        )
        if enriched is None:
            return result

        logger.warning("Conditional funding failed with enhanced details: %s", enriched.error)
        self._emit("wallet_funding_failed", value=requested_amount)
        return enriched
