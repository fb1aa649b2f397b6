import asyncio

import pytest

from gas_payer.schemas import TransactionResult
from gas_payer.services.gas_payer_service import GasPayerService
from gas_payer.services.relay.base import ClientCredentials

WALLET_CONTEXT = "wallet: 0x123456...5678"


def _run(coro):
    return asyncio.run(coro)


def test_successful_relay_result_passes_through_unchanged(make_relay, events, wallet):
    relay_result = TransactionResult(success=True, transaction_hash="0xabc", error="gas topped up")
    service = GasPayerService(make_relay(result=relay_result), event_logger=events)

    result = _run(service.process_signed_transaction(wallet, "0xf86c", "token_transfer"))

    assert result is relay_result
    assert result.error == "gas topped up"
    assert events.events == []


def test_relay_call_arguments_without_credentials(make_relay, events, wallet):
    relay = make_relay()
    service = GasPayerService(relay, event_logger=events)

    _run(service.process_signed_transaction(wallet, "0xf86c", "token_transfer"))

    assert relay.calls == [
        (
            "process_transaction_with_gas_transfer",
            {
                "user_wallet_address": wallet,
                "signed_transaction_hex": "0xf86c",
                "operation_name": "token_transfer",
            },
        )
    ]


def test_credentials_are_forwarded_when_present(make_relay, events, wallet):
    relay = make_relay()
    credentials = ClientCredentials(client_id="acme", token="secret")
    service = GasPayerService(relay, event_logger=events)

    _run(service.process_signed_transaction(wallet, "0xf86c", "token_transfer", credentials=credentials))

    _, kwargs = relay.calls[0]
    assert kwargs["client_credentials"] is credentials


def test_failed_result_is_enriched(make_relay, events, wallet):
    relay = make_relay(
        result=TransactionResult(success=False, transaction_hash="0xdead", error="insufficient funds for gas * price + value")
    )
    service = GasPayerService(relay, event_logger=events)

    result = _run(service.process_signed_transaction(wallet, "0xf86c", "token_transfer"))

    assert result.success is False
    assert result.transaction_hash == "0xdead"
    assert "Insufficient funds for operation 'token_transfer'" in result.error
    assert "gas payer wallet does not have enough ETH" in result.error
    assert result.error.endswith(f"[{WALLET_CONTEXT}]")
    assert events.names == ["relay_transaction_failed"]


@pytest.mark.parametrize("blank", ["  ", "", None])
def test_failed_result_with_blank_error_gets_unknown_error_message(make_relay, events, wallet, blank):
    relay_result = TransactionResult(success=False, transaction_hash="0xdead", error=blank)
    service = GasPayerService(make_relay(result=relay_result), event_logger=events)

    result = _run(service.process_signed_transaction(wallet, "0xf86c", "op"))

    assert result == TransactionResult(
        success=False,
        transaction_hash="0xdead",
        error=(
            "Unknown transaction error for operation 'op': "
            f"An unexpected error occurred during processing. [{WALLET_CONTEXT}]"
        ),
    )
    assert events.names == ["relay_transaction_failed"]


def test_relay_fault_becomes_failed_result(make_relay, events, wallet):
    service = GasPayerService(make_relay(exc=TimeoutError("timeout")), event_logger=events)

    result = _run(service.process_signed_transaction(wallet, "0xf86c", "token_transfer"))

    assert result == TransactionResult(
        success=False,
        transaction_hash=None,
        error=(
            "Transaction failed for operation 'token_transfer': timeout "
            f"[{WALLET_CONTEXT}, exceptionType: TimeoutError]"
        ),
    )
    assert events.names == ["relay_transaction_fault"]
    assert events.events[0][1]["metadata"] == {"exceptionType": "TimeoutError"}


def test_relay_fault_without_message(make_relay, events, wallet):
    service = GasPayerService(make_relay(exc=RuntimeError()), event_logger=events)

    result = _run(service.process_signed_transaction(wallet, "0xf86c", "mint"))

    assert result.error == (
        "Transaction failed for operation 'mint': Unknown error occurred "
        f"[{WALLET_CONTEXT}, exceptionType: RuntimeError]"
    )


def test_classified_fault_message(make_relay, events, wallet):
    service = GasPayerService(make_relay(exc=ValueError("nonce too low")), event_logger=events)

    result = _run(service.process_signed_transaction(wallet, "0xf86c", "mint"))

    assert result.error.startswith("Transaction nonce error for operation 'mint': ")
    assert result.error.endswith(f"[{WALLET_CONTEXT}, exceptionType: ValueError]")


def test_cancelled_relay_call_becomes_failed_result(make_relay, events, wallet):
    service = GasPayerService(make_relay(exc=asyncio.CancelledError()), event_logger=events)

    result = _run(service.process_signed_transaction(wallet, "0xf86c", "mint"))

    assert result.success is False
    assert result.error.endswith("exceptionType: CancelledError]")


def test_successful_funding_passes_through(make_relay, events, wallet):
    relay = make_relay(result=TransactionResult.succeeded("0xfund"))
    service = GasPayerService(relay, event_logger=events)

    result = _run(service.conditional_funding(wallet, 10**18))

    assert result == TransactionResult.succeeded("0xfund")
    assert relay.calls == [
        ("conditional_funding", {"wallet_address": wallet, "total_amount_needed_wei": 10**18})
    ]


def test_failed_funding_is_enriched_with_requested_amount(make_relay, events, wallet):
    relay = make_relay(result=TransactionResult.failed("insufficient funds for transfer"))
    service = GasPayerService(relay, event_logger=events)

    result = _run(service.conditional_funding(wallet, 10**18))

    assert result.error.startswith("Insufficient funds for operation 'wallet_funding': ")
    assert result.error.endswith(f"[{WALLET_CONTEXT}, requestedAmount: 1.00E+18]")
    assert events.names == ["wallet_funding_failed"]


def test_funding_fault_carries_amount_and_exception_type(make_relay, events, wallet):
    service = GasPayerService(make_relay(exc=ConnectionError("relay down")), event_logger=events)

    result = _run(service.conditional_funding(wallet, 5 * 10**17))

    assert result.success is False
    assert result.transaction_hash is None
    assert result.error == (
        "Transaction failed for operation 'wallet_funding': relay down "
        f"[{WALLET_CONTEXT}, requestedAmount: 5.00E+17, exceptionType: ConnectionError]"
    )
    assert events.names == ["wallet_funding_fault"]


# ---- Resilience ----


def _failing_event_logger(event_name, **kwargs):
    raise RuntimeError("statsig down")


def test_oversized_cost_in_relay_error_still_returns_failed_result(make_relay, events, wallet):
    raw = "Transaction cost too high: " + "9" * 5000 + " wei, maximum allowed 1 wei"
    service = GasPayerService(make_relay(result=TransactionResult.failed(raw)), event_logger=events)

    result = _run(service.process_signed_transaction(wallet, "0xf86c", "escrow_funding"))

    assert result.success is False
    assert result.error.startswith("Transaction cost exceeds limit for operation 'escrow_funding': ")
    assert result.error.endswith(f"[{WALLET_CONTEXT}]")
    assert events.names == ["relay_transaction_failed"]


def test_broken_enrichment_falls_back_to_raw_error(make_relay, events, wallet, monkeypatch):
    def explode(*args, **kwargs):
        raise ValueError("cannot render")

    monkeypatch.setattr("gas_payer.services.gas_payer_service.create_detailed_error", explode)
    service = GasPayerService(make_relay(result=TransactionResult.failed("nonce too low")), event_logger=events)

    result = _run(service.process_signed_transaction(wallet, "0xf86c", "mint"))

    assert result == TransactionResult.failed("nonce too low")
    assert events.names == ["relay_transaction_failed"]


def test_broken_enrichment_of_fault_keeps_exception_message(make_relay, events, wallet, monkeypatch):
    def explode(*args, **kwargs):
        raise ValueError("cannot render")

    monkeypatch.setattr("gas_payer.services.gas_payer_service.create_detailed_error", explode)
    service = GasPayerService(make_relay(exc=RuntimeError()), event_logger=events)

    result = _run(service.conditional_funding(wallet, 10**18))

    assert result == TransactionResult.failed("Unknown error occurred")


def test_event_logger_failure_does_not_escape_fault_path(make_relay, wallet):
    service = GasPayerService(make_relay(exc=TimeoutError("timeout")), event_logger=_failing_event_logger)

    result = _run(service.process_signed_transaction(wallet, "0xf86c", "token_transfer"))

    assert result.success is False
    assert result.error.endswith("exceptionType: TimeoutError]")


def test_event_logger_failure_does_not_escape_failed_result_path(make_relay, wallet):
    relay = make_relay(result=TransactionResult.failed("Balance update timeout"))
    service = GasPayerService(relay, event_logger=_failing_event_logger)

    result = _run(service.conditional_funding(wallet, 2000))

    assert result.success is False
    assert result.error.startswith("Wallet balance update timeout for operation 'wallet_funding'")
