from __future__ import annotations

"""backend/gas_payer/services/diagnostics/context_annotator.py

Appends a compact context block to classified error messages::

    "<message> [wallet: 0x123456...5678, operation: ..., requestedAmount: 1.00E+18]"
"""

from typing import Any, Iterable, Mapping, Optional, Tuple, Union

from gas_payer.services.diagnostics.error_classifier import classify
from gas_payer.services.diagnostics.wei_formatter import (
    format_gas_price_scientific,
    format_wei_scientific,
)

ContextFields = Union[Mapping[str, Any], Iterable[Tuple[str, Any]]]

WALLET_PREFIX_CHARS = 8
WALLET_SUFFIX_CHARS = 4

# Keys whose integer values are wei amounts and get scientific rendering.
_WEI_FIELD_FORMATTERS = {
    "gasPrice": format_gas_price_scientific,
    "gasLimit": format_wei_scientific,
}


def truncate_wallet_address(wallet_address: str) -> str:
    """Shorten an address to ``first8...last4``.

    Addresses too short to be shortened are returned unchanged.
    """
    if len(wallet_address) < WALLET_PREFIX_CHARS + WALLET_SUFFIX_CHARS:
        return wallet_address
    return f"{wallet_address[:WALLET_PREFIX_CHARS]}...{wallet_address[-WALLET_SUFFIX_CHARS:]}"


def _format_value(key: str, value: Any) -> str:
    formatter = _WEI_FIELD_FORMATTERS.get(key)
    if formatter is not None and isinstance(value, int) and not isinstance(value, bool):
        return formatter(value)
    return str(value)


def _iter_fields(extra_fields: Optional[ContextFields]) -> Iterable[Tuple[str, Any]]:
    if extra_fields is None:
        return ()
    if isinstance(extra_fields, Mapping):
        return extra_fields.items()
    return extra_fields


def annotate(
    message: str,
    wallet_address: Optional[str],
    extra_fields: Optional[ContextFields] = None,
) -> str:
    """Append ``[wallet: ..., key: value, ...]`` to ``message``.

    Fields keep the caller's order and repeated keys are kept. The bracket
    clause is dropped only when there is nothing to put in it.
    """
    context: list[str] = []
    if wallet_address:
        context.append(f"wallet: {truncate_wallet_address(wallet_address)}")
    for key, value in _iter_fields(extra_fields):
        context.append(f"{key}: {_format_value(key, value)}")

    if not context:
        return message
    return f"{message} [{', '.join(context)}]"


def create_detailed_error(
    raw_error: Optional[str],
    operation_name: Optional[str],
    wallet_address: Optional[str],
    extra_fields: Optional[ContextFields] = None,
) -> str:
    """Classify ``raw_error`` and annotate it with wallet and extra context."""
    return annotate(classify(raw_error, operation_name), wallet_address, extra_fields)
