from __future__ import annotations

"""backend/gas_payer/services/diagnostics/error_classifier.py

Centralized classification of relay error strings.

The relay service reports failures as terse, free-text strings. This module
maps such a string to an ``ErrorCategory`` and renders a message an operator
or end user can act on.

The classification is:
- deterministic (no randomness, no state shared between calls)
- text-based (substring matching against known upstream phrasings)
- ordered (``ERROR_RULES`` is evaluated top to bottom, first match wins)

Rules are not mutually exclusive: "Failed to transfer gas to user:
insufficient funds" matches both the gas-transfer and the insufficient-funds
rule, so the order of ``ERROR_RULES`` is part of the contract.

Where an upstream message embeds numbers (costs, gas limits, gas prices) the
rule extracts them with a fixed-field regular expression and re-renders them
in scientific notation; if the expression does not match, the original
message is kept verbatim.
"""

import enum
import re
from dataclasses import dataclass
from typing import Callable, Optional

from gas_payer.services.diagnostics.wei_formatter import (
    format_gas_price_scientific,
    format_wei_scientific,
)


class ErrorCategory(str, enum.Enum):
    GAS_TRANSFER_FAILED = "gas-transfer-failed"
    TRANSACTION_COST_TOO_HIGH = "transaction-cost-too-high"
    GAS_LIMIT_EXCEEDED = "gas-limit-exceeded"
    GAS_PRICE_TOO_HIGH = "gas-price-too-high"
    BALANCE_UPDATE_TIMEOUT = "balance-update-timeout"
    MISSING_CLIENT_CREDENTIALS = "missing-client-credentials"
    GAS_PAYER_NOT_CONFIGURED = "gas-payer-not-configured"
    GAS_TRANSFER_TRANSACTION_FAILED = "gas-transfer-transaction-failed"
    INSUFFICIENT_FUNDS = "insufficient-funds"
    EXECUTION_REVERTED = "execution-reverted"
    NONCE_TOO_LOW = "nonce-too-low"
    REPLACEMENT_UNDERPRICED = "replacement-underpriced"
    UNKNOWN = "unknown-error"


@dataclass(frozen=True)
class ClassifiedError:
    category: ErrorCategory
    rendered_message: str


# (raw error, operation name or None) -> rendered message
Renderer = Callable[[str, Optional[str]], str]


@dataclass(frozen=True)
class ErrorRule:
    """One entry of the ordered classification table."""

    category: ErrorCategory
    needles: tuple[str, ...]
    render: Renderer
    ignore_case: bool = False

    def matches(self, raw_error: str) -> bool:
        if self.ignore_case:
            lowered = raw_error.lower()
            return any(n.lower() in lowered for n in self.needles)
        return any(n in raw_error for n in self.needles)


COST_TOO_HIGH_PATTERN = re.compile(r"cost too high: (\d+) wei, maximum allowed (\d+) wei")
GAS_LIMIT_PATTERN = re.compile(r"provided (\d+), maximum allowed (\d+)")
GAS_LIMIT_OPERATION_PATTERN = re.compile(r"exceeds expected for operation '([^']+)'")
GAS_PRICE_PATTERN = re.compile(
    r"provided (\d+), maximum allowed (\d+) \(current network: (\d+)\)"
)


def operation_clause(operation_name: Optional[str]) -> str:
    """Return `` for operation '<name>'`` or an empty string."""
    if operation_name is None:
        return ""
    return f" for operation '{operation_name}'"


def _details_after_colon(message: str) -> str:
    colon_index = message.find(": ")
    if colon_index != -1 and colon_index < len(message) - 2:
        return message[colon_index + 2 :]
    return message


def _wei_groups(match: re.Match) -> Optional[tuple]:
    try:
        return tuple(int(group) for group in match.groups())
    except ValueError:
        # digit runs past the interpreter's int() conversion limit
        return None


# ---- Renderers ----


def _render_gas_transfer_failed(raw: str, op: Optional[str]) -> str:
    return f"Gas transfer failed{operation_clause(op)}: {_details_after_colon(raw)}"


def _render_cost_too_high(raw: str, op: Optional[str]) -> str:
    headline = f"Transaction cost exceeds limit{operation_clause(op)}"
    match = COST_TOO_HIGH_PATTERN.search(raw)
    amounts = _wei_groups(match) if match else None
    if amounts is None:
        return f"{headline}: {raw}"
    actual, maximum = amounts
    return (
        f"{headline}: cost {format_wei_scientific(actual)} wei exceeds "
        f"maximum allowed {format_wei_scientific(maximum)} wei"
    )


def _render_gas_limit_exceeded(raw: str, op: Optional[str]) -> str:
    if op is None:
        embedded = GAS_LIMIT_OPERATION_PATTERN.search(raw)
        if embedded:
            op = embedded.group(1)
    headline = f"Gas limit exceeded{operation_clause(op)}"
    match = GAS_LIMIT_PATTERN.search(raw)
    amounts = _wei_groups(match) if match else None
    if amounts is None:
        return f"{headline}: {raw}"
    provided, maximum = amounts
    return (
        f"{headline}: provided {format_wei_scientific(provided)}, "
        f"maximum allowed {format_wei_scientific(maximum)}"
    )


def _render_gas_price_too_high(raw: str, op: Optional[str]) -> str:
    headline = f"Gas price exceeds limit{operation_clause(op)}"
    match = GAS_PRICE_PATTERN.search(raw)
    amounts = _wei_groups(match) if match else None
    if amounts is None:
        return f"{headline}: {raw}"
    provided, maximum, network = amounts
    return (
        f"{headline}: provided {format_gas_price_scientific(provided)}, "
        f"maximum allowed {format_gas_price_scientific(maximum)}, "
        f"current network {format_gas_price_scientific(network)}"
    )


def _render_gas_transfer_transaction_failed(raw: str, op: Optional[str]) -> str:
    return (
        f"Gas transfer transaction failed{operation_clause(op)}: {_details_after_colon(raw)}. "
        "This may indicate insufficient funds in the gas payer wallet or blockchain network issues."
    )


def _fixed(headline: str, explanation: str) -> Renderer:
    def render(raw: str, op: Optional[str]) -> str:
        return f"{headline}{operation_clause(op)}: {explanation}"

    return render


def _render_default(raw: str, op: Optional[str]) -> str:
    if raw.strip():
        return f"Transaction failed{operation_clause(op)}: {raw}"
    return (
        f"Unknown transaction error{operation_clause(op)}: "
        "An unexpected error occurred during processing."
    )


# ---- Rule table (priority order) ----

ERROR_RULES: tuple[ErrorRule, ...] = (
    ErrorRule(
        ErrorCategory.GAS_TRANSFER_FAILED,
        ("Failed to transfer gas to user",),
        _render_gas_transfer_failed,
    ),
    ErrorRule(
        ErrorCategory.TRANSACTION_COST_TOO_HIGH,
        ("Transaction cost too high",),
        _render_cost_too_high,
    ),
    ErrorRule(
        ErrorCategory.GAS_LIMIT_EXCEEDED,
        ("Gas limit exceeds expected", "Gas limit too high"),
        _render_gas_limit_exceeded,
    ),
    ErrorRule(
        ErrorCategory.GAS_PRICE_TOO_HIGH,
        ("Gas price too high",),
        _render_gas_price_too_high,
    ),
    ErrorRule(
        ErrorCategory.BALANCE_UPDATE_TIMEOUT,
        ("Balance update timeout",),
        _fixed(
            "Wallet balance update timeout",
            "Unable to confirm gas transfer completion. "
            "The transaction may still be processing on the blockchain.",
        ),
    ),
    ErrorRule(
        ErrorCategory.MISSING_CLIENT_CREDENTIALS,
        ("Client wallet credentials required",),
        _fixed(
            "Authentication error",
            "No wallet configured for this API key. Please ensure your API key "
            "is properly configured with a gas payer wallet.",
        ),
    ),
    ErrorRule(
        ErrorCategory.GAS_PAYER_NOT_CONFIGURED,
        ("Gas Payer Contract not configured",),
        _fixed(
            "Configuration error",
            "Gas payer contract address not configured "
            "(GAS_PAYER_CONTRACT_ADDRESS missing). Contact support to resolve this issue.",
        ),
    ),
    ErrorRule(
        ErrorCategory.GAS_TRANSFER_TRANSACTION_FAILED,
        ("Gas transfer transaction failed",),
        _render_gas_transfer_transaction_failed,
    ),
    ErrorRule(
        ErrorCategory.INSUFFICIENT_FUNDS,
        ("insufficient funds",),
        _fixed(
            "Insufficient funds",
            "The gas payer wallet does not have enough ETH to cover transaction costs. "
            "Please contact support to fund the gas payer wallet.",
        ),
        ignore_case=True,
    ),
    ErrorRule(
        ErrorCategory.EXECUTION_REVERTED,
        ("execution reverted",),
        _fixed(
            "Transaction reverted",
            "The blockchain rejected the transaction. This may be due to contract "
            "logic constraints or invalid parameters.",
        ),
        ignore_case=True,
    ),
    ErrorRule(
        ErrorCategory.NONCE_TOO_LOW,
        ("nonce too low",),
        _fixed(
            "Transaction nonce error",
            "Nonce conflict detected. The transaction may have already been processed "
            "or there's a blockchain synchronization issue.",
        ),
        ignore_case=True,
    ),
    ErrorRule(
        ErrorCategory.REPLACEMENT_UNDERPRICED,
        ("replacement transaction underpriced",),
        _fixed(
            "Gas price too low",
            "Transaction replacement requires higher gas price than the pending transaction.",
        ),
        ignore_case=True,
    ),
)


def classify_error(raw_error: Optional[str], operation_name: Optional[str] = None) -> ClassifiedError:
    """Classify ``raw_error`` and render the user-facing message.

    Never raises; anything no rule recognizes falls through to
    ``ErrorCategory.UNKNOWN``.
    """
    raw = raw_error or ""
    for rule in ERROR_RULES:
        if rule.matches(raw):
            return ClassifiedError(rule.category, rule.render(raw, operation_name))
    return ClassifiedError(ErrorCategory.UNKNOWN, _render_default(raw, operation_name))


def classify(raw_error: Optional[str], operation_name: Optional[str] = None) -> str:
    """Return only the rendered message for ``raw_error``."""
    return classify_error(raw_error, operation_name).rendered_message
