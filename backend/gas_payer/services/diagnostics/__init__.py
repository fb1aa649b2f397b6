from __future__ import annotations

"""
Diagnostics: turning relay errors into actionable messages.

This package provides:
- wei_formatter: scientific-notation rendering of wei / ETH amounts
- error_classifier: ordered classification of raw relay error strings
- context_annotator: wallet / operation context appended to messages

The goal is to keep error handling logic centralized and deterministic.
"""

from .context_annotator import annotate, create_detailed_error, truncate_wallet_address  # noqa: F401
from .error_classifier import ClassifiedError, ErrorCategory, classify, classify_error  # noqa: F401
from .wei_formatter import format_gas_price_scientific, format_wei_scientific  # noqa: F401
