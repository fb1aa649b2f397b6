from __future__ import annotations

"""backend/gas_payer/services/diagnostics/wei_formatter.py

Human-readable rendering of wei quantities.

Wei amounts stay Python ints (arbitrary precision) until they reach this
module, where they are converted to ``Decimal`` and rendered in base-10
scientific notation with two fractional digits, e.g.::

    format_wei_scientific(500000000000000000)   -> "5.00E+17"
    format_gas_price_scientific(50000000000)    -> "ETH:5.00E-08"

Both helpers are total: if an input cannot be rendered they log a warning
and return the raw decimal value instead of raising, so formatting can never
be the reason a request fails.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal, DecimalException, localcontext

logger = logging.getLogger(__name__)

WEI_PER_ETH_EXPONENT = 18
ETH_TAG = "ETH:"

_MANTISSA_QUANTUM = Decimal("0.01")


def _as_wei(amount: object) -> int:
    # bool is an int subclass but never a wei amount
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise TypeError(f"wei amount must be an int, got {type(amount).__name__}")
    if amount < 0:
        raise ValueError("wei amount must be non-negative")
    return amount


def _raw_text(amount: object) -> str:
    try:
        return str(amount)
    except ValueError:
        # int longer than the interpreter allows str() to render
        return f"<{amount.bit_length()}-bit integer>"


def _scientific(value: Decimal) -> str:
    if value.is_zero():
        return "0.00E+00"

    exponent = value.adjusted()
    mantissa = value.scaleb(-exponent).quantize(_MANTISSA_QUANTUM, rounding=ROUND_HALF_UP)
    # 9.995 rounds up to 10.00
    if mantissa >= 10:
        exponent += 1
        mantissa = value.scaleb(-exponent).quantize(_MANTISSA_QUANTUM, rounding=ROUND_HALF_UP)

    sign = "+" if exponent >= 0 else "-"
    return f"{mantissa}E{sign}{abs(exponent):02d}"


def _render(amount: int, scale_exponent: int) -> str:
    with localcontext() as ctx:
        # Enough precision that scaling never rounds before the final quantize.
        # bit_length // 3 bounds the decimal digit count from above.
        ctx.prec = max(ctx.prec, amount.bit_length() // 3 + WEI_PER_ETH_EXPONENT + 4)
        return _scientific(Decimal(amount).scaleb(scale_exponent))


def format_wei_scientific(amount: int) -> str:
    """Render a wei amount as ``d.ddE±XX``.

    Falls back to ``"{amount}wei"`` when the value cannot be rendered.
    """
    try:
        return _render(_as_wei(amount), 0)
    except (TypeError, ValueError, DecimalException) as exc:
        raw = _raw_text(amount)
        logger.warning("Could not format wei amount %s: %s", raw, exc)
        return f"{raw}wei"


def format_gas_price_scientific(amount: int) -> str:
    """Render a wei amount as ETH (scaled by 10^-18), tagged ``ETH:``.

    Falls back to the raw decimal value when it cannot be rendered.
    """
    try:
        return ETH_TAG + _render(_as_wei(amount), -WEI_PER_ETH_EXPONENT)
    except (TypeError, ValueError, DecimalException) as exc:
        raw = _raw_text(amount)
        logger.warning("Could not format gas price %s: %s", raw, exc)
        return raw
