"""
Integer fixed-point helpers.

Every amount handled by the ledger is an integer count of token base units.
Fractional reward-per-share values are kept as integers scaled by PRECISION,
and every intermediate is checked against the 256-bit unsigned range so the
arithmetic matches what an on-chain implementation of the same pool computes.
"""

from decimal import Decimal, InvalidOperation, localcontext

from .errors import ArithmeticOverflow

PRECISION = 10**12
MAX_UINT256 = 2**256 - 1


def _check(value: int, op: str) -> int:
    if value < 0 or value > MAX_UINT256:
        raise ArithmeticOverflow(f"{op} result {value} is outside the uint256 range")
    return value


def checked_add(a: int, b: int) -> int:
    return _check(a + b, "add")


def checked_sub(a: int, b: int) -> int:
    return _check(a - b, "sub")


def checked_mul(a: int, b: int) -> int:
    return _check(a * b, "mul")


def mul_div(a: int, b: int, denominator: int) -> int:
    """Return floor(a * b / denominator), rejecting an out-of-range product."""
    if denominator == 0:
        raise ArithmeticOverflow("division by zero")
    return checked_mul(a, b) // denominator


def parse_units(value: str, decimals: int = 18) -> int:
    """Convert a human-readable token amount such as "0.01" into base units."""
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise ValueError(f"Invalid token amount: {value!r}")
    if not amount.is_finite() or amount < 0:
        raise ValueError(f"Invalid token amount: {value!r}")

    with localcontext() as ctx:
        ctx.prec = 100
        scaled = amount.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        raise ValueError(f"{value} has more than {decimals} decimal places")
    return _check(int(scaled), "parse_units")

