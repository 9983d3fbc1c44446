#!/usr/bin/env python3
"""Exact conversion between base-unit integers and human-readable token amounts.

Base-unit amounts routinely exceed 2**53, so the decimal point is placed on
the integer's string form and everything stays in ``Decimal``.
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, localcontext

from vestclaim.errors import InvalidAmount

ZERO = Decimal(0)
SMALL_THRESHOLD = Decimal("0.01")
MILLION = Decimal(1_000_000)
LOCALE_STEP = Decimal("0.001")
MILLIONS_STEP = Decimal("0.01")


def _check_decimals(decimals: int) -> None:
    if isinstance(decimals, bool) or not isinstance(decimals, int) or decimals < 0:
        raise InvalidAmount(f"Invalid fractional digit count: {decimals!r}")


def decode(raw: int, decimals: int) -> Decimal:
    """Place the decimal point ``decimals`` digits from the right of ``raw``."""
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 0:
        raise InvalidAmount(f"Invalid base-unit amount: {raw!r}")
    _check_decimals(decimals)

    digits = str(raw)
    if decimals == 0:
        return Decimal(digits)
    if len(digits) <= decimals:
        return Decimal("0." + digits.rjust(decimals, "0"))
    return Decimal(digits[:-decimals] + "." + digits[-decimals:])


def encode(amount: Decimal, decimals: int) -> int:
    """Inverse of :func:`decode`."""
    _check_decimals(decimals)
    amount = Decimal(amount)
    if not amount.is_finite() or amount < 0:
        raise InvalidAmount(f"Invalid token amount: {amount}")

    # integer math on the digit tuple; Decimal arithmetic would round at 28 digits
    _, digits, exponent = amount.as_tuple()
    coefficient = int("".join(map(str, digits)) or "0")
    shift = exponent + decimals
    if shift >= 0:
        return coefficient * 10 ** shift
    divisor = 10 ** -shift
    if coefficient % divisor:
        raise InvalidAmount(
            f"{amount} has more than {decimals} fractional digits"
        )
    return coefficient // divisor


def _strip_zeros(text: str) -> str:
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _exponential(amount: Decimal) -> str:
    with localcontext() as ctx:
        ctx.rounding = ROUND_HALF_UP
        mantissa, exponent = format(amount, ".2e").split("e")
    return f"{mantissa}e{int(exponent):+d}"


def format_amount(amount: Decimal) -> str:
    """Display policy: plain zero, exponent for dust, grouped below a million, M above."""
    amount = Decimal(amount)
    if amount == ZERO:
        return "0"
    if amount < SMALL_THRESHOLD:
        return _exponential(amount)
    if amount < MILLION:
        rounded = amount.quantize(LOCALE_STEP, rounding=ROUND_HALF_UP)
        return _strip_zeros(f"{rounded:,f}")
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, amount.adjusted() + 10)
        millions = (amount / MILLION).quantize(MILLIONS_STEP, rounding=ROUND_HALF_UP)
    return f"{millions:f}M"


def format_units(raw: int, decimals: int) -> str:
    return format_amount(decode(raw, decimals))
