"""Conversion between human decimal strings and integer token base units."""

from decimal import Decimal, InvalidOperation, localcontext

from quote_engine.errors import InvalidAmountError


def parse_units(raw_amount: str, decimals: int) -> int:
    """
    Parse a decimal string such as ``".5"`` into base units of a token with ``decimals``.

    Only integer arithmetic is used after parsing, so amounts of any size stay
    exact. More fractional digits than the token supports is an error rather
    than a silent truncation.

    Raises:
        InvalidAmountError: If the string is not a finite, non-negative number
            representable in ``decimals`` places.
    """
    if decimals < 0:
        raise InvalidAmountError(f"Token decimals must be non-negative, got {decimals}")
    try:
        value = Decimal(str(raw_amount).strip())
    except (InvalidOperation, ValueError) as exc:
        raise InvalidAmountError(f"Invalid amount: {raw_amount!r}") from exc

    if not value.is_finite():
        raise InvalidAmountError(f"Invalid amount: {raw_amount!r}")
    if value < 0:
        raise InvalidAmountError(f"Amount must be non-negative, got {raw_amount!r}")

    sign, digits, exponent = value.as_tuple()
    coefficient = int("".join(str(d) for d in digits)) if digits else 0
    shift = exponent + decimals
    if shift >= 0:
        return coefficient * 10 ** shift

    divisor = 10 ** -shift
    if coefficient % divisor:
        raise InvalidAmountError(
            f"Amount {raw_amount!r} has more than {decimals} fractional digits"
        )
    return coefficient // divisor


def format_units(amount: int, decimals: int) -> str:
    """Render base units as a plain decimal string without trailing zeros."""
    with localcontext() as ctx:
        ctx.prec = 100
        value = Decimal(amount).scaleb(-decimals).normalize()
    return f"{value:f}"
