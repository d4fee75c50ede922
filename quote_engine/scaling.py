"""
Scaling Engine - converts between notional token amounts and per-share units.

The trade module multiplies per-share units back up by ``total_supply / SCALE``
at execution time, so the rounding direction of every conversion matters:

- Sell side rounds UP. Rounding a sell quantity down could leave the trade
  short of the notional amount the aggregator quoted calldata for.
- Buy side rounds DOWN. The min-receive quantity must never promise more than
  will actually arrive.

Everything here is pure integer math on Python ints, which are arbitrary
precision. Percentages are the only Decimal inputs and they are floored to an
integer per-mille tolerance before touching token amounts.

Example:
    from_units = sell_units(499999999999793729, total_supply)
    to_units = buy_units(41312691160507030, total_supply, Decimal("2"), Decimal("1"))
"""

from decimal import Decimal, ROUND_FLOOR

from quote_engine.constants import SCALE
from quote_engine.errors import (
    AmountExceedsAvailable,
    InvalidQuoteRequestError,
    InvalidSnapshotError,
    UnknownComponentError,
)
from quote_engine.models import BasketSnapshot, Position

PERCENT_MULTIPLIER = 1000


def _require_supply(total_supply: int) -> None:
    if total_supply <= 0:
        raise InvalidSnapshotError(f"Basket total supply must be positive, got {total_supply}")


def ceil_div(numerator: int, denominator: int) -> int:
    """Integer ceiling division for a non-negative numerator and positive denominator."""
    if denominator <= 0:
        raise ZeroDivisionError("denominator must be positive")
    if numerator < 0:
        raise ValueError("numerator must be non-negative")
    return (numerator + denominator - 1) // denominator


def sell_units(total_amount: int, total_supply: int) -> int:
    """Per-share sell quantity for ``total_amount``: ``ceil(amount * SCALE / supply)``."""
    _require_supply(total_supply)
    return ceil_div(total_amount * SCALE, total_supply)


def tolerance_milli(slippage_percent: Decimal, fee_percent: Decimal) -> int:
    """
    Per-mille share of the quoted buy amount that is promised as min-receive.

    ``floor(1000 * (100 - (slippage + fee)) / 100)``
    """
    haircut = slippage_percent + fee_percent
    if haircut < 0 or haircut >= 100:
        raise InvalidQuoteRequestError(
            f"Slippage plus fee must be within [0, 100), got {haircut}"
        )
    tolerance = Decimal(PERCENT_MULTIPLIER) * (Decimal(100) - haircut) / Decimal(100)
    return int(tolerance.to_integral_value(rounding=ROUND_FLOOR))


def buy_units(
    total_amount: int,
    total_supply: int,
    slippage_percent: Decimal,
    fee_percent: Decimal,
) -> int:
    """Per-share min-receive quantity after the slippage and fee haircut, floored."""
    _require_supply(total_supply)
    haircut_amount = total_amount * tolerance_milli(slippage_percent, fee_percent) // PERCENT_MULTIPLIER
    return haircut_amount * SCALE // total_supply


def implied_max_notional(unit: int, total_supply: int) -> int:
    """Total amount of a component held by the basket: ``floor(unit * supply / SCALE)``."""
    _require_supply(total_supply)
    return unit * total_supply // SCALE


def sell_units_for_position(position: Position, total_supply: int, total_amount: int) -> int:
    """
    Per-share sell quantity for ``total_amount`` of ``position``.

    Selling exactly the implied maximum returns ``position.unit`` untouched so a
    full exit never leaves rounding residue behind.
    """
    if total_amount == implied_max_notional(position.unit, total_supply):
        return position.unit
    return sell_units(total_amount, total_supply)


def calculate_from_token_amount(snapshot: BasketSnapshot, from_token: str, amount: int) -> int:
    """
    Notional sell amount to request from the aggregator.

    The requested ``amount`` is truncated to the nearest value that is exactly
    representable as a per-share unit, unless it is the implied maximum which is
    returned verbatim.

    Raises:
        UnknownComponentError: If ``from_token`` is not in the basket.
        AmountExceedsAvailable: If ``amount`` is above the implied maximum.
    """
    position = snapshot.position_for(from_token)
    if position is None:
        raise UnknownComponentError(from_token)

    total_supply = snapshot.total_supply
    implied_max = implied_max_notional(position.unit, total_supply)

    if amount > implied_max:
        raise AmountExceedsAvailable(from_token, amount, implied_max)
    if amount == implied_max:
        return implied_max

    per_share = amount * SCALE // total_supply
    return per_share * total_supply // SCALE
