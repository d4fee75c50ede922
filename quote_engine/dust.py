"""
Dust Validator - rejects trades that would leave an unusable sliver of a position.

A per-share position of 1..49 units cannot be traded out of economically, so
any trade whose resulting position lands in that range is refused. Exactly
zero (a full exit) and anything at or above the threshold are fine.
"""

from collections import OrderedDict
from typing import Dict, Iterable, List, Optional

from helpers.unified_logger import get_core_logger
from quote_engine.amounts import parse_units
from quote_engine.constants import DUST_THRESHOLD
from quote_engine.errors import AmountExceedsAvailable, DustPositionError, InvalidQuoteRequestError
from quote_engine.models import BasketSnapshot, QuoteKind, RealLeg
from quote_engine.scaling import sell_units_for_position

logger = get_core_logger("dust_validator")


def is_dust(units: int) -> bool:
    return 0 < units < DUST_THRESHOLD


def validate_sell_side(snapshot: BasketSnapshot, token: str, delta: int) -> int:
    """
    Check the position left after selling ``delta`` per-share units of ``token``.

    Returns:
        The remaining per-share units.
    """
    position = snapshot.position_for(token)
    current = position.unit if position is not None else 0
    remaining = current - delta
    if is_dust(remaining):
        raise DustPositionError(DustPositionError.SELL, token.lower(), remaining)
    return remaining


def validate_buy_side(snapshot: BasketSnapshot, token: Optional[str], delta: int) -> Optional[int]:
    """
    Check the position after receiving ``delta`` per-share units of ``token``.

    Skipped (returns ``None``) when no buy token is supplied.
    """
    if not token:
        return None
    position = snapshot.position_for(token)
    current = position.unit if position is not None else 0
    resulting = current + delta
    if is_dust(resulting):
        raise DustPositionError(DustPositionError.BUY, token.lower(), resulting)
    return resulting


def validate_quote_units(
    snapshot: BasketSnapshot,
    from_token: str,
    from_units: int,
    to_token: Optional[str],
    to_units: int,
) -> None:
    """Run both sides of the dust check for a single quoted trade leg."""
    validate_sell_side(snapshot, from_token, from_units)
    validate_buy_side(snapshot, to_token, to_units)


def _sell_amount(leg: RealLeg, kind: QuoteKind) -> int:
    request = leg.request
    if kind is QuoteKind.SWAP:
        return parse_units(request.raw_amount, 0)
    if request.from_decimals is None:
        raise InvalidQuoteRequestError("Trade quotes require from_decimals")
    return parse_units(request.raw_amount, request.from_decimals)


def summed_sell_amounts(legs: Iterable, kind: QuoteKind) -> Dict[str, List[int]]:
    """Group the notional sell amounts of real legs by lower-cased sell token, in leg order."""
    grouped: "OrderedDict[str, List[int]]" = OrderedDict()
    for leg in legs:
        if not isinstance(leg, RealLeg) or leg.request.use_buy_amount:
            continue
        grouped.setdefault(leg.request.from_token.lower(), []).append(_sell_amount(leg, kind))
    return grouped


def validate_batch_dust(snapshot: BasketSnapshot, legs: Iterable, kind: QuoteKind = QuoteKind.TRADE) -> None:
    """
    Batch-wide pre-check for tokens sold by more than one leg.

    The summed notional is converted to per-share units and checked against the
    current position. Tokens sold once are left to that leg's own validation,
    which may legitimately request the exact implied maximum.

    Raises:
        AmountExceedsAvailable: If the legs together sell more than the basket holds.
        DustPositionError: If the legs together would leave a dust position.
    """
    for token, amounts in summed_sell_amounts(legs, kind).items():
        if len(amounts) < 2:
            continue
        position = snapshot.position_for(token)
        if position is None:
            # Not a basket component (e.g. a funding token), nothing to protect
            continue

        total = sum(amounts)
        units = sell_units_for_position(position, snapshot.total_supply, total)
        if units > position.unit:
            raise AmountExceedsAvailable(token, units, position.unit)

        remaining = validate_sell_side(snapshot, token, units)
        logger.debug(
            f"Batch sell of {token} across {len(amounts)} legs: "
            f"{units} units, {remaining} remaining"
        )
