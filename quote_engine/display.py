"""
Display formatting for trade quotes.

USD values, gas costs and realized slippage shown next to a quote. These are
informational only: prices come from third-party feeds that may be stale or
zero, so nothing here feeds back into on-chain amounts.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Optional

from quote_engine.amounts import format_units
from quote_engine.constants import CHAIN_CURRENCY_ADDRESSES, CHAIN_CURRENCY_SYMBOLS, POLYGON_CHAIN_ID

GWEI = Decimal(10) ** 9
NOT_AVAILABLE = "N/A"


def normalize_token_amount(amount: int, decimals: int) -> Decimal:
    return Decimal(format_units(amount, decimals))


def format_percentage(value: Decimal) -> str:
    """``Decimal("2")`` -> ``"2.00%"``."""
    rounded = Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{rounded:f}%"


def format_usd(value: Decimal, significant_digits: Optional[int] = None) -> str:
    """
    Format a dollar amount: two decimals by default, or at most
    ``significant_digits`` significant digits (for chains with very cheap gas).
    """
    sign = "-" if value < 0 else ""
    value = abs(Decimal(value))

    if significant_digits is None:
        rounded = value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
        return f"{sign}${rounded:,.2f}"

    if value == 0:
        return f"{sign}$0"
    exponent = value.adjusted() - significant_digits + 1
    rounded = value.quantize(Decimal(1).scaleb(exponent), rounding=ROUND_HALF_UP).normalize()
    return f"{sign}${rounded:,f}"


def token_price_usd(amount: int, decimals: int, usd_price: Decimal) -> str:
    return format_usd(normalize_token_amount(amount, decimals) * usd_price)


def total_gas_cost(gas_price_gwei: Decimal, gas: int) -> Decimal:
    """Gas cost in the chain's native currency."""
    return gas_price_gwei / GWEI * gas


def gas_costs_usd(
    gas_price_gwei: Decimal,
    gas: int,
    coin_prices: Dict[str, Decimal],
    chain_id: int,
) -> str:
    native_price = coin_prices.get(CHAIN_CURRENCY_ADDRESSES[chain_id], Decimal(0))
    cost = total_gas_cost(gas_price_gwei, gas) * native_price
    # Polygon gas is cheap enough that two decimals would show $0.00
    significant = 4 if chain_id == POLYGON_CHAIN_ID else None
    return format_usd(cost, significant)


def gas_costs_chain_currency(gas_price_gwei: Decimal, gas: int, chain_id: int) -> str:
    cost = total_gas_cost(gas_price_gwei, gas).quantize(Decimal("0.0000001"), rounding=ROUND_HALF_UP)
    return f"{cost:f} {CHAIN_CURRENCY_SYMBOLS.get(chain_id, '')}".rstrip()


def realized_slippage(
    from_amount: int,
    to_amount: int,
    from_decimals: int,
    to_decimals: int,
    from_usd_price: Decimal,
    to_usd_price: Decimal,
) -> str:
    """
    USD value lost between what is sold and what is bought, as a percentage of
    the sold value. Negative means the trade gains value at feed prices.
    """
    from_total = normalize_token_amount(from_amount, from_decimals) * from_usd_price
    to_total = normalize_token_amount(to_amount, to_decimals) * to_usd_price
    if from_total == 0:
        return NOT_AVAILABLE
    return format_percentage((from_total - to_total) / from_total * 100)
