"""
Data model for the quote engine.

Snapshots, requests and results are frozen dataclasses: a snapshot is a
point-in-time view of on-chain state and a request is merged with defaults
functionally, so nothing here is ever mutated after construction.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from quote_engine.constants import (
    DEFAULT_EXCLUDED_SOURCES,
    DEFAULT_FEE_RECIPIENT,
    ZERO_CALLDATA,
)
from quote_engine.errors import InvalidAmountError


def to_decimal(value: Any) -> Decimal:
    """Convert int/float/str/Decimal to Decimal via ``str`` so floats keep their printed value."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class PositionState(Enum):
    """Where a component is held: in the basket contract or in an external module."""
    DEFAULT = 0
    EXTERNAL = 1


class QuoteKind(Enum):
    """Which orchestrator entry point a batch fans out to."""
    TRADE = "trade"
    SWAP = "swap"


@dataclass(frozen=True)
class Position:
    """
    One basket component.

    Attributes:
        component: Token address.
        unit: Amount of ``component`` held per 10**18 of basket supply.
        state: Default (held by the basket) or external (held by a module).
        aux_data: Opaque position data.
        module: External module address (zero address for default positions).
    """
    component: str
    unit: int
    state: PositionState = PositionState.DEFAULT
    aux_data: bytes = b""
    module: str = "0x0000000000000000000000000000000000000000"

    def __post_init__(self) -> None:
        if self.unit < 0:
            raise ValueError(f"Position unit must be non-negative, got {self.unit}")


@dataclass(frozen=True)
class BasketSnapshot:
    """Read-only view of a basket fetched for one quote or one batch."""
    manager: str
    positions: Tuple[Position, ...]
    total_supply: int

    def position_for(self, token: str) -> Optional[Position]:
        token = token.lower()
        for position in self.positions:
            if position.component.lower() == token:
                return position
        return None


@dataclass(frozen=True)
class QuoteDefaults:
    """Per-quoter defaults, merged into every request that leaves a field unset."""
    slippage_percent: Decimal = Decimal("2")
    fee_percent: Decimal = Decimal("0")
    fee_recipient: str = DEFAULT_FEE_RECIPIENT
    affiliate_address: str = DEFAULT_FEE_RECIPIENT
    excluded_providers: Tuple[str, ...] = DEFAULT_EXCLUDED_SOURCES
    is_firm_quote: bool = True


@dataclass(frozen=True)
class QuoteRequest:
    """
    A single trade or swap intent.

    ``raw_amount`` is a human decimal string (``"0.5"``) for trade quotes and an
    integer base-unit string for swap quotes. ``use_buy_amount`` switches the
    swap path to quote an exact buy amount of ``to_token``; trade quotes always
    sell ``from_token``. ``from_address`` is the basket.
    """
    chain_id: int
    from_token: str
    to_token: str
    raw_amount: str
    from_address: str
    from_decimals: Optional[int] = None
    to_decimals: Optional[int] = None
    use_buy_amount: bool = False
    slippage_percent: Optional[Decimal] = None
    fee_percent: Optional[Decimal] = None
    fee_recipient: Optional[str] = None
    excluded_providers: Optional[Tuple[str, ...]] = None
    is_firm_quote: Optional[bool] = None
    gas_price: Optional[Decimal] = None

    def with_defaults(self, defaults: QuoteDefaults) -> "QuoteRequest":
        """Return a copy with unset options filled from ``defaults`` and addresses lower-cased."""
        slippage = self.slippage_percent if self.slippage_percent is not None else defaults.slippage_percent
        fee = self.fee_percent if self.fee_percent is not None else defaults.fee_percent
        excluded = self.excluded_providers if self.excluded_providers is not None else defaults.excluded_providers
        return replace(
            self,
            from_token=self.from_token.lower(),
            to_token=self.to_token.lower(),
            from_address=self.from_address.lower(),
            slippage_percent=to_decimal(slippage),
            fee_percent=to_decimal(fee),
            fee_recipient=(self.fee_recipient or defaults.fee_recipient).lower(),
            excluded_providers=tuple(excluded),
            is_firm_quote=defaults.is_firm_quote if self.is_firm_quote is None else self.is_firm_quote,
            gas_price=to_decimal(self.gas_price) if self.gas_price is not None else None,
        )


@dataclass(frozen=True)
class RealLeg:
    """Batch entry that is quoted against the external provider."""
    request: QuoteRequest


@dataclass(frozen=True)
class PassthroughLeg:
    """
    Batch entry kept only for array alignment.

    It is never quoted: the batch echoes ``raw_amount`` (integer base units) on
    both sides with zero calldata.
    """
    raw_amount: str
    from_token: Optional[str] = None
    to_token: Optional[str] = None

    def __post_init__(self) -> None:
        try:
            amount = int(self.raw_amount)
        except (TypeError, ValueError) as exc:
            raise InvalidAmountError(
                f"Passthrough amount must be an integer base-unit string, got {self.raw_amount!r}"
            ) from exc
        if amount < 0:
            raise InvalidAmountError(f"Passthrough amount must be non-negative, got {self.raw_amount!r}")


BatchLeg = Union[RealLeg, PassthroughLeg]


@dataclass(frozen=True)
class ExternalQuoteQuery:
    """Parameters sent to the swap aggregator for one quote."""
    sell_token: str
    buy_token: str
    amount: int
    use_buy_amount: bool
    taker_address: str
    slippage_fraction: Decimal
    fee_fraction: Decimal
    fee_recipient: str
    affiliate_address: str
    excluded_sources: Tuple[str, ...]
    is_firm: bool


@dataclass(frozen=True)
class ExternalQuote:
    """Validated response of the swap aggregator."""
    price: Decimal
    guaranteed_price: Decimal
    sell_amount: int
    buy_amount: int
    calldata: str
    gas_estimate: int
    raw: Dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class QuoteDisplay:
    """Human readable figures for UIs. Never used for on-chain amounts."""
    input_amount_raw: str
    input_amount: str
    quote_amount: str
    from_token_display_amount: str
    to_token_display_amount: str
    from_token_price_usd: str
    to_token_price_usd: str
    gas_costs_usd: str
    gas_costs_chain_currency: str
    fee_percentage: str
    slippage: str


@dataclass(frozen=True)
class QuoteResult:
    """
    Result of a trade, swap or passthrough quote.

    For trade quotes ``from_units``/``to_units`` are per-share units ready to be
    submitted to the trade module (``to_units`` is the min-receive quantity).
    For swap quotes they are the provider's total sell/buy amounts.
    """
    from_units: int
    to_units: int
    calldata: str
    from_address: Optional[str] = None
    from_token: Optional[str] = None
    to_token: Optional[str] = None
    exchange_adapter_name: Optional[str] = None
    gas_estimate: Optional[int] = None
    gas_price: Optional[Decimal] = None
    slippage_percentage: Optional[str] = None
    display: Optional[QuoteDisplay] = None
    raw_quote: Optional[Dict[str, Any]] = field(default=None, compare=False)

    @classmethod
    def passthrough(cls, leg: PassthroughLeg) -> "QuoteResult":
        amount = int(leg.raw_amount)
        return cls(
            from_units=amount,
            to_units=amount,
            calldata=ZERO_CALLDATA,
            from_token=leg.from_token.lower() if leg.from_token else None,
            to_token=leg.to_token.lower() if leg.to_token else None,
        )
