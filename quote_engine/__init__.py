"""
Basket trade quote engine.

Core value types, errors and the integer scaling math live here. The
network-facing entry points are imported from their modules:

    from quote_engine.orchestrator import TradeQuoter
    from quote_engine.batch import BatchQuoter
"""

from .constants import DUST_THRESHOLD, SCALE, SUPPORTED_CHAIN_IDS
from .errors import (
    AmountExceedsAvailable,
    DustPositionError,
    GasEstimationError,
    InvalidAmountError,
    InvalidQuoteRequestError,
    InvalidSnapshotError,
    MarketDataError,
    QuoteError,
    QuoteProviderError,
    UnknownComponentError,
    UnsupportedChainError,
)
from .models import (
    BasketSnapshot,
    BatchLeg,
    PassthroughLeg,
    Position,
    PositionState,
    QuoteDefaults,
    QuoteDisplay,
    QuoteKind,
    QuoteRequest,
    QuoteResult,
    RealLeg,
)

__all__ = [
    "DUST_THRESHOLD",
    "SCALE",
    "SUPPORTED_CHAIN_IDS",
    "AmountExceedsAvailable",
    "DustPositionError",
    "GasEstimationError",
    "InvalidAmountError",
    "InvalidQuoteRequestError",
    "InvalidSnapshotError",
    "MarketDataError",
    "QuoteError",
    "QuoteProviderError",
    "UnknownComponentError",
    "UnsupportedChainError",
    "BasketSnapshot",
    "BatchLeg",
    "PassthroughLeg",
    "Position",
    "PositionState",
    "QuoteDefaults",
    "QuoteDisplay",
    "QuoteKind",
    "QuoteRequest",
    "QuoteResult",
    "RealLeg",
]
