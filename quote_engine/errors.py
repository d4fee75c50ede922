"""Typed errors raised by the quote engine and its clients."""

from typing import Iterable, Optional


class QuoteError(Exception):
    """Base class for all quote engine errors."""


class UnsupportedChainError(QuoteError):
    """Raised before any I/O when the target network is not supported."""

    def __init__(self, chain_id: int, supported: Iterable[int]):
        self.chain_id = chain_id
        self.supported = tuple(sorted(supported))
        super().__init__(
            f"Unsupported chainId: {chain_id}. Must be one of {list(self.supported)}"
        )


class InvalidAmountError(QuoteError, ValueError):
    """Raised when a raw amount cannot be expressed in token base units."""


class InvalidQuoteRequestError(QuoteError, ValueError):
    """Raised when a quote request is missing fields or combines incompatible options."""


class InvalidSnapshotError(QuoteError, ValueError):
    """Raised when a basket snapshot cannot be used for scaling (e.g. zero supply)."""


class UnknownComponentError(QuoteError):
    """Raised when the token to sell is not a component of the basket."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f"Invalid fromToken input: {token} is not a basket component")


class AmountExceedsAvailable(QuoteError):
    """Raised when a sell amount is larger than the basket's implied holding."""

    def __init__(self, token: str, requested: int, available: int):
        self.token = token
        self.requested = requested
        self.available = available
        super().__init__(
            f"Amount is greater than quantity of component in basket: "
            f"{token} requested={requested} available={available}"
        )


class DustPositionError(QuoteError):
    """Raised when a trade would leave a non-zero position below the dust threshold."""

    SELL = "sell"
    BUY = "buy"

    def __init__(self, side: str, token: str, resulting_units: int):
        self.side = side
        self.token = token
        self.resulting_units = resulting_units
        if side == self.SELL:
            detail = "Remaining units too small, incorrectly attempting max"
        else:
            detail = "Receive units too small"
        super().__init__(f"{detail} ({side} side, {token}: {resulting_units} units)")


class QuoteProviderError(QuoteError):
    """Raised when the swap aggregator call fails or returns a malformed payload."""

    def __init__(self, message: str, status: Optional[int] = None):
        self.status = status
        super().__init__(f"ZeroEx quote request failed: {message}")


class GasEstimationError(QuoteError):
    """Raised when the on-chain gas simulation for a trade reverts or errors."""

    def __init__(self, message: str):
        super().__init__(f"Unable to fetch gas cost estimate for trade: {message}")


class MarketDataError(QuoteError):
    """Raised when a display-only market data service (gas price) fails."""
