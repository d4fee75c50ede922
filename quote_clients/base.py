"""
Base interfaces for the collaborators the quote engine depends on.

On-chain reads (basket snapshot, gas simulation) are implemented by the
contract wrapper layer of the embedding application; HTTP services ship with
this package (``zeroex``, ``gas_oracle``, ``coingecko``).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from enum import Enum
from typing import Dict, Sequence

from quote_engine.models import BasketSnapshot, ExternalQuote, ExternalQuoteQuery


class GasSpeed(str, Enum):
    """Gas price tiers offered by the gas oracles."""
    AVERAGE = "average"
    FAST = "fast"
    FASTEST = "fastest"


class BasketReader(ABC):
    """Reads basket state from chain."""

    @abstractmethod
    async def fetch_basket_snapshot(
        self,
        basket_address: str,
        components_to_sync: Sequence[str],
    ) -> BasketSnapshot:
        """
        Fetch manager, positions and total supply of a basket.

        Args:
            basket_address: Basket token address
            components_to_sync: Components whose continuously accruing positions
                should be synced before reading

        Returns:
            Point-in-time snapshot. Accruing positions may lag by a block.
        """

    @abstractmethod
    async def fetch_manager_address(self, basket_address: str) -> str:
        """Return the manager address of a basket."""


class TradeGasEstimator(ABC):
    """Simulates a trade module call to estimate its gas."""

    @abstractmethod
    async def estimate_gas_for_trade(
        self,
        basket_address: str,
        adapter_name: str,
        sell_token: str,
        sell_units: int,
        buy_token: str,
        min_buy_units: int,
        calldata: str,
        manager_address: str,
    ) -> int:
        """Return the gas the trade would use. Raises on revert."""


class QuoteProvider(ABC):
    """Swap aggregator returning executable calldata for a token pair."""

    @abstractmethod
    async def fetch_quote(self, chain_id: int, query: ExternalQuoteQuery) -> ExternalQuote:
        """
        Fetch a quote.

        Raises:
            QuoteProviderError: On transport errors, non-200 responses or malformed payloads
        """

    async def close(self) -> None:
        """Release network resources."""


class GasPriceOracle(ABC):
    """Current gas price per chain."""

    @abstractmethod
    async def fetch_gas_price(self, chain_id: int, speed: GasSpeed = GasSpeed.FAST) -> Decimal:
        """Return the gas price in gwei."""

    async def close(self) -> None:
        """Release network resources."""


class UsdPriceFeed(ABC):
    """USD prices of tokens by contract address."""

    @abstractmethod
    async def fetch_usd_prices(self, chain_id: int, addresses: Sequence[str]) -> Dict[str, Decimal]:
        """Return ``{lower-cased address: usd price}`` for every requested address."""

    async def close(self) -> None:
        """Release network resources."""
