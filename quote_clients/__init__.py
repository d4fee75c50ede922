"""
External collaborators of the quote engine.

Interfaces for on-chain reads plus HTTP clients for the swap aggregator and
display-only market data.
"""

from .base import (
    BasketReader,
    GasPriceOracle,
    GasSpeed,
    QuoteProvider,
    TradeGasEstimator,
    UsdPriceFeed,
)
from .coingecko import CoinGeckoDataService
from .gas_oracle import GasOracleService
from .zeroex import ZeroExQuoteProvider

__all__ = [
    "BasketReader",
    "CoinGeckoDataService",
    "GasOracleService",
    "GasPriceOracle",
    "GasSpeed",
    "QuoteProvider",
    "TradeGasEstimator",
    "UsdPriceFeed",
    "ZeroExQuoteProvider",
]
