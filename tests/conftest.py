"""Pytest configuration and shared fakes for quote engine tests."""

import sys
from decimal import Decimal
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

pytest_plugins = ["pytest_asyncio"]

from quote_clients.base import (  # noqa: E402
    BasketReader,
    GasPriceOracle,
    GasSpeed,
    QuoteProvider,
    TradeGasEstimator,
    UsdPriceFeed,
)
from quote_engine.models import (  # noqa: E402
    BasketSnapshot,
    ExternalQuote,
    ExternalQuoteQuery,
    Position,
)

# Mainnet DeFi Pulse Index snapshot used across the orchestrator tests
DPI_ADDRESS = "0x1494ca1f11d487c2bbe4543e90080aeba4ba3c2b"
DPI_MANAGER = "0x0dea6d942a2d8f594844f973366859616dd5ea50"
DPI_TOTAL_SUPPLY = 443707302040744963987707
FROM_TOKEN = "0x9f8f72aa9304c8b593d555f12ef6589cc3a579a2"
TO_TOKEN = "0x0bc529c00c6401aef6d220be8c6ea1667f6ad93e"
FROM_TOKEN_UNIT = 15004144166682987
TO_TOKEN_UNIT = 2000000000000000
WETH = "0xc02aaa39b223fe8d0a0e5c4f27ead9083c756cc2"


def build_dpi_snapshot(**overrides) -> BasketSnapshot:
    values = dict(
        manager=DPI_MANAGER,
        positions=(
            Position(component=FROM_TOKEN, unit=FROM_TOKEN_UNIT),
            Position(component=TO_TOKEN, unit=TO_TOKEN_UNIT),
        ),
        total_supply=DPI_TOTAL_SUPPLY,
    )
    values.update(overrides)
    return BasketSnapshot(**values)


class FakeBasketReader(BasketReader):
    """Serves a fixed snapshot and records every read."""

    def __init__(self, snapshot: Optional[BasketSnapshot] = None):
        self.snapshot = snapshot or build_dpi_snapshot()
        self.snapshot_calls: List[tuple] = []
        self.manager_calls: List[str] = []

    async def fetch_basket_snapshot(self, basket_address: str, components_to_sync: Sequence[str]) -> BasketSnapshot:
        self.snapshot_calls.append((basket_address, list(components_to_sync)))
        return self.snapshot

    async def fetch_manager_address(self, basket_address: str) -> str:
        self.manager_calls.append(basket_address)
        return self.snapshot.manager


class FakeGasEstimator(TradeGasEstimator):
    def __init__(self, gas: int = 496000, error: Optional[Exception] = None):
        self.gas = gas
        self.error = error
        self.calls: List[dict] = []

    async def estimate_gas_for_trade(self, **kwargs) -> int:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.gas


class FakeQuoteProvider(QuoteProvider):
    """
    Echoes the requested amount as the sell amount unless told otherwise.
    """

    def __init__(
        self,
        buy_amount: int = 41312691160507030,
        sell_amount: Optional[int] = None,
        error: Optional[Exception] = None,
    ):
        self.buy_amount = buy_amount
        self.sell_amount = sell_amount
        self.error = error
        self.calls: List[ExternalQuoteQuery] = []
        self.closed = False

    async def fetch_quote(self, chain_id: int, query: ExternalQuoteQuery) -> ExternalQuote:
        self.calls.append(query)
        if self.error is not None:
            raise self.error
        sell_amount = self.sell_amount if self.sell_amount is not None else query.amount
        return ExternalQuote(
            price=Decimal("0.0826"),
            guaranteed_price=Decimal("0.0809"),
            sell_amount=sell_amount,
            buy_amount=self.buy_amount,
            calldata="0x415565b0" + FROM_TOKEN[2:],
            gas_estimate=310000,
            raw={"sellAmount": str(sell_amount), "buyAmount": str(self.buy_amount)},
        )

    async def close(self) -> None:
        self.closed = True


class FakeGasOracle(GasPriceOracle):
    def __init__(self, price: Decimal = Decimal("61")):
        self.price = price
        self.calls: List[tuple] = []
        self.closed = False

    async def fetch_gas_price(self, chain_id: int, speed: GasSpeed = GasSpeed.FAST) -> Decimal:
        self.calls.append((chain_id, speed))
        return self.price

    async def close(self) -> None:
        self.closed = True


class FakePriceFeed(UsdPriceFeed):
    def __init__(self, prices: Optional[Dict[str, Decimal]] = None):
        self.prices = prices if prices is not None else {
            WETH: Decimal("2493.12"),
            FROM_TOKEN: Decimal("3194.41"),
            TO_TOKEN: Decimal("39087"),
        }
        self.calls: List[tuple] = []
        self.closed = False

    async def fetch_usd_prices(self, chain_id: int, addresses: Sequence[str]) -> Dict[str, Decimal]:
        self.calls.append((chain_id, list(addresses)))
        return {address: self.prices.get(address, Decimal(0)) for address in addresses}

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def dpi_snapshot() -> BasketSnapshot:
    return build_dpi_snapshot()


@pytest.fixture
def basket_reader() -> FakeBasketReader:
    return FakeBasketReader()


@pytest.fixture
def gas_estimator() -> FakeGasEstimator:
    return FakeGasEstimator()


@pytest.fixture
def quote_provider() -> FakeQuoteProvider:
    return FakeQuoteProvider()


@pytest.fixture
def gas_oracle() -> FakeGasOracle:
    return FakeGasOracle()


@pytest.fixture
def price_feed() -> FakePriceFeed:
    return FakePriceFeed()
