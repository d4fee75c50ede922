"""
Gas price oracle.

Each supported chain has its own public gas station with its own payload:

    1   ethgasstation   {"average": 620, "fast": 700, ...}   (x10 gwei)
    10  etherscan proxy {"result": "0x3b9aca00"}             (wei, hex)
    137 matic station   {"standard": 30, "fast": 35, ...}    (gwei)
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional

import httpx

from helpers.unified_logger import get_client_logger
from networking.http import create_httpx_client
from quote_clients.base import GasPriceOracle, GasSpeed
from quote_engine.chains import ensure_supported_chain
from quote_engine.config import settings
from quote_engine.constants import ETHEREUM_CHAIN_ID, OPTIMISM_CHAIN_ID, POLYGON_CHAIN_ID
from quote_engine.errors import MarketDataError

ETH_GAS_STATION_URL = "https://ethgasstation.info/api/ethgasAPI.json"
OPTIMISM_GAS_URL = "https://api-optimistic.etherscan.io/api?module=proxy&action=eth_gasPrice"
POLYGON_GAS_STATION_URL = "https://gasstation-mainnet.matic.network"

# Matic gas station names the middle tier "standard"
POLYGON_SPEED_KEYS = {
    GasSpeed.AVERAGE: "standard",
    GasSpeed.FAST: "fast",
    GasSpeed.FASTEST: "fastest",
}


def parse_speed(speed: Any) -> GasSpeed:
    try:
        return GasSpeed(speed)
    except ValueError:
        valid = ", ".join(s.value for s in GasSpeed)
        raise ValueError(f"Invalid gas speed {speed!r}. Must be one of: {valid}") from None


class GasOracleService(GasPriceOracle):
    """Fetches current gas prices (gwei) from the per-chain gas stations."""

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
        urls: Optional[Dict[int, str]] = None,
    ):
        self.transport = transport
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self.urls = {
            ETHEREUM_CHAIN_ID: ETH_GAS_STATION_URL,
            OPTIMISM_CHAIN_ID: OPTIMISM_GAS_URL,
            POLYGON_CHAIN_ID: POLYGON_GAS_STATION_URL,
            **(urls or {}),
        }
        self._client: Optional[httpx.AsyncClient] = None
        self.logger = get_client_logger("gas_oracle")

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = create_httpx_client(timeout=self.timeout, transport=self.transport)
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def _get_json(self, url: str) -> Dict[str, Any]:
        try:
            response = await self._get_client().get(url)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            self.logger.error(f"Gas price request failed for {url}: {exc}")
            raise MarketDataError(f"Gas price request failed: {exc}") from exc
        except ValueError as exc:
            raise MarketDataError(f"Gas price response is not JSON: {exc}") from exc

        if not isinstance(payload, dict):
            raise MarketDataError(f"Unexpected gas price payload: {payload!r}")
        return payload

    async def fetch_gas_price(self, chain_id: int, speed: GasSpeed = GasSpeed.FAST) -> Decimal:
        """
        Return the gas price in gwei for ``speed``.

        Raises:
            UnsupportedChainError: For networks without a gas station
            ValueError: If ``speed`` is not average, fast or fastest
            MarketDataError: On HTTP failure or an unexpected payload
        """
        ensure_supported_chain(chain_id)
        speed = parse_speed(speed)
        payload = await self._get_json(self.urls[chain_id])

        try:
            if chain_id == ETHEREUM_CHAIN_ID:
                price = Decimal(str(payload[speed.value])) / 10
            elif chain_id == OPTIMISM_CHAIN_ID:
                # Single price regardless of speed
                price = Decimal(int(str(payload["result"]), 0)) / Decimal(10) ** 9
            else:
                price = Decimal(str(payload[POLYGON_SPEED_KEYS[speed]]))
        except (KeyError, ValueError, ArithmeticError) as exc:
            raise MarketDataError(f"Unexpected gas price payload for chain {chain_id}: {payload!r}") from exc

        self.logger.debug(f"Gas price chain={chain_id} speed={speed.value}: {price} gwei")
        return price
