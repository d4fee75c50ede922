"""
CoinGecko market data: USD token prices and per-chain token lists.

Prices are used for display figures only, so a failed price request degrades
to zero prices (shown as $0.00 / N/A) instead of failing the quote.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional, Sequence

import httpx

from helpers.unified_logger import get_client_logger
from networking.http import create_httpx_client
from quote_clients.base import UsdPriceFeed
from quote_engine.chains import ensure_supported_chain
from quote_engine.config import settings
from quote_engine.constants import ETHEREUM_CHAIN_ID, OPTIMISM_CHAIN_ID, POLYGON_CHAIN_ID
from quote_engine.errors import MarketDataError

PRICE_PLATFORMS = {
    ETHEREUM_CHAIN_ID: "ethereum",
    OPTIMISM_CHAIN_ID: "optimistic-ethereum",
    POLYGON_CHAIN_ID: "polygon-pos",
}

TOKEN_LIST_NAMES = {
    ETHEREUM_CHAIN_ID: "uniswap",
    OPTIMISM_CHAIN_ID: "optimistic-ethereum",
    POLYGON_CHAIN_ID: "polygon-pos",
}


class CoinGeckoDataService(UsdPriceFeed):
    """
    Client for the CoinGecko price API and token list host.

    Token lists are cached per chain for the lifetime of the instance.
    """

    def __init__(
        self,
        api_url: Optional[str] = None,
        tokens_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: Optional[float] = None,
    ):
        self.api_url = (api_url or settings.coingecko_api_url).rstrip("/")
        self.tokens_url = (tokens_url or settings.coingecko_tokens_url).rstrip("/")
        self.transport = transport
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self._client: Optional[httpx.AsyncClient] = None
        self._token_lists: Dict[int, List[Dict[str, Any]]] = {}
        self._token_maps: Dict[int, Dict[str, Dict[str, Any]]] = {}
        self.logger = get_client_logger("coingecko")

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = create_httpx_client(timeout=self.timeout, transport=self.transport)
        return self._client

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()

    async def fetch_usd_prices(self, chain_id: int, addresses: Sequence[str]) -> Dict[str, Decimal]:
        """
        Fetch USD prices keyed by lower-cased address.

        Every requested address is present in the result; tokens CoinGecko
        does not know, or every token when the request fails, map to 0.
        """
        ensure_supported_chain(chain_id)
        wanted = list(dict.fromkeys(address.lower() for address in addresses))
        prices = {address: Decimal(0) for address in wanted}
        if not wanted:
            return prices

        url = f"{self.api_url}/simple/token_price/{PRICE_PLATFORMS[chain_id]}"
        params = {"contract_addresses": ",".join(wanted), "vs_currencies": "usd"}
        try:
            response = await self._get_client().get(url, params=params)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            self.logger.warning(f"USD price request failed for chain {chain_id}, using zero prices: {exc}")
            return prices

        if not isinstance(payload, dict):
            self.logger.warning(f"Unexpected price payload for chain {chain_id}: {payload!r}")
            return prices

        for address, entry in payload.items():
            key = address.lower()
            if key not in prices or not isinstance(entry, dict) or entry.get("usd") is None:
                continue
            prices[key] = Decimal(str(entry["usd"]))
        return prices

    async def fetch_token_list(self, chain_id: int) -> List[Dict[str, Any]]:
        """
        Fetch the token list for a chain (cached).

        Raises:
            MarketDataError: If the token list cannot be fetched
        """
        ensure_supported_chain(chain_id)
        if chain_id in self._token_lists:
            return self._token_lists[chain_id]

        url = f"{self.tokens_url}/{TOKEN_LIST_NAMES[chain_id]}/all.json"
        try:
            response = await self._get_client().get(url)
            response.raise_for_status()
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            self.logger.error(f"Token list request failed for chain {chain_id}: {exc}")
            raise MarketDataError(f"Token list request failed: {exc}") from exc

        tokens = payload.get("tokens") if isinstance(payload, dict) else None
        if not isinstance(tokens, list):
            raise MarketDataError(f"Unexpected token list payload for chain {chain_id}")

        self._token_lists[chain_id] = tokens
        self.logger.info(f"Loaded {len(tokens)} tokens for chain {chain_id}")
        return tokens

    async def fetch_token_map(self, chain_id: int) -> Dict[str, Dict[str, Any]]:
        """Token list indexed by lower-cased address."""
        if chain_id not in self._token_maps:
            tokens = await self.fetch_token_list(chain_id)
            self._token_maps[chain_id] = {
                token["address"].lower(): token
                for token in tokens
                if isinstance(token, dict) and token.get("address")
            }
        return self._token_maps[chain_id]
