"""
0x swap API client.

Fetches executable swap quotes (calldata plus sell/buy totals) for a token
pair. Requests are not retried; failures surface as QuoteProviderError.
"""

from __future__ import annotations

import asyncio
from decimal import Decimal
from typing import Any, Dict, Optional

import aiohttp
from pydantic import BaseModel, Field, ValidationError

from helpers.unified_logger import get_client_logger
from quote_clients.base import QuoteProvider
from quote_engine.chains import ensure_supported_chain
from quote_engine.config import settings
from quote_engine.errors import QuoteProviderError
from quote_engine.models import ExternalQuote, ExternalQuoteQuery

SWAP_QUOTE_ROUTE = "/swap/v1/quote"


class ZeroExQuoteResponse(BaseModel):
    """Subset of the 0x ``/swap/v1/quote`` payload the engine relies on"""
    price: Decimal
    guaranteed_price: Decimal = Field(alias="guaranteedPrice")
    data: str
    buy_amount: int = Field(alias="buyAmount", ge=0)
    sell_amount: int = Field(alias="sellAmount", ge=0)
    gas: int = Field(ge=0)

    class Config:
        populate_by_name = True
        extra = "ignore"


def _format_param(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return f"{value.normalize():f}"
    return str(value)


def build_query_params(query: ExternalQuoteQuery) -> Dict[str, str]:
    """
    Build 0x query parameters.

    Exactly one of ``sellAmount``/``buyAmount`` is sent depending on
    ``query.use_buy_amount``. Percentages are fractions (0.02 == 2%).
    """
    params: Dict[str, Any] = {
        "sellToken": query.sell_token,
        "buyToken": query.buy_token,
        "slippagePercentage": query.slippage_fraction,
        "takerAddress": query.taker_address,
        "excludedSources": ",".join(query.excluded_sources),
        "skipValidation": True,
        "feeRecipient": query.fee_recipient,
        "buyTokenPercentageFee": query.fee_fraction,
        "affiliateAddress": query.affiliate_address,
        "intentOnFilling": query.is_firm,
    }
    if query.use_buy_amount:
        params["buyAmount"] = str(query.amount)
    else:
        params["sellAmount"] = str(query.amount)
    return {key: _format_param(value) for key, value in params.items()}


class ZeroExQuoteProvider(QuoteProvider):
    """
    Quote provider backed by the 0x swap API.

    Usage:
        provider = ZeroExQuoteProvider(api_key="...")
        quote = await provider.fetch_quote(1, query)
        await provider.close()
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        api_urls: Optional[Dict[int, str]] = None,
        timeout: Optional[float] = None,
    ):
        """
        Args:
            api_key: Sent as ``0x-api-key`` only when set (gated hosts)
            api_urls: Host override per chain id
            timeout: Request timeout in seconds
        """
        self.api_key = api_key if api_key is not None else settings.zeroex_api_key
        self.api_urls = {**settings.zeroex_urls(), **(api_urls or {})}
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self._session: Optional[aiohttp.ClientSession] = None
        self.logger = get_client_logger("zeroex")

    def host_for_chain(self, chain_id: int) -> str:
        ensure_supported_chain(chain_id)
        return self.api_urls[chain_id].rstrip("/")

    def headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.api_key:
            headers["0x-api-key"] = self.api_key
        return headers

    async def get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def close(self) -> None:
        """Close the HTTP session"""
        if self._session and not self._session.closed:
            await self._session.close()
            self.logger.debug("Session closed")

    async def _make_request(self, url: str, params: Dict[str, str]) -> Dict[str, Any]:
        """
        GET ``url`` and return the decoded JSON body.

        Raises:
            QuoteProviderError: On non-200 status, undecodable body, transport
                error or timeout
        """
        session = await self.get_session()
        try:
            async with session.get(url, params=params, headers=self.headers()) as response:
                if response.status != 200:
                    error_text = await response.text()
                    self.logger.error(f"API returned {response.status}: {error_text[:200]}")
                    raise QuoteProviderError(
                        f"API returned {response.status}: {error_text}", status=response.status
                    )
                try:
                    return await response.json()
                except ValueError as exc:
                    # JSONDecodeError and UnicodeDecodeError are both ValueErrors
                    self.logger.error(f"Malformed quote payload from {url}: {exc}")
                    raise QuoteProviderError(f"Malformed quote payload: {exc}") from exc
        except asyncio.TimeoutError as exc:
            self.logger.error(f"Request timeout for {url}")
            raise QuoteProviderError(f"Request timeout for {url}") from exc
        except aiohttp.ClientError as exc:
            self.logger.error(f"Request failed for {url}: {exc}")
            raise QuoteProviderError(str(exc)) from exc

    @staticmethod
    def parse_quote(payload: Any) -> ExternalQuote:
        """Validate a raw 0x payload into an ``ExternalQuote``."""
        if not isinstance(payload, dict):
            raise QuoteProviderError(f"Malformed quote payload: {payload!r}")
        try:
            response = ZeroExQuoteResponse.model_validate(payload)
        except ValidationError as exc:
            raise QuoteProviderError(f"Malformed quote payload: {exc}") from exc

        return ExternalQuote(
            price=response.price,
            guaranteed_price=response.guaranteed_price,
            sell_amount=response.sell_amount,
            buy_amount=response.buy_amount,
            calldata=response.data,
            gas_estimate=response.gas,
            raw=payload,
        )

    async def fetch_quote(self, chain_id: int, query: ExternalQuoteQuery) -> ExternalQuote:
        url = f"{self.host_for_chain(chain_id)}{SWAP_QUOTE_ROUTE}"
        params = build_query_params(query)

        side = "buy" if query.use_buy_amount else "sell"
        self.logger.info(
            f"Requesting quote chain={chain_id} {query.sell_token} -> {query.buy_token} "
            f"{side}Amount={query.amount} firm={query.is_firm}"
        )

        payload = await self._make_request(url, params)
        quote = self.parse_quote(payload)

        self.logger.debug(
            f"Quote received sellAmount={quote.sell_amount} buyAmount={quote.buy_amount} "
            f"gas={quote.gas_estimate}"
        )
        return quote


__all__ = [
    "SWAP_QUOTE_ROUTE",
    "ZeroExQuoteProvider",
    "ZeroExQuoteResponse",
    "build_query_params",
]
