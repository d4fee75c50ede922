"""
Trade Quoter - turns a trade intent into on-chain ready per-share quantities.

A trade quote sells an exact human amount of a basket component and returns:
    - from_units: per-share units the trade module will sell (rounded up)
    - to_units:   minimum per-share units to receive (haircut, rounded down)
    - calldata:   the aggregator's swap calldata for the scaled notional
plus gas and USD figures for display.

A swap quote is a thin pass-through to the aggregator for an arbitrary pair
and does no scaling.
"""

import asyncio
from decimal import Decimal
from typing import Dict, Optional, Tuple

from helpers.unified_logger import get_core_logger
from quote_clients.base import (
    BasketReader,
    GasPriceOracle,
    GasSpeed,
    QuoteProvider,
    TradeGasEstimator,
    UsdPriceFeed,
)
from quote_clients.coingecko import CoinGeckoDataService
from quote_clients.gas_oracle import GasOracleService
from quote_clients.zeroex import ZeroExQuoteProvider
from quote_engine import display
from quote_engine.amounts import format_units, parse_units
from quote_engine.chains import ensure_supported_chain
from quote_engine.config import Settings, settings as default_settings
from quote_engine.constants import CHAIN_CURRENCY_ADDRESSES, ZERO_EX_ADAPTER_NAME
from quote_engine.dust import validate_quote_units
from quote_engine.errors import (
    AmountExceedsAvailable,
    GasEstimationError,
    InvalidQuoteRequestError,
    QuoteError,
)
from quote_engine.models import (
    BasketSnapshot,
    ExternalQuote,
    ExternalQuoteQuery,
    QuoteDefaults,
    QuoteDisplay,
    QuoteRequest,
    QuoteResult,
)
from quote_engine.scaling import (
    buy_units,
    calculate_from_token_amount,
    sell_units_for_position,
    tolerance_milli,
)

HUNDRED = Decimal(100)


class TradeQuoter:
    """
    Quote orchestrator for basket trades and plain swaps.

    On-chain collaborators (basket reads, gas simulation) must be supplied by
    the embedding application. HTTP collaborators default to the bundled 0x,
    gas station and CoinGecko clients.

    Usage:
        async with TradeQuoter(reader, estimator) as quoter:
            result = await quoter.quote_trade(request)
    """

    def __init__(
        self,
        basket_reader: BasketReader,
        gas_estimator: TradeGasEstimator,
        *,
        quote_provider: Optional[QuoteProvider] = None,
        gas_oracle: Optional[GasPriceOracle] = None,
        price_feed: Optional[UsdPriceFeed] = None,
        defaults: Optional[QuoteDefaults] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or default_settings
        self.basket_reader = basket_reader
        self.gas_estimator = gas_estimator
        self.quote_provider = quote_provider or ZeroExQuoteProvider(
            api_key=self.settings.zeroex_api_key,
            api_urls=self.settings.zeroex_urls(),
            timeout=self.settings.request_timeout_seconds,
        )
        self.gas_oracle = gas_oracle or GasOracleService(timeout=self.settings.request_timeout_seconds)
        self.price_feed = price_feed or CoinGeckoDataService(
            api_url=self.settings.coingecko_api_url,
            tokens_url=self.settings.coingecko_tokens_url,
            timeout=self.settings.request_timeout_seconds,
        )
        self.defaults = defaults or QuoteDefaults()
        self.logger = get_core_logger("trade_quoter")

    async def __aenter__(self) -> "TradeQuoter":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        """Close HTTP sessions of every collaborator."""
        await asyncio.gather(
            self.quote_provider.close(),
            self.gas_oracle.close(),
            self.price_feed.close(),
        )

    # ------------------------------------------------------------------ #
    # Trade quotes
    # ------------------------------------------------------------------ #

    def prepare_trade_request(self, request: QuoteRequest) -> QuoteRequest:
        """
        Merge defaults into ``request`` and run the checks that need no I/O.

        Raises:
            UnsupportedChainError, InvalidQuoteRequestError
        """
        ensure_supported_chain(request.chain_id)
        request = request.with_defaults(self.defaults)

        if request.from_decimals is None or request.to_decimals is None:
            raise InvalidQuoteRequestError("Trade quotes require from_decimals and to_decimals")
        if request.use_buy_amount:
            raise InvalidQuoteRequestError(
                "Trade quotes always sell an exact amount of from_token; use quote_swap for buy amounts"
            )
        # Fail on an impossible haircut before touching the network
        tolerance_milli(request.slippage_percent, request.fee_percent)
        return request

    def _build_query(
        self,
        request: QuoteRequest,
        amount: int,
        taker_address: str,
        use_buy_amount: bool = False,
    ) -> ExternalQuoteQuery:
        return ExternalQuoteQuery(
            sell_token=request.from_token,
            buy_token=request.to_token,
            amount=amount,
            use_buy_amount=use_buy_amount,
            taker_address=taker_address,
            slippage_fraction=request.slippage_percent / HUNDRED,
            fee_fraction=request.fee_percent / HUNDRED,
            fee_recipient=request.fee_recipient,
            affiliate_address=self.defaults.affiliate_address.lower(),
            excluded_sources=request.excluded_providers,
            is_firm=request.is_firm_quote,
        )

    async def _estimate_gas(
        self,
        request: QuoteRequest,
        snapshot: BasketSnapshot,
        from_units: int,
        to_units: int,
        calldata: str,
    ) -> int:
        try:
            gas = await self.gas_estimator.estimate_gas_for_trade(
                basket_address=request.from_address,
                adapter_name=ZERO_EX_ADAPTER_NAME,
                sell_token=request.from_token,
                sell_units=from_units,
                buy_token=request.to_token,
                min_buy_units=to_units,
                calldata=calldata,
                manager_address=snapshot.manager,
            )
        except QuoteError:
            raise
        except Exception as e:
            self.logger.error(f"Gas estimation failed for {request.from_address}: {e}")
            raise GasEstimationError(str(e)) from e

        return int(gas) * (100 + self.settings.trade_gas_buffer_percent) // 100

    async def _market_data(self, request: QuoteRequest) -> Tuple[Dict[str, Decimal], Decimal]:
        chain_currency = CHAIN_CURRENCY_ADDRESSES[request.chain_id]
        prices_task = self.price_feed.fetch_usd_prices(
            request.chain_id, [chain_currency, request.from_token, request.to_token]
        )
        if request.gas_price is not None:
            return await prices_task, request.gas_price

        prices, gas_price = await asyncio.gather(
            prices_task,
            self.gas_oracle.fetch_gas_price(request.chain_id, GasSpeed.FAST),
        )
        return prices, gas_price

    @staticmethod
    def _build_display(
        request: QuoteRequest,
        amount: int,
        requested_notional: int,
        quote: ExternalQuote,
        gas: int,
        gas_price: Decimal,
        prices: Dict[str, Decimal],
    ) -> QuoteDisplay:
        from_price = prices.get(request.from_token, Decimal(0))
        to_price = prices.get(request.to_token, Decimal(0))
        return QuoteDisplay(
            input_amount_raw=request.raw_amount,
            input_amount=str(amount),
            quote_amount=str(requested_notional),
            from_token_display_amount=format_units(quote.sell_amount, request.from_decimals),
            to_token_display_amount=format_units(quote.buy_amount, request.to_decimals),
            from_token_price_usd=display.token_price_usd(quote.sell_amount, request.from_decimals, from_price),
            to_token_price_usd=display.token_price_usd(quote.buy_amount, request.to_decimals, to_price),
            gas_costs_usd=display.gas_costs_usd(gas_price, gas, prices, request.chain_id),
            gas_costs_chain_currency=display.gas_costs_chain_currency(gas_price, gas, request.chain_id),
            fee_percentage=display.format_percentage(request.fee_percent),
            slippage=display.realized_slippage(
                quote.sell_amount,
                quote.buy_amount,
                request.from_decimals,
                request.to_decimals,
                from_price,
                to_price,
            ),
        )

    async def quote_trade(
        self,
        request: QuoteRequest,
        snapshot: Optional[BasketSnapshot] = None,
    ) -> QuoteResult:
        """
        Quote selling ``request.raw_amount`` of ``from_token`` for ``to_token``.

        Args:
            request: Trade intent. ``from_address`` is the basket.
            snapshot: Basket state already fetched by the caller (batches read
                it once). Fetched fresh when omitted.

        Raises:
            UnsupportedChainError: Before any I/O for unknown networks
            InvalidQuoteRequestError / InvalidAmountError: Malformed request
            UnknownComponentError: from_token is not held by the basket
            AmountExceedsAvailable: Selling more than the basket holds
            DustPositionError: Either side would be left as dust
            QuoteProviderError: Aggregator failure
            GasEstimationError: Trade simulation failure
        """
        request = self.prepare_trade_request(request)
        amount = parse_units(request.raw_amount, request.from_decimals)
        log = self.logger.with_context(chain=request.chain_id, basket=request.from_address)

        if snapshot is None:
            snapshot = await self.basket_reader.fetch_basket_snapshot(
                request.from_address, [request.from_token, request.to_token]
            )

        requested_notional = calculate_from_token_amount(snapshot, request.from_token, amount)
        query = self._build_query(request, requested_notional, snapshot.manager)
        quote = await self.quote_provider.fetch_quote(request.chain_id, query)

        position = snapshot.position_for(request.from_token)
        from_units = sell_units_for_position(position, snapshot.total_supply, quote.sell_amount)
        if from_units > position.unit:
            raise AmountExceedsAvailable(request.from_token, from_units, position.unit)
        to_units = buy_units(
            quote.buy_amount,
            snapshot.total_supply,
            request.slippage_percent,
            request.fee_percent,
        )

        validate_quote_units(snapshot, request.from_token, from_units, request.to_token, to_units)

        gas = await self._estimate_gas(request, snapshot, from_units, to_units, quote.calldata)
        prices, gas_price = await self._market_data(request)

        log.info(
            f"Trade quote {request.from_token} -> {request.to_token}: "
            f"from_units={from_units} to_units={to_units} gas={gas}"
        )

        return QuoteResult(
            from_units=from_units,
            to_units=to_units,
            calldata=quote.calldata,
            from_address=request.from_address,
            from_token=request.from_token,
            to_token=request.to_token,
            exchange_adapter_name=ZERO_EX_ADAPTER_NAME,
            gas_estimate=gas,
            gas_price=gas_price,
            slippage_percentage=display.format_percentage(request.slippage_percent),
            display=self._build_display(request, amount, requested_notional, quote, gas, gas_price, prices),
            raw_quote=quote.raw,
        )

    # ------------------------------------------------------------------ #
    # Swap quotes
    # ------------------------------------------------------------------ #

    async def quote_swap(self, request: QuoteRequest) -> QuoteResult:
        """
        Quote an arbitrary token pair without basket scaling.

        ``raw_amount`` is an integer amount in base units, sent as the sell
        amount, or as the buy amount when ``use_buy_amount`` is set.
        """
        ensure_supported_chain(request.chain_id)
        request = request.with_defaults(self.defaults)
        amount = parse_units(request.raw_amount, 0)

        manager = await self.basket_reader.fetch_manager_address(request.from_address)
        query = self._build_query(request, amount, manager, use_buy_amount=request.use_buy_amount)
        quote = await self.quote_provider.fetch_quote(request.chain_id, query)

        self.logger.debug(
            f"Swap quote chain={request.chain_id} {request.from_token} -> {request.to_token}: "
            f"sell={quote.sell_amount} buy={quote.buy_amount}"
        )

        return QuoteResult(
            from_units=quote.sell_amount,
            to_units=quote.buy_amount,
            calldata=quote.calldata,
            from_address=request.from_address,
            from_token=request.from_token,
            to_token=request.to_token,
            gas_estimate=quote.gas_estimate,
            gas_price=request.gas_price,
            slippage_percentage=display.format_percentage(request.slippage_percent),
            raw_quote=quote.raw,
        )
