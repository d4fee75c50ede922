"""
Batch Quoter - quotes many legs of one basket against a rate-limited provider.

Legs are either real (quoted) or passthrough (kept only so the result list
lines up with the caller's array, resolved locally with zero calldata). The
batch is validated as a whole before the first provider call: every network
must be supported, every trade leg must be well formed and the combined
sells must not overdraw or dust a position. Real leg ``i`` is dispatched
``i * delay_step`` seconds after the start; the first failure fails the
whole batch.
"""

import asyncio
from typing import List, Optional, Sequence

from helpers.unified_logger import get_core_logger
from quote_clients.base import BasketReader
from quote_engine import dust
from quote_engine.chains import ensure_supported_chain
from quote_engine.config import Settings, settings as default_settings
from quote_engine.errors import InvalidQuoteRequestError
from quote_engine.models import BasketSnapshot, BatchLeg, PassthroughLeg, QuoteKind, QuoteResult, RealLeg
from quote_engine.orchestrator import TradeQuoter
from quote_engine.scheduler import SleepFunc, linear_delay, stagger


class BatchQuoter:
    """
    Fans a batch of legs out to a ``TradeQuoter``.

    Usage:
        batch = BatchQuoter(trade_quoter, basket_reader)
        results = await batch.quote_trade_batch(legs)
    """

    def __init__(
        self,
        trade_quoter: TradeQuoter,
        basket_reader: BasketReader,
        settings: Optional[Settings] = None,
        sleep: SleepFunc = asyncio.sleep,
    ):
        self.trade_quoter = trade_quoter
        self.basket_reader = basket_reader
        self.settings = settings or default_settings
        self.sleep = sleep
        self.logger = get_core_logger("batch_quoter")

    @staticmethod
    def _real_legs(legs: Sequence[BatchLeg]) -> List[RealLeg]:
        real = []
        for leg in legs:
            if isinstance(leg, RealLeg):
                real.append(leg)
            elif not isinstance(leg, PassthroughLeg):
                raise InvalidQuoteRequestError(f"Unknown batch leg type: {type(leg).__name__}")
        return real

    @staticmethod
    def _basket_address(real_legs: Sequence[RealLeg]) -> str:
        baskets = {leg.request.from_address.lower() for leg in real_legs}
        if len(baskets) != 1:
            raise InvalidQuoteRequestError(
                f"All legs of a batch must quote for the same basket, got {sorted(baskets)}"
            )
        return baskets.pop()

    async def _fetch_snapshot(self, basket_address: str, real_legs: Sequence[RealLeg]) -> BasketSnapshot:
        components = []
        for leg in real_legs:
            for token in (leg.request.from_token.lower(), leg.request.to_token.lower()):
                if token not in components:
                    components.append(token)
        return await self.basket_reader.fetch_basket_snapshot(basket_address, components)

    async def validate_batch_dust(
        self,
        legs: Sequence[BatchLeg],
        basket_address: str,
        kind: QuoteKind = QuoteKind.TRADE,
    ) -> BasketSnapshot:
        """
        Check the combined sells of a batch against a fresh basket snapshot.

        Returns:
            The snapshot the check ran against.

        Raises:
            AmountExceedsAvailable: Legs together sell more than the basket holds
            DustPositionError: Legs together would leave a dust position
        """
        real_legs = self._real_legs(legs)
        for leg in real_legs:
            ensure_supported_chain(leg.request.chain_id)

        snapshot = await self._fetch_snapshot(basket_address.lower(), real_legs)
        dust.validate_batch_dust(snapshot, real_legs, kind)
        return snapshot

    async def quote_batch(
        self,
        legs: Sequence[BatchLeg],
        kind: QuoteKind = QuoteKind.TRADE,
        delay_step: Optional[float] = None,
    ) -> List[QuoteResult]:
        """
        Quote every leg and return results in input order.

        Args:
            legs: Real and passthrough legs
            kind: Trade quotes (scaled, per-share units) or swap quotes (raw amounts)
            delay_step: Seconds between consecutive dispatches. Defaults to the
                configured swap/trade batch delay.
        """
        if delay_step is None:
            delay_ms = (
                self.settings.swap_batch_delay_ms
                if kind is QuoteKind.SWAP
                else self.settings.trade_batch_delay_ms
            )
            delay_step = delay_ms / 1000
        if delay_step < 0:
            raise ValueError(f"delay_step must be non-negative, got {delay_step}")

        legs = list(legs)
        real_legs = self._real_legs(legs)
        for leg in real_legs:
            ensure_supported_chain(leg.request.chain_id)
        if kind is QuoteKind.TRADE:
            for leg in real_legs:
                self.trade_quoter.prepare_trade_request(leg.request)

        snapshot = None
        if real_legs:
            basket_address = self._basket_address(real_legs)
            snapshot = await self.validate_batch_dust(legs, basket_address, kind)

        def job_for(leg: BatchLeg):
            if isinstance(leg, PassthroughLeg):
                async def passthrough() -> QuoteResult:
                    return QuoteResult.passthrough(leg)
                return passthrough

            if kind is QuoteKind.SWAP:
                return lambda: self.trade_quoter.quote_swap(leg.request)
            return lambda: self.trade_quoter.quote_trade(leg.request, snapshot=snapshot)

        real_delay = linear_delay(delay_step)

        def delay_for(index: int) -> float:
            if isinstance(legs[index], PassthroughLeg):
                return 0
            return real_delay(index)

        self.logger.info(
            f"Quoting {kind.value} batch: {len(real_legs)} real, "
            f"{len(legs) - len(real_legs)} passthrough, step={delay_step}s"
        )
        return await stagger([job_for(leg) for leg in legs], delay_for, sleep=self.sleep)

    async def quote_swap_batch(
        self,
        legs: Sequence[BatchLeg],
        delay_step: Optional[float] = None,
    ) -> List[QuoteResult]:
        return await self.quote_batch(legs, QuoteKind.SWAP, delay_step)

    async def quote_trade_batch(
        self,
        legs: Sequence[BatchLeg],
        delay_step: Optional[float] = None,
    ) -> List[QuoteResult]:
        return await self.quote_batch(legs, QuoteKind.TRADE, delay_step)
