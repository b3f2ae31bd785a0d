"""PriceService: price oracle backed by a provider and an explicit PriceCache."""

import logging
from decimal import Decimal
from typing import Iterable, Protocol

from walletpnl.accounting.valuation import DEFAULT_BUCKET_MS, bucket_timestamp
from walletpnl.infra.price.cache import PriceCache

logger = logging.getLogger(__name__)


class PriceProvider(Protocol):
    async def get_spot(self, asset_id: str) -> Decimal | None: ...

    async def get_price_at(self, asset_id: str, timestamp_ms: int) -> Decimal | None: ...


class PriceService:
    """Price orchestrator: cache lookup → provider fetch → cache store. Never raises; unknown = 0."""

    def __init__(
        self,
        provider: PriceProvider | None,
        cache: PriceCache | None = None,
        bucket_ms: int = DEFAULT_BUCKET_MS,
    ) -> None:
        self._provider = provider
        self._cache = cache if cache is not None else PriceCache()
        self._bucket_ms = bucket_ms

    @property
    def cache(self) -> PriceCache:
        return self._cache

    async def spot(self, asset_id: str) -> Decimal:
        cached = self._cache.get_spot(asset_id)
        if cached is not None:
            return cached

        if self._provider is None:
            return Decimal(0)
        try:
            price = await self._provider.get_spot(asset_id)
        except Exception:
            logger.exception("Spot price lookup failed for %s", asset_id)
            return Decimal(0)

        if price is None:
            return Decimal(0)
        self._cache.put_spot(asset_id, price)
        return price

    async def spot_many(self, asset_ids: Iterable[str]) -> dict[str, Decimal]:
        prices: dict[str, Decimal] = {}
        for asset_id in asset_ids:
            if asset_id not in prices:
                prices[asset_id] = await self.spot(asset_id)
        return prices

    async def historical(self, asset_id: str, instant_ms: int) -> Decimal:
        bucket = bucket_timestamp(instant_ms, self._bucket_ms)
        cached = self._cache.get_historical(asset_id, bucket)
        if cached is not None:
            return cached

        if self._provider is None:
            return Decimal(0)
        try:
            price = await self._provider.get_price_at(asset_id, bucket)
        except Exception:
            logger.exception("Historical price lookup failed for %s", asset_id)
            price = None

        # Failures are remembered as 0 for the lifetime of the cache
        result = price if price is not None else Decimal(0)
        self._cache.put_historical(asset_id, bucket, result)
        return result
