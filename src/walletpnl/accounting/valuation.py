"""ValuationResolver: one USD price per distinct asset of a swap event."""

import logging
from decimal import Decimal
from typing import Iterable, Protocol

from walletpnl.domain.models.pnl import PricedLeg, SwapEvent

logger = logging.getLogger(__name__)

STABLE_PRICE = Decimal("1")

# Historical lookups are keyed by minute
DEFAULT_BUCKET_MS = 60_000


class PriceOracle(Protocol):
    """Spot and historical USD prices. Implementations return 0 instead of failing."""

    async def spot(self, asset_id: str) -> Decimal: ...

    async def historical(self, asset_id: str, instant_ms: int) -> Decimal: ...


def bucket_timestamp(timestamp_ms: int, bucket_ms: int = DEFAULT_BUCKET_MS) -> int:
    """Round an epoch-millisecond instant down to its bucket start."""
    return timestamp_ms - timestamp_ms % bucket_ms


class ValuationResolver:
    """Resolve swap legs to USD: stable assets at 1.0, others via a historical oracle lookup."""

    def __init__(
        self,
        oracle: PriceOracle,
        stable_assets: Iterable[str],
        bucket_ms: int = DEFAULT_BUCKET_MS,
    ) -> None:
        self._oracle = oracle
        self._stable_assets = frozenset(stable_assets)
        self._bucket_ms = bucket_ms

    @property
    def stable_assets(self) -> frozenset[str]:
        return self._stable_assets

    def is_stable(self, asset_id: str) -> bool:
        return asset_id in self._stable_assets

    async def resolve(self, event: SwapEvent) -> dict[str, Decimal]:
        """Return {asset_id: usd_price} with exactly one oracle call per non-stable asset."""
        bucket = bucket_timestamp(event.timestamp, self._bucket_ms)
        prices: dict[str, Decimal] = {}
        for asset_id in event.asset_ids:
            if asset_id in prices:
                continue
            if self.is_stable(asset_id):
                prices[asset_id] = STABLE_PRICE
                continue
            prices[asset_id] = await self._lookup(asset_id, bucket)
        return prices

    async def price_legs(self, event: SwapEvent) -> list[PricedLeg]:
        prices = await self.resolve(event)
        return [
            PricedLeg(asset_id=d.asset_id, quantity=d.quantity, usd_price=prices[d.asset_id])
            for d in event.deltas
        ]

    async def _lookup(self, asset_id: str, bucket: int) -> Decimal:
        try:
            price = await self._oracle.historical(asset_id, bucket)
        except Exception:
            logger.exception("Historical price lookup failed for %s at %d", asset_id, bucket)
            return Decimal(0)

        if price is None:
            return Decimal(0)
        price = price if isinstance(price, Decimal) else Decimal(str(price))
        return price if price > 0 else Decimal(0)
