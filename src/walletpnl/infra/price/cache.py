"""In-memory price cache with caller-controlled lifetime (one per run or per app)."""

import time
from decimal import Decimal
from typing import Callable


class PriceCache:
    """Spot prices expire after a TTL; historical prices live as long as the cache."""

    def __init__(self, spot_ttl_seconds: float = 15.0, clock: Callable[[], float] = time.monotonic) -> None:
        self._spot_ttl = spot_ttl_seconds
        self._clock = clock
        self._spot: dict[str, tuple[Decimal, float]] = {}
        self._historical: dict[tuple[str, int], Decimal] = {}

    def get_spot(self, asset_id: str) -> Decimal | None:
        entry = self._spot.get(asset_id)
        if entry is None:
            return None
        price, stored_at = entry
        if self._clock() - stored_at >= self._spot_ttl:
            del self._spot[asset_id]
            return None
        return price

    def put_spot(self, asset_id: str, price: Decimal) -> None:
        self._spot[asset_id] = (price, self._clock())

    def get_historical(self, asset_id: str, bucket_ms: int) -> Decimal | None:
        return self._historical.get((asset_id, bucket_ms))

    def put_historical(self, asset_id: str, bucket_ms: int, price: Decimal) -> None:
        self._historical[(asset_id, bucket_ms)] = price

    def clear(self) -> None:
        self._spot.clear()
        self._historical.clear()
