"""FIFO cost-basis ledger: pure, in-memory, one instance per wallet.

Lots are consumed oldest first. Each lot keeps a constant per-unit cost: a
partial sell shrinks quantity and cost_usd proportionally. Selling more than
is held is clipped to the available inventory; the excess is dropped.
"""

from collections import deque
from decimal import Decimal
from typing import Mapping

from walletpnl.domain.models.pnl import ClosedLot, Lot, OpenLot, UnrealizedPnL

# Lots at or below this remaining quantity are evicted (asset-native units)
DUST_EPSILON = Decimal("1e-12")


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


class CostBasisLedger:
    """Per-asset FIFO lot queues plus a running realized PnL total."""

    def __init__(self, epsilon: Decimal = DUST_EPSILON) -> None:
        self._epsilon = to_decimal(epsilon)
        self._lots: dict[str, deque[Lot]] = {}
        self._realized = Decimal(0)
        self._closed: list[ClosedLot] = []

    def buy(self, asset_id: str, quantity: Decimal | int | float | str, cost_usd: Decimal | int | float | str) -> None:
        """Append a lot. Non-positive quantity or negative cost is ignored."""
        quantity = to_decimal(quantity)
        cost_usd = to_decimal(cost_usd)
        if quantity <= 0 or cost_usd < 0:
            return
        self._lots.setdefault(asset_id, deque()).append(Lot(quantity=quantity, cost_usd=cost_usd))

    def sell(self, asset_id: str, quantity: Decimal | int | float | str, price_usd: Decimal | int | float | str) -> Decimal:
        """Match quantity against the oldest lots and return the realized PnL of this sale."""
        quantity = to_decimal(quantity)
        price_usd = to_decimal(price_usd)
        if quantity <= 0 or price_usd < 0:
            return Decimal(0)

        queue = self._lots.get(asset_id)
        remaining = quantity
        realized = Decimal(0)

        while remaining > self._epsilon and queue:
            front = queue[0]
            take = min(remaining, front.quantity)
            cost_part = front.cost_usd * take / front.quantity
            proceeds = take * price_usd
            realized += proceeds - cost_part

            self._closed.append(ClosedLot(
                asset_id=asset_id,
                quantity=take,
                cost_usd=cost_part,
                proceeds_usd=proceeds,
                gain_usd=proceeds - cost_part,
            ))

            front.quantity -= take
            front.cost_usd -= cost_part
            remaining -= take

            if front.quantity <= self._epsilon:
                queue.popleft()

        if queue is not None and not queue:
            del self._lots[asset_id]

        self._realized += realized
        return realized

    def realized(self) -> Decimal:
        return self._realized

    def unrealized(self, current_prices: Mapping[str, Decimal | int | float | str]) -> UnrealizedPnL:
        """Paper PnL of every outstanding lot; missing prices count as 0."""
        total = Decimal(0)
        by_asset: dict[str, Decimal] = {}
        for asset_id, queue in self._lots.items():
            price = to_decimal(current_prices.get(asset_id) or 0)
            pnl = sum((price * lot.quantity - lot.cost_usd for lot in queue), Decimal(0))
            by_asset[asset_id] = pnl
            total += pnl
        return UnrealizedPnL(total=total, by_asset=by_asset)

    def assets(self) -> list[str]:
        """Assets that still have outstanding lots."""
        return list(self._lots)

    def lots(self, asset_id: str) -> list[Lot]:
        """Copies of the asset's lots, oldest first."""
        return [lot.model_copy() for lot in self._lots.get(asset_id, ())]

    def open_lots(self) -> list[OpenLot]:
        return [
            OpenLot(asset_id=asset_id, quantity=lot.quantity, cost_usd=lot.cost_usd)
            for asset_id, queue in self._lots.items()
            for lot in queue
        ]

    def holdings(self) -> dict[str, Decimal]:
        """Remaining quantity per asset."""
        return {
            asset_id: sum((lot.quantity for lot in queue), Decimal(0))
            for asset_id, queue in self._lots.items()
        }

    @property
    def closed_lots(self) -> list[ClosedLot]:
        return list(self._closed)
