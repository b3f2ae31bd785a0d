"""PortfolioAggregator: replays swap events into a ledger and summarizes a wallet."""

import logging
from decimal import Decimal
from typing import Iterable, Mapping

from walletpnl.accounting.cost_basis import DUST_EPSILON, CostBasisLedger, to_decimal
from walletpnl.accounting.valuation import STABLE_PRICE, ValuationResolver
from walletpnl.domain.models.pnl import Position, SwapEvent, WalletReport

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 5


class PortfolioAggregator:
    """Apply priced swaps to a CostBasisLedger and build the per-wallet report."""

    def __init__(
        self,
        resolver: ValuationResolver,
        top_n: int = DEFAULT_TOP_N,
        epsilon: Decimal = DUST_EPSILON,
    ) -> None:
        self._resolver = resolver
        self._top_n = top_n
        self._epsilon = epsilon

    def _price(self, asset_id: str, prices: Mapping[str, Decimal]) -> Decimal:
        if self._resolver.is_stable(asset_id):
            return STABLE_PRICE
        return to_decimal(prices.get(asset_id) or 0)

    def record_swap(self, ledger: CostBasisLedger, event: SwapEvent, prices: Mapping[str, Decimal]) -> None:
        """Sell every input leg, then buy the outputs with the inputs' USD value as cost.

        Outputs of a swap with no valued input (airdrops, unpriced inputs) are not
        recorded: they carry no cost basis.
        """
        inputs = event.inputs
        outputs = event.outputs

        total_input_usd = sum(
            (abs(d.quantity) * self._price(d.asset_id, prices) for d in inputs), Decimal(0)
        )
        total_output_usd = sum(
            (d.quantity * self._price(d.asset_id, prices) for d in outputs), Decimal(0)
        )

        for d in inputs:
            ledger.sell(d.asset_id, abs(d.quantity), self._price(d.asset_id, prices))

        if total_input_usd <= 0 or not outputs:
            return

        denominator = total_output_usd or Decimal(1)
        for d in outputs:
            leg_usd = d.quantity * self._price(d.asset_id, prices)
            ledger.buy(d.asset_id, d.quantity, total_input_usd * leg_usd / denominator)

    async def apply_swap(self, ledger: CostBasisLedger, event: SwapEvent) -> None:
        prices = await self._resolver.resolve(event)
        self.record_swap(ledger, event, prices)

    async def build_ledger(self, events: Iterable[SwapEvent]) -> CostBasisLedger:
        """Replay events in the given order into a fresh ledger."""
        ledger = CostBasisLedger(epsilon=self._epsilon)
        count = 0
        for event in events:
            await self.apply_swap(ledger, event)
            count += 1
        logger.debug("Applied %d swap events, realized=%s", count, ledger.realized())
        return ledger

    def summarize(
        self,
        wallet: str,
        ledger: CostBasisLedger,
        holdings: Mapping[str, Decimal],
        live_prices: Mapping[str, Decimal],
        swap_count: int = 0,
    ) -> WalletReport:
        """Combine the ledger with live holdings and prices into a WalletReport."""
        positions: list[Position] = []
        for asset_id, quantity in holdings.items():
            quantity = to_decimal(quantity)
            price = to_decimal(live_prices.get(asset_id) or 0)
            positions.append(Position(
                asset_id=asset_id,
                quantity=quantity,
                price_usd=price,
                value_usd=quantity * price,
            ))
        positions.sort(key=lambda p: (-p.value_usd, p.asset_id))

        current_value = sum((p.value_usd for p in positions), Decimal(0))
        unrealized = ledger.unrealized(live_prices)
        missing = [p.asset_id for p in positions if p.price_usd == 0]

        return WalletReport(
            wallet=wallet,
            current_value_usd=current_value,
            realized_pnl_usd=ledger.realized(),
            unrealized_pnl_usd=unrealized.total,
            positions=positions[: self._top_n],
            missing_price_assets=missing,
            unrealized_by_asset=unrealized.by_asset,
            open_lots=ledger.open_lots(),
            closed_lots=ledger.closed_lots,
            swap_count=swap_count,
        )
