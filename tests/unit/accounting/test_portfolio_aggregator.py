"""Tests for PortfolioAggregator: swap replay order, cost allocation, summaries."""

from decimal import Decimal

from conftest import BONK_MINT, SOL_MINT, WALLET, FakeOracle
from walletpnl.accounting.cost_basis import CostBasisLedger
from walletpnl.accounting.portfolio import PortfolioAggregator
from walletpnl.accounting.valuation import ValuationResolver
from walletpnl.config import USDC_MINT
from walletpnl.domain.models.pnl import Delta, SwapEvent

JUP_MINT = "JUPyiwrYJFskUPiHa7hkeR8VUtAeFoSYbKedZNsDvCN"


def _event(*deltas: tuple[str, int, int], timestamp: int = 1_700_000_000_000) -> SwapEvent:
    return SwapEvent(
        timestamp=timestamp,
        deltas=[Delta(asset_id=a, raw_amount=raw, decimals=dec) for a, raw, dec in deltas],
    )


def _aggregator(prices: dict[str, Decimal], stable_assets, top_n: int = 5) -> PortfolioAggregator:
    return PortfolioAggregator(ValuationResolver(FakeOracle(prices), stable_assets), top_n=top_n)


class TestRecordSwap:
    def test_stable_to_token_buys_at_input_value(self, stable_assets):
        agg = _aggregator({}, stable_assets)
        ledger = CostBasisLedger()

        agg.record_swap(
            ledger,
            _event((USDC_MINT, -300_000_000, 6), (SOL_MINT, 2_000_000_000, 9)),
            {SOL_MINT: Decimal("150")},
        )

        lots = ledger.lots(SOL_MINT)
        assert len(lots) == 1
        assert lots[0].quantity == Decimal("2")
        assert lots[0].cost_usd == Decimal("300")
        # Stable input sold from an empty queue: nothing realized
        assert ledger.realized() == Decimal("0")

    def test_sell_leg_realizes_at_resolved_price(self, stable_assets):
        agg = _aggregator({}, stable_assets)
        ledger = CostBasisLedger()
        ledger.buy(SOL_MINT, 2, 200)

        agg.record_swap(
            ledger,
            _event((SOL_MINT, -2_000_000_000, 9), (USDC_MINT, 300_000_000, 6)),
            {SOL_MINT: Decimal("150")},
        )

        assert ledger.realized() == Decimal("100")
        assert ledger.lots(SOL_MINT) == []
        assert ledger.lots(USDC_MINT)[0].cost_usd == Decimal("300")

    def test_proportional_cost_split(self, stable_assets):
        agg = _aggregator({}, stable_assets)
        ledger = CostBasisLedger()
        prices = {SOL_MINT: Decimal("150"), BONK_MINT: Decimal("0.00002")}

        agg.record_swap(
            ledger,
            _event(
                (USDC_MINT, -900_000_000, 6),
                (SOL_MINT, 2_000_000_000, 9),  # 300 USD
                (BONK_MINT, 30_000_000, 0),  # 600 USD
            ),
            prices,
        )

        assert ledger.lots(SOL_MINT)[0].cost_usd == Decimal("300")
        assert ledger.lots(BONK_MINT)[0].cost_usd == Decimal("600")
        assert ledger.unrealized(prices).total == Decimal("0")

    def test_airdrop_records_no_buy(self, stable_assets):
        agg = _aggregator({}, stable_assets)
        ledger = CostBasisLedger()

        agg.record_swap(ledger, _event((BONK_MINT, 1_000_000, 0)), {BONK_MINT: Decimal("0.00002")})

        assert ledger.lots(BONK_MINT) == []
        # Unrealized sums over open lots only, so a lot-less airdrop contributes nothing
        assert ledger.unrealized({BONK_MINT: Decimal("0.00002")}).by_asset == {}

    def test_unpriced_input_records_no_buy_but_still_sells(self, stable_assets):
        agg = _aggregator({}, stable_assets)
        ledger = CostBasisLedger()
        ledger.buy(JUP_MINT, 10, 5)

        agg.record_swap(
            ledger,
            _event((JUP_MINT, -10_000_000, 6), (SOL_MINT, 1_000_000_000, 9)),
            {SOL_MINT: Decimal("150")},
        )

        assert ledger.lots(JUP_MINT) == []
        assert ledger.realized() == Decimal("-5")
        assert ledger.lots(SOL_MINT) == []

    def test_zero_output_value_assigns_no_cost(self, stable_assets):
        agg = _aggregator({}, stable_assets)
        ledger = CostBasisLedger()

        agg.record_swap(ledger, _event((USDC_MINT, -10_000_000, 6), (JUP_MINT, 4_000_000, 6)), {})

        # Denominator falls back to 1; leg value 0 means cost 0
        lot = ledger.lots(JUP_MINT)[0]
        assert lot.quantity == Decimal("4")
        assert lot.cost_usd == Decimal("0")

    def test_stable_price_overrides_supplied_prices(self, stable_assets):
        agg = _aggregator({}, stable_assets)
        ledger = CostBasisLedger()

        agg.record_swap(
            ledger,
            _event((USDC_MINT, -100_000_000, 6), (SOL_MINT, 1_000_000_000, 9)),
            {USDC_MINT: Decimal("0.99"), SOL_MINT: Decimal("100")},
        )

        assert ledger.lots(SOL_MINT)[0].cost_usd == Decimal("100")


class TestBuildLedger:
    async def test_replays_events_in_order(self, stable_assets):
        agg = _aggregator({SOL_MINT: Decimal("150")}, stable_assets)
        events = [
            _event((USDC_MINT, -300_000_000, 6), (SOL_MINT, 2_000_000_000, 9), timestamp=1_000),
            _event((SOL_MINT, -1_000_000_000, 9), (USDC_MINT, 150_000_000, 6), timestamp=2_000),
        ]

        ledger = await agg.build_ledger(events)

        assert ledger.holdings() == {SOL_MINT: Decimal("1"), USDC_MINT: Decimal("150")}
        assert ledger.realized() == Decimal("0")

    async def test_historical_failure_leaves_ledger_consistent(self, stable_assets):
        oracle = FakeOracle(fail={SOL_MINT})
        agg = PortfolioAggregator(ValuationResolver(oracle, stable_assets))

        ledger = await agg.build_ledger([_event((USDC_MINT, -300_000_000, 6), (SOL_MINT, 2_000_000_000, 9))])

        lot = ledger.lots(SOL_MINT)[0]
        assert lot.quantity == Decimal("2")
        assert lot.cost_usd == Decimal("0")

    async def test_empty_history(self, stable_assets):
        ledger = await _aggregator({}, stable_assets).build_ledger([])
        assert ledger.assets() == []


class TestSummarize:
    def test_report_totals_and_ranking(self, stable_assets):
        agg = _aggregator({}, stable_assets)
        ledger = CostBasisLedger()
        ledger.buy(SOL_MINT, 2, 200)
        ledger.buy(BONK_MINT, 1000, 1)
        ledger.sell(SOL_MINT, 1, 150)

        report = agg.summarize(
            WALLET,
            ledger,
            holdings={SOL_MINT: Decimal("1"), BONK_MINT: Decimal("1000"), JUP_MINT: Decimal("5")},
            live_prices={SOL_MINT: Decimal("160"), BONK_MINT: Decimal("0.002")},
            swap_count=3,
        )

        assert report.wallet == WALLET
        assert report.current_value_usd == Decimal("162")
        assert report.realized_pnl_usd == Decimal("50")
        # SOL: 160 - 100, BONK: 2 - 1
        assert report.unrealized_pnl_usd == Decimal("61")
        assert [p.asset_id for p in report.positions] == [SOL_MINT, BONK_MINT, JUP_MINT]
        assert report.missing_price_assets == [JUP_MINT]
        assert report.swap_count == 3
        assert len(report.open_lots) == 2
        assert len(report.closed_lots) == 1

    def test_positions_truncated_to_top_n(self, stable_assets):
        agg = _aggregator({}, stable_assets, top_n=2)
        holdings = {f"MINT{i}": Decimal(i + 1) for i in range(4)}
        live = {f"MINT{i}": Decimal("1") for i in range(4)}

        report = agg.summarize(WALLET, CostBasisLedger(), holdings, live)

        assert [p.asset_id for p in report.positions] == ["MINT3", "MINT2"]
        assert report.current_value_usd == Decimal("10")

    def test_missing_prices_listed_even_beyond_top_n(self, stable_assets):
        agg = _aggregator({}, stable_assets, top_n=1)
        report = agg.summarize(
            WALLET,
            CostBasisLedger(),
            holdings={SOL_MINT: Decimal("1"), "B": Decimal("1"), "A": Decimal("1")},
            live_prices={SOL_MINT: Decimal("150")},
        )

        assert [p.asset_id for p in report.positions] == [SOL_MINT]
        assert report.missing_price_assets == ["A", "B"]

    def test_empty_wallet(self, stable_assets):
        report = _aggregator({}, stable_assets).summarize(WALLET, CostBasisLedger(), {}, {})
        assert report.current_value_usd == Decimal("0")
        assert report.positions == []
        assert report.missing_price_assets == []
