"""Tests for ValuationResolver: stable shortcut, per-asset lookups, failure handling."""

from decimal import Decimal

from conftest import BONK_MINT, SOL_MINT, FakeOracle
from walletpnl.accounting.valuation import ValuationResolver, bucket_timestamp
from walletpnl.config import USDC_MINT, USDT_MINT
from walletpnl.domain.models.pnl import Delta, SwapEvent

TS = 1_700_000_123_456


def _event(*deltas: tuple[str, int, int], timestamp: int = TS) -> SwapEvent:
    return SwapEvent(
        timestamp=timestamp,
        deltas=[Delta(asset_id=a, raw_amount=raw, decimals=dec) for a, raw, dec in deltas],
    )


class TestBucket:
    def test_rounds_down_to_minute(self):
        assert bucket_timestamp(TS) == 1_700_000_100_000

    def test_exact_boundary_unchanged(self):
        assert bucket_timestamp(60_000) == 60_000

    def test_custom_bucket(self):
        assert bucket_timestamp(3_599_999, 3_600_000) == 0


class TestResolve:
    async def test_stable_assets_priced_at_one_without_oracle(self, stable_assets):
        oracle = FakeOracle()
        resolver = ValuationResolver(oracle, stable_assets)

        prices = await resolver.resolve(_event((USDC_MINT, -100_000_000, 6), (USDT_MINT, 50_000_000, 6)))

        assert prices == {USDC_MINT: Decimal("1"), USDT_MINT: Decimal("1")}
        assert oracle.calls == []

    async def test_one_call_per_distinct_asset(self, oracle, stable_assets):
        resolver = ValuationResolver(oracle, stable_assets)
        event = _event(
            (SOL_MINT, -1_000_000_000, 9),
            (SOL_MINT, -500_000_000, 9),
            (BONK_MINT, 10_000, 0),
            (USDC_MINT, 1_000_000, 6),
        )

        prices = await resolver.resolve(event)

        assert prices[SOL_MINT] == Decimal("150")
        assert prices[BONK_MINT] == Decimal("0.00002")
        assert prices[USDC_MINT] == Decimal("1")
        assert [asset for asset, _ in oracle.calls] == [SOL_MINT, BONK_MINT]

    async def test_lookup_uses_minute_bucket(self, oracle, stable_assets):
        resolver = ValuationResolver(oracle, stable_assets)
        await resolver.resolve(_event((SOL_MINT, 1, 9)))
        assert oracle.calls == [(SOL_MINT, 1_700_000_100_000)]

    async def test_failure_resolves_to_zero(self, stable_assets):
        oracle = FakeOracle({SOL_MINT: Decimal("150")}, fail={BONK_MINT})
        resolver = ValuationResolver(oracle, stable_assets)

        prices = await resolver.resolve(_event((SOL_MINT, -1, 9), (BONK_MINT, 1, 0)))

        assert prices[BONK_MINT] == Decimal(0)
        assert prices[SOL_MINT] == Decimal("150")

    async def test_unknown_and_negative_prices_resolve_to_zero(self, stable_assets):
        oracle = FakeOracle({BONK_MINT: Decimal("-3")})
        resolver = ValuationResolver(oracle, stable_assets)

        prices = await resolver.resolve(_event((SOL_MINT, 1, 9), (BONK_MINT, 1, 0)))

        assert prices == {SOL_MINT: Decimal(0), BONK_MINT: Decimal(0)}

    async def test_float_prices_converted_to_decimal(self, stable_assets):
        oracle = FakeOracle({SOL_MINT: 151.25})
        resolver = ValuationResolver(oracle, stable_assets)

        prices = await resolver.resolve(_event((SOL_MINT, 1, 9)))

        assert prices[SOL_MINT] == Decimal("151.25")


class TestPriceLegs:
    async def test_legs_carry_quantity_and_value(self, oracle, stable_assets):
        resolver = ValuationResolver(oracle, stable_assets)

        legs = await resolver.price_legs(_event((SOL_MINT, -2_000_000_000, 9), (USDC_MINT, 300_000_000, 6)))

        assert legs[0].asset_id == SOL_MINT
        assert legs[0].quantity == Decimal("-2")
        assert legs[0].usd_value == Decimal("300")
        assert legs[1].usd_value == Decimal("300")

    def test_is_stable(self, oracle, stable_assets):
        resolver = ValuationResolver(oracle, stable_assets)
        assert resolver.is_stable(USDC_MINT)
        assert not resolver.is_stable(SOL_MINT)
        assert resolver.stable_assets == frozenset(stable_assets)
