from decimal import Decimal

import pytest

from walletpnl.config import USDC_MINT, USDT_MINT

WALLET = "WaLLet1111111111111111111111111111111111111"
SOL_MINT = "So11111111111111111111111111111111111111112"
BONK_MINT = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"


class FakeOracle:
    """Historical/spot oracle returning fixed prices and recording every call."""

    def __init__(self, prices: dict[str, Decimal] | None = None, fail: set[str] | None = None):
        self.prices = prices or {}
        self.fail = fail or set()
        self.calls: list[tuple[str, int]] = []

    async def spot(self, asset_id: str) -> Decimal:
        return self.prices.get(asset_id, Decimal(0))

    async def historical(self, asset_id: str, instant_ms: int) -> Decimal:
        self.calls.append((asset_id, instant_ms))
        if asset_id in self.fail:
            raise RuntimeError(f"no price for {asset_id}")
        return self.prices.get(asset_id, Decimal(0))


@pytest.fixture()
def stable_assets() -> list[str]:
    return [USDC_MINT, USDT_MINT]


@pytest.fixture()
def oracle() -> FakeOracle:
    return FakeOracle({SOL_MINT: Decimal("150"), BONK_MINT: Decimal("0.00002")})
