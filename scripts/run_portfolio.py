"""Compute value + realized/unrealized PnL for every configured wallet.

Usage:
    WALLETS='["<address>", ...]' python scripts/run_portfolio.py
"""

import asyncio
import logging

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-5s %(name)s - %(message)s")
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

MISSING_PRICE_HINT_LIMIT = 3


async def main() -> None:
    from walletpnl.config import settings
    from walletpnl.infra.blockchain.helius.client import HeliusClient
    from walletpnl.infra.http.rate_limited_client import RateLimitedClient
    from walletpnl.infra.price.birdeye import BirdeyeProvider
    from walletpnl.infra.price.cache import PriceCache
    from walletpnl.infra.price.service import PriceService
    from walletpnl.report.service import PortfolioService

    if not settings.wallets:
        print("No wallets configured (set WALLETS in .env as a JSON list)")
        raise SystemExit(1)

    async with RateLimitedClient(rate_per_second=settings.http_rate_per_second, timeout=settings.http_timeout) as http:
        helius = HeliusClient(api_key=settings.helius_api_key, http_client=http)
        birdeye = BirdeyeProvider(http_client=http, api_key=settings.birdeye_api_key)
        # Cache lives for this run only
        prices = PriceService(
            birdeye,
            cache=PriceCache(spot_ttl_seconds=settings.spot_cache_ttl_seconds),
            bucket_ms=settings.price_bucket_ms,
        )
        service = PortfolioService(
            helius,
            prices,
            stable_assets=settings.stable_assets,
            top_n=settings.top_positions,
            tx_page_limit=settings.tx_page_limit,
            tx_max_pages=settings.tx_max_pages,
            asset_page_size=settings.asset_page_size,
            asset_max_pages=settings.asset_max_pages,
            bucket_ms=settings.price_bucket_ms,
            epsilon=settings.dust_epsilon,
        )

        for wallet in settings.wallets:
            print(f"\n=== Portfolio for {wallet} ===")
            reports = await service.build_reports([wallet])
            if not reports:
                print("Error computing portfolio (see log)")
                continue
            report = reports[0]

            print(f"Current Value USD: {report.current_value_usd:.2f}")
            print(f"Realized PnL USD: {report.realized_pnl_usd:.2f}")
            print(f"Unrealized PnL USD: {report.unrealized_pnl_usd:.2f}")
            print("Top positions:")
            for p in report.positions:
                print(f" - {p.asset_id} qty={p.quantity:.4f} valueUSD={p.value_usd:.2f}")
            if report.missing_price_assets:
                hint = ", ".join(report.missing_price_assets[:MISSING_PRICE_HINT_LIMIT])
                print(f"(Missing price data for: {hint})")


if __name__ == "__main__":
    asyncio.run(main())
