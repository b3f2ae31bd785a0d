"""PortfolioService: orchestrates fetch → extract → ledger → live snapshot → report."""

import logging
from decimal import Decimal
from typing import Iterable

from walletpnl.accounting.cost_basis import DUST_EPSILON
from walletpnl.accounting.portfolio import DEFAULT_TOP_N, PortfolioAggregator
from walletpnl.accounting.valuation import DEFAULT_BUCKET_MS, ValuationResolver
from walletpnl.domain.models.pnl import WalletReport
from walletpnl.infra.blockchain.helius.client import HeliusClient
from walletpnl.infra.blockchain.helius.holdings import holdings_from_assets, with_native_sol
from walletpnl.infra.price.service import PriceService
from walletpnl.parser.extractor import extract_swap_events

logger = logging.getLogger(__name__)


class PortfolioService:
    """Builds one WalletReport per wallet. Each wallet gets its own ledger."""

    def __init__(
        self,
        helius: HeliusClient,
        price_service: PriceService,
        stable_assets: Iterable[str],
        top_n: int = DEFAULT_TOP_N,
        tx_page_limit: int = 100,
        tx_max_pages: int = 5,
        asset_page_size: int = 1000,
        asset_max_pages: int = 3,
        bucket_ms: int = DEFAULT_BUCKET_MS,
        epsilon: Decimal = DUST_EPSILON,
    ) -> None:
        self._helius = helius
        self._prices = price_service
        self._tx_page_limit = tx_page_limit
        self._tx_max_pages = tx_max_pages
        self._asset_page_size = asset_page_size
        self._asset_max_pages = asset_max_pages
        resolver = ValuationResolver(price_service, stable_assets, bucket_ms=bucket_ms)
        self._aggregator = PortfolioAggregator(resolver, top_n=top_n, epsilon=epsilon)

    async def live_holdings(self, wallet: str) -> dict[str, Decimal]:
        assets = await self._helius.fetch_all_assets(
            wallet, page_size=self._asset_page_size, max_pages=self._asset_max_pages
        )
        holdings = holdings_from_assets(assets)
        lamports = await self._helius.get_native_balance(wallet)
        return with_native_sol(holdings, lamports)

    async def build_report(self, wallet: str) -> WalletReport:
        """Full pipeline for one wallet. Upstream transaction/asset failures propagate."""
        transactions = await self._helius.fetch_transactions(
            wallet, limit=self._tx_page_limit, max_pages=self._tx_max_pages
        )
        # Helius returns newest first; replay oldest first, keeping same-second order
        events = sorted(extract_swap_events(reversed(transactions), wallet), key=lambda e: e.timestamp)
        ledger = await self._aggregator.build_ledger(events)

        holdings = await self.live_holdings(wallet)
        live_prices = await self._prices.spot_many(holdings)

        report = self._aggregator.summarize(wallet, ledger, holdings, live_prices, swap_count=len(events))
        logger.info(
            "Wallet %s: value=%s realized=%s unrealized=%s (%d swaps, %d txs)",
            wallet,
            report.current_value_usd,
            report.realized_pnl_usd,
            report.unrealized_pnl_usd,
            len(events),
            len(transactions),
        )
        return report

    async def build_reports(self, wallets: Iterable[str]) -> list[WalletReport]:
        """Reports for every wallet; a failing wallet is logged and skipped."""
        reports: list[WalletReport] = []
        for wallet in wallets:
            try:
                reports.append(await self.build_report(wallet))
            except Exception:
                logger.exception("Failed to compute portfolio for %s", wallet)
        return reports
