"""Flatten a WalletReport into row tuples for the Excel export."""

from dataclasses import dataclass, field

from walletpnl.domain.models.pnl import WalletReport


@dataclass
class ReportData:
    """Sheet data. Each is a list of row tuples (floats for numeric cells)."""

    summary: list[tuple] = field(default_factory=list)
    positions: list[tuple] = field(default_factory=list)
    open_lots: list[tuple] = field(default_factory=list)
    realized_gains: list[tuple] = field(default_factory=list)
    missing_prices: list[str] = field(default_factory=list)


def collect(report: WalletReport) -> ReportData:
    data = ReportData()

    data.summary = [
        ("Wallet", report.wallet),
        ("Current Value (USD)", float(report.current_value_usd)),
        ("Realized PnL (USD)", float(report.realized_pnl_usd)),
        ("Unrealized PnL (USD)", float(report.unrealized_pnl_usd)),
        ("Swap Events", report.swap_count),
    ]

    data.positions = [
        (p.asset_id, float(p.quantity), float(p.price_usd), float(p.value_usd))
        for p in report.positions
    ]

    data.open_lots = [
        (
            lot.asset_id,
            float(lot.quantity),
            float(lot.cost_usd / lot.quantity) if lot.quantity else 0.0,
            float(lot.cost_usd),
            float(report.unrealized_by_asset.get(lot.asset_id, 0)),
        )
        for lot in report.open_lots
    ]

    data.realized_gains = [
        (cl.asset_id, float(cl.quantity), float(cl.cost_usd), float(cl.proceeds_usd), float(cl.gain_usd))
        for cl in report.closed_lots
    ]

    data.missing_prices = list(report.missing_price_assets)
    return data
