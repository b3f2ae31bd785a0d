"""Schemas for /api/portfolio endpoints."""

from decimal import Decimal

from pydantic import BaseModel

from walletpnl.domain.models.pnl import ClosedLot, OpenLot, Position, WalletReport


class WalletReportResponse(BaseModel):
    wallet: str
    current_value_usd: Decimal
    realized_pnl_usd: Decimal
    unrealized_pnl_usd: Decimal
    positions: list[Position]
    missing_price_assets: list[str]
    unrealized_by_asset: dict[str, Decimal] = {}
    open_lots: list[OpenLot] = []
    closed_lots: list[ClosedLot] = []
    swap_count: int = 0

    @classmethod
    def from_report(cls, report: WalletReport, include_lots: bool = False) -> "WalletReportResponse":
        data = report.model_dump()
        if not include_lots:
            data["open_lots"] = []
            data["closed_lots"] = []
        return cls(**data)


class PortfolioList(BaseModel):
    reports: list[WalletReportResponse]
    total: int
