from io import BytesIO
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from tenacity import RetryError

from walletpnl.api.deps import get_portfolio_service, get_settings
from walletpnl.api.schemas.portfolio import PortfolioList, WalletReportResponse
from walletpnl.config import Settings
from walletpnl.domain.models.pnl import WalletReport
from walletpnl.exceptions import ConfigurationError, ExternalServiceError
from walletpnl.report.excel_writer import ExcelWriter
from walletpnl.report.service import PortfolioService

router = APIRouter(prefix="/api/portfolio", tags=["portfolio"])

ServiceDep = Annotated[PortfolioService, Depends(get_portfolio_service)]
SettingsDep = Annotated[Settings, Depends(get_settings)]

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


async def _build_report(service: PortfolioService, address: str) -> WalletReport:
    try:
        return await service.build_report(address)
    except ConfigurationError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except (ExternalServiceError, RetryError) as e:
        raise HTTPException(status_code=502, detail=f"Upstream service failed: {e}")


@router.get("", response_model=PortfolioList)
async def list_portfolios(service: ServiceDep, settings: SettingsDep) -> PortfolioList:
    """Reports for every configured wallet. Wallets that fail upstream are left out."""
    if not settings.wallets:
        raise HTTPException(status_code=404, detail="No wallets configured")

    reports = await service.build_reports(settings.wallets)
    return PortfolioList(
        reports=[WalletReportResponse.from_report(r) for r in reports],
        total=len(reports),
    )


@router.get("/{address}", response_model=WalletReportResponse)
async def get_portfolio(
    address: str,
    service: ServiceDep,
    include_lots: bool = Query(False, description="Include open and closed lots"),
) -> WalletReportResponse:
    report = await _build_report(service, address)
    return WalletReportResponse.from_report(report, include_lots=include_lots)


@router.get("/{address}/export")
async def export_portfolio(address: str, service: ServiceDep):
    """Download the wallet report as an .xlsx workbook."""
    report = await _build_report(service, address)
    buf = ExcelWriter().write_to_buffer(report)

    return StreamingResponse(
        BytesIO(buf.getvalue()),
        media_type=XLSX_CONTENT_TYPE,
        headers={"Content-Disposition": f'attachment; filename="portfolio_{address}.xlsx"'},
    )
