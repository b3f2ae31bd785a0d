from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from walletpnl.config import Settings
from walletpnl.container import Container
from walletpnl.report.service import PortfolioService


@inject
async def get_settings(
    settings: Settings = Depends(Provide[Container.settings]),
) -> Settings:
    return settings


@inject
async def get_portfolio_service(
    service: PortfolioService = Depends(Provide[Container.portfolio_service]),
) -> PortfolioService:
    return service
