from dependency_injector import containers, providers

from walletpnl.config import Settings
from walletpnl.infra.blockchain.helius.client import HeliusClient
from walletpnl.infra.http.rate_limited_client import RateLimitedClient
from walletpnl.infra.price.birdeye import BirdeyeProvider
from walletpnl.infra.price.cache import PriceCache
from walletpnl.infra.price.service import PriceService
from walletpnl.report.service import PortfolioService


class Container(containers.DeclarativeContainer):
    wiring_config = containers.WiringConfiguration(modules=["walletpnl.api.deps"])

    settings = providers.Singleton(Settings)

    http_client = providers.Singleton(
        RateLimitedClient,
        rate_per_second=settings.provided.http_rate_per_second,
        timeout=settings.provided.http_timeout,
    )

    helius = providers.Singleton(
        HeliusClient,
        api_key=settings.provided.helius_api_key,
        http_client=http_client,
    )

    birdeye = providers.Singleton(
        BirdeyeProvider,
        http_client=http_client,
        api_key=settings.provided.birdeye_api_key,
    )

    # One cache for the application lifetime; spot entries expire by TTL
    price_cache = providers.Singleton(
        PriceCache,
        spot_ttl_seconds=settings.provided.spot_cache_ttl_seconds,
    )

    price_service = providers.Singleton(
        PriceService,
        provider=birdeye,
        cache=price_cache,
        bucket_ms=settings.provided.price_bucket_ms,
    )

    portfolio_service = providers.Factory(
        PortfolioService,
        helius=helius,
        price_service=price_service,
        stable_assets=settings.provided.stable_assets,
        top_n=settings.provided.top_positions,
        tx_page_limit=settings.provided.tx_page_limit,
        tx_max_pages=settings.provided.tx_max_pages,
        asset_page_size=settings.provided.asset_page_size,
        asset_max_pages=settings.provided.asset_max_pages,
        bucket_ms=settings.provided.price_bucket_ms,
        epsilon=settings.provided.dust_epsilon,
    )
