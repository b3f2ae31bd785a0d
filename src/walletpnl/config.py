from decimal import Decimal

from pydantic_settings import BaseSettings

USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
USDT_MINT = "Es9vMFrzaCERD4bYvfhijAbF4dVQVwQ851qw9YJz8F7"


class Settings(BaseSettings):
    helius_api_key: str = ""
    birdeye_api_key: str = ""
    wallets: list[str] = []
    stable_assets: list[str] = [USDC_MINT, USDT_MINT]
    top_positions: int = 5
    tx_page_limit: int = 100
    tx_max_pages: int = 5
    asset_page_size: int = 1000
    asset_max_pages: int = 3
    price_bucket_seconds: int = 60
    spot_cache_ttl_seconds: float = 15.0
    dust_epsilon: Decimal = Decimal("1e-12")
    http_rate_per_second: float = 5.0
    http_timeout: float = 30.0

    @property
    def price_bucket_ms(self) -> int:
        return self.price_bucket_seconds * 1000

    class Config:
        env_file = ".env"


settings = Settings()
