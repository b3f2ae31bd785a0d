"""Birdeye price provider: spot and historical (1m candle close) USD prices for Solana mints."""

import asyncio
import logging
from decimal import Decimal
from typing import Any

from walletpnl.infra.http.rate_limited_client import RateLimitedClient
from walletpnl.parser.strategies import parse_decimal

logger = logging.getLogger(__name__)

BASE_URL = "https://public-api.birdeye.so"

MAX_RETRIES = 3
RETRY_BASE_DELAY = 0.25  # seconds, doubled per attempt

MINUTE_MS = 60_000
# Candles are requested over +-30 minutes around the target minute
CANDLE_WINDOW_MS = 30 * MINUTE_MS


class BirdeyeProvider:
    """Fetch USD prices from Birdeye. Every failure is logged and returned as None."""

    def __init__(self, http_client: RateLimitedClient, api_key: str = "") -> None:
        self._http = http_client
        self._api_key = api_key

    async def _get(self, path: str, params: dict[str, str], label: str) -> Any | None:
        """GET with retry on 429/5xx. Returns the `data` field or None."""
        if not self._api_key:
            logger.warning("Missing BIRDEYE_API_KEY; no price for %s", label)
            return None

        headers = {"X-API-KEY": self._api_key, "x-chain": "solana"}
        url = f"{BASE_URL}{path}"

        for attempt in range(MAX_RETRIES):
            try:
                response = await self._http.get(url, params=params, headers=headers)

                if response.status_code == 429 or response.status_code >= 500:
                    wait = RETRY_BASE_DELAY * 2 ** attempt
                    logger.info("Birdeye %d for %s, waiting %.2fs...", response.status_code, label, wait)
                    await asyncio.sleep(wait)
                    continue

                if response.status_code != 200:
                    logger.warning("Birdeye returned %d for %s", response.status_code, label)
                    return None

                body = response.json()
                return body.get("data") if isinstance(body, dict) else None

            except Exception:
                logger.exception("Birdeye request failed for %s (attempt %d)", label, attempt + 1)
                if attempt < MAX_RETRIES - 1:
                    await asyncio.sleep(RETRY_BASE_DELAY * 2 ** attempt)

        logger.warning("Birdeye exhausted retries for %s", label)
        return None

    async def get_spot(self, mint: str) -> Decimal | None:
        data = await self._get("/defi/price", {"address": mint}, mint)
        if not isinstance(data, dict):
            return None
        return parse_decimal(data.get("value"))

    async def get_price_at(self, mint: str, timestamp_ms: int) -> Decimal | None:
        """Close of the latest 1m candle at or before the target minute."""
        minute = timestamp_ms - timestamp_ms % MINUTE_MS
        params = {
            "address": mint,
            "type": "1m",
            "time_from": str((minute - CANDLE_WINDOW_MS) // 1000),
            "time_to": str((minute + CANDLE_WINDOW_MS) // 1000),
        }
        data = await self._get("/defi/ohlcv", params, mint)
        candles = data.get("items") if isinstance(data, dict) else data
        if not isinstance(candles, list):
            return None

        chosen: dict | None = None
        chosen_ms = Decimal(0)
        for candle in candles:
            if not isinstance(candle, dict):
                continue
            unix_time = parse_decimal(candle.get("unixTime"))
            if unix_time is None:
                continue
            candle_ms = unix_time * 1000
            if candle_ms > minute:
                continue
            if chosen is None or candle_ms > chosen_ms:
                chosen, chosen_ms = candle, candle_ms

        if chosen is None:
            return None
        return parse_decimal(chosen.get("c"))
