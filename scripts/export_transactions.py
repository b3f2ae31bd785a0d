"""Save raw Helius transactions (and optionally extracted swap events) as JSON.

Usage:
    EXPORT_SWAPS=1 python scripts/export_transactions.py

Writes out/<wallet>.transactions.json and, with EXPORT_SWAPS=1, out/<wallet>.swaps.json.
"""

import asyncio
import json
import logging
import os
import re
from pathlib import Path

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)-5s %(name)s - %(message)s")
logging.getLogger("httpx").setLevel(logging.WARNING)
logging.getLogger("httpcore").setLevel(logging.WARNING)

logger = logging.getLogger("export_transactions")

OUT_DIR = Path(__file__).resolve().parent.parent / "out"
EXPORT_MAX_PAGES = 20


def _sanitize(name: str) -> str:
    return re.sub(r"[^a-zA-Z0-9._-]", "_", name)


async def main() -> None:
    from walletpnl.config import settings
    from walletpnl.infra.blockchain.helius.client import HeliusClient
    from walletpnl.infra.http.rate_limited_client import RateLimitedClient
    from walletpnl.parser.extractor import extract_swap_events

    export_swaps = os.environ.get("EXPORT_SWAPS") == "1"
    if not settings.wallets:
        print("No wallets configured (set WALLETS in .env as a JSON list)")
        raise SystemExit(1)

    OUT_DIR.mkdir(parents=True, exist_ok=True)

    async with RateLimitedClient(rate_per_second=settings.http_rate_per_second, timeout=settings.http_timeout) as http:
        helius = HeliusClient(api_key=settings.helius_api_key, http_client=http)

        for wallet in settings.wallets:
            try:
                transactions = await helius.fetch_transactions(
                    wallet, limit=settings.tx_page_limit, max_pages=EXPORT_MAX_PAGES
                )
            except Exception:
                logger.exception("Failed to fetch transactions for %s", wallet)
                continue

            tx_path = OUT_DIR / f"{_sanitize(wallet)}.transactions.json"
            tx_path.write_text(json.dumps(transactions, indent=2), encoding="utf-8")
            print(f"Saved {len(transactions)} transactions -> {tx_path}")

            swaps_path = OUT_DIR / f"{_sanitize(wallet)}.swaps.json"
            if export_swaps:
                events = extract_swap_events(transactions, wallet)
                swaps_path.write_text(
                    json.dumps([e.model_dump(mode="json") for e in events], indent=2),
                    encoding="utf-8",
                )
                print(f"Saved {len(events)} parsed swap entries -> {swaps_path}")
            else:
                # Keep only one canonical file per wallet
                swaps_path.unlink(missing_ok=True)


if __name__ == "__main__":
    asyncio.run(main())
