"""Helius client: enhanced transaction history, DAS assets and native SOL balance."""

import logging
from typing import Any

import httpx
from tenacity import RetryError, retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from walletpnl.exceptions import ConfigurationError, ExternalServiceError, TransientServiceError
from walletpnl.infra.http.rate_limited_client import RateLimitedClient

logger = logging.getLogger(__name__)

API_BASE = "https://api.helius.xyz"
DAS_RPC_URL = "https://mainnet.helius-rpc.com"

# Some deployments reject the `limit` query parameter on the transactions endpoint
LIMIT_REJECTED = "invalid query parameter limit"

_RETRY = dict(
    retry=retry_if_exception_type(TransientServiceError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.25, max=4),
)


def _check_response(response: httpx.Response, what: str) -> Any:
    if response.status_code == 429 or response.status_code >= 500:
        raise TransientServiceError(
            f"Helius {what} error {response.status_code}: {response.text}",
            status_code=response.status_code,
        )
    if response.status_code >= 400:
        raise ExternalServiceError(
            f"Helius {what} error {response.status_code}: {response.text}",
            status_code=response.status_code,
        )
    return response.json()


def _balance_to_asset(token: dict) -> dict:
    """Map a REST /balances token entry to the DAS fungible asset shape."""
    token_amount = token.get("tokenAmount") if isinstance(token.get("tokenAmount"), dict) else {}
    mint = token.get("mint") or token.get("address") or token.get("tokenAddress") or token.get("id")
    decimals = token.get("decimals")
    if decimals is None:
        decimals = token_amount.get("decimals", 0)
    balance = token.get("amount")
    if balance is None:
        balance = token_amount.get("tokenAmount", 0)
    return {
        "interface": "FungibleToken",
        "id": mint,
        "token_info": {"decimals": decimals, "balance": balance},
    }


class HeliusClient:
    """Minimal Helius REST + RPC client used to build wallet portfolios."""

    def __init__(self, api_key: str, http_client: RateLimitedClient) -> None:
        self._api_key = api_key
        self._http = http_client

    def _require_api_key(self) -> None:
        if not self._api_key:
            raise ConfigurationError("Missing HELIUS_API_KEY. Add it to your .env file.")

    @retry(**_RETRY)
    async def _get(self, path: str, params: dict) -> Any:
        response = await self._http.get(f"{API_BASE}{path}", params={"api-key": self._api_key, **params})
        return _check_response(response, path)

    @retry(**_RETRY)
    async def _rpc(self, method: str, params: dict | list) -> Any:
        payload = {"jsonrpc": "2.0", "id": method, "method": method, "params": params}
        response = await self._http.post(DAS_RPC_URL, json=payload, params={"api-key": self._api_key})
        data = _check_response(response, method)
        if isinstance(data, dict) and "error" in data:
            error = data["error"]
            message = error.get("message", str(error)) if isinstance(error, dict) else str(error)
            raise ExternalServiceError(f"Helius RPC error ({method}): {message}")
        return data.get("result") if isinstance(data, dict) else None

    async def fetch_transactions(self, address: str, limit: int = 100, max_pages: int = 5) -> list[dict]:
        """Fetch enhanced transactions newest-first, paginating with the `before` signature."""
        self._require_api_key()
        path = f"/v0/addresses/{address}/transactions"
        transactions: list[dict] = []
        before: str | None = None
        send_limit = True

        for _ in range(max_pages):
            params: dict[str, str] = {}
            if before:
                params["before"] = before
            if send_limit:
                params["limit"] = str(limit)

            try:
                page = await self._get(path, params)
            except ExternalServiceError as exc:
                if not send_limit or LIMIT_REJECTED not in str(exc).lower():
                    raise
                logger.warning("Helius rejected the limit parameter, retrying without it")
                send_limit = False
                params.pop("limit")
                page = await self._get(path, params)

            if not isinstance(page, list) or not page:
                break
            transactions.extend(page)

            last = page[-1]
            before = last.get("signature") if isinstance(last, dict) else None
            if not before:
                break

        logger.info("Fetched %d transactions for %s", len(transactions), address)
        return transactions

    async def get_assets_by_owner(self, address: str, page: int = 1, limit: int = 1000) -> list[dict]:
        """DAS getAssetsByOwner (fungible included); falls back to the REST balances endpoint."""
        self._require_api_key()
        try:
            result = await self._rpc("getAssetsByOwner", {
                "ownerAddress": address,
                "page": page,
                "limit": limit,
                "displayOptions": {"showFungible": True},
            })
            if isinstance(result, dict) and isinstance(result.get("items"), list):
                return result["items"]
        except (ExternalServiceError, RetryError, httpx.HTTPError, ValueError):
            logger.warning("DAS getAssetsByOwner failed for %s, using balances fallback", address, exc_info=True)

        data = await self._get(f"/v0/addresses/{address}/balances", {})
        tokens = data.get("tokens") if isinstance(data, dict) else None
        if not isinstance(tokens, list):
            return []
        return [_balance_to_asset(t) for t in tokens if isinstance(t, dict)]

    async def fetch_all_assets(self, address: str, page_size: int = 1000, max_pages: int = 3) -> list[dict]:
        assets: list[dict] = []
        for page in range(1, max_pages + 1):
            items = await self.get_assets_by_owner(address, page=page, limit=page_size)
            assets.extend(items)
            if len(items) < page_size:
                break
        return assets

    async def get_native_balance(self, address: str) -> int:
        """Native SOL balance in lamports; 0 when the lookup fails."""
        self._require_api_key()
        try:
            result = await self._rpc("getBalance", [address, {"commitment": "confirmed"}])
        except (ExternalServiceError, RetryError, httpx.HTTPError, ValueError):
            logger.warning("getBalance failed for %s", address, exc_info=True)
            return 0
        value = result.get("value") if isinstance(result, dict) else result
        try:
            return int(value or 0)
        except (TypeError, ValueError):
            return 0
