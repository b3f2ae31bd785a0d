"""Live holdings snapshot from Helius DAS asset items."""

from decimal import Decimal

from walletpnl.parser.strategies import parse_decimal

SOL_MINT = "So11111111111111111111111111111111111111112"
SOL_DECIMALS = 9  # lamports


def _first_number(*values) -> Decimal | None:
    for value in values:
        number = parse_decimal(value)
        if number:
            return number
    return None


def holdings_from_assets(assets: list[dict]) -> dict[str, Decimal]:
    """Map mint -> human quantity for fungible token assets with a positive balance."""
    holdings: dict[str, Decimal] = {}
    for asset in assets:
        if not isinstance(asset, dict) or asset.get("interface") != "FungibleToken":
            continue
        mint = asset.get("id")
        if not mint:
            continue

        token_info = asset.get("token_info")
        if not isinstance(token_info, dict):
            token_info = {}
        raw_amount = asset.get("rawTokenAmount")
        if not isinstance(raw_amount, dict):
            raw_amount = {}
        decimals = _first_number(token_info.get("decimals"), raw_amount.get("decimals")) or Decimal(0)
        balance = _first_number(token_info.get("balance"), raw_amount.get("tokenAmount"))
        if balance is None or balance <= 0:
            continue

        holdings[mint] = balance.scaleb(-int(decimals))
    return holdings


def with_native_sol(holdings: dict[str, Decimal], lamports: int) -> dict[str, Decimal]:
    """Add native SOL as a pseudo-fungible holding unless already present."""
    if SOL_MINT in holdings or lamports <= 0:
        return holdings
    return {**holdings, SOL_MINT: Decimal(lamports).scaleb(-SOL_DECIMALS)}
