"""Delta extraction strategies for Helius enhanced-transaction records.

Each strategy is a pure function ``(tx_data, wallet) -> list[Delta] | None``.
``None`` or an empty list means "this shape is not present, try the next one".
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Iterable

from walletpnl.domain.models.pnl import Delta

ExtractionStrategy = Callable[[dict, str], list[Delta] | None]


def parse_decimal(value: Any) -> Decimal | None:
    """Parse a JSON number or numeric string. Non-numeric and non-finite -> None."""
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, str, Decimal)):
        return None
    try:
        result = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    if not result.is_finite():
        return None
    return result


def _first_decimals(candidates: Iterable[Any]) -> int:
    for candidate in candidates:
        value = parse_decimal(candidate)
        if value is not None and value >= 0 and value == value.to_integral_value():
            return int(value)
    return 0


def _scale_display(display: Decimal, decimals: int) -> tuple[int, int]:
    """Convert a display amount to (raw_amount, decimals) without losing precision.

    Widens decimals when the display value carries more fractional digits than known.
    """
    scaled = display.scaleb(decimals)
    if scaled != scaled.to_integral_value():
        decimals += -scaled.normalize().as_tuple().exponent
        scaled = display.scaleb(decimals)
    return int(scaled), decimals


def _resolve_amount(
    raw_descriptor: Any,
    display_candidates: Iterable[Any],
    decimals_candidates: Iterable[Any],
) -> tuple[int, int] | None:
    """Return (raw_amount, decimals), preferring the raw descriptor over display amounts."""
    decimals = _first_decimals(decimals_candidates)

    if isinstance(raw_descriptor, dict):
        raw = parse_decimal(raw_descriptor.get("tokenAmount"))
        if raw is not None and raw == raw.to_integral_value():
            return int(raw), decimals

    for candidate in display_candidates:
        display = parse_decimal(candidate)
        if display is not None:
            return _scale_display(display, decimals)

    return None


def _make_delta(asset_id: Any, amount: tuple[int, int] | None, sign: int) -> Delta | None:
    if not asset_id or not isinstance(asset_id, str) or amount is None:
        return None
    raw, decimals = amount
    if raw == 0:
        return None
    return Delta(asset_id=asset_id, raw_amount=sign * abs(raw), decimals=decimals)


def _swap_leg(item: Any, sign: int) -> Delta | None:
    if not isinstance(item, dict):
        return None
    raw_descriptor = item.get("rawTokenAmount")
    raw_decimals = raw_descriptor.get("decimals") if isinstance(raw_descriptor, dict) else None
    amount = _resolve_amount(
        raw_descriptor,
        display_candidates=[item.get("tokenAmount")],
        decimals_candidates=[raw_decimals, item.get("decimals")],
    )
    return _make_delta(item.get("mint"), amount, sign)


def swap_event_deltas(tx_data: dict, wallet: str) -> list[Delta] | None:
    """Structured ``events.swap`` annotation: inputs negative, outputs positive."""
    events = tx_data.get("events")
    swaps = events.get("swap") if isinstance(events, dict) else None
    if isinstance(swaps, dict):
        swaps = [swaps]
    if not isinstance(swaps, list) or not swaps:
        return None

    deltas: list[Delta] = []
    for swap in swaps:
        if not isinstance(swap, dict):
            continue
        for item in swap.get("tokenInputs") or []:
            delta = _swap_leg(item, sign=-1)
            if delta is not None:
                deltas.append(delta)
        for item in swap.get("tokenOutputs") or []:
            delta = _swap_leg(item, sign=1)
            if delta is not None:
                deltas.append(delta)
    return deltas


def token_transfer_deltas(tx_data: dict, wallet: str) -> list[Delta] | None:
    """Flat ``tokenTransfers`` list: keep transfers where the wallet is sender or receiver."""
    transfers = tx_data.get("tokenTransfers")
    if not isinstance(transfers, list):
        return None

    deltas: list[Delta] = []
    for transfer in transfers:
        if not isinstance(transfer, dict):
            continue
        is_receiver = transfer.get("toUserAccount") == wallet
        is_sender = transfer.get("fromUserAccount") == wallet
        if not is_receiver and not is_sender:
            continue

        token_amount = transfer.get("tokenAmount")
        token_standard = transfer.get("tokenStandard")
        raw_descriptor = transfer.get("rawTokenAmount")
        if not isinstance(raw_descriptor, dict) and isinstance(token_amount, dict):
            raw_descriptor = token_amount

        amount = _resolve_amount(
            raw_descriptor,
            display_candidates=[
                None if isinstance(token_amount, dict) else token_amount,
                transfer.get("amount"),
            ],
            decimals_candidates=[
                raw_descriptor.get("decimals") if isinstance(raw_descriptor, dict) else None,
                token_standard.get("decimals") if isinstance(token_standard, dict) else None,
                transfer.get("decimals"),
            ],
        )
        asset_id = transfer.get("mint") or transfer.get("tokenAddress")
        # Receiving wins for self-transfers
        delta = _make_delta(asset_id, amount, sign=1 if is_receiver else -1)
        if delta is not None:
            deltas.append(delta)
    return deltas
