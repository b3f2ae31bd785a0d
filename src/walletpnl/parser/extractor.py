"""Turn raw transaction records into per-wallet swap events."""

import logging
from typing import Any, Iterable, Sequence

from walletpnl.domain.models.pnl import Delta, SwapEvent
from walletpnl.parser.strategies import (
    ExtractionStrategy,
    parse_decimal,
    swap_event_deltas,
    token_transfer_deltas,
)

logger = logging.getLogger(__name__)

# Tried in order; the first strategy returning deltas wins (no merging)
EXTRACTION_STRATEGIES: tuple[ExtractionStrategy, ...] = (
    swap_event_deltas,
    token_transfer_deltas,
)


def extract_deltas(
    tx_data: dict,
    wallet: str,
    strategies: Sequence[ExtractionStrategy] = EXTRACTION_STRATEGIES,
) -> list[Delta]:
    """Return the deltas of the first strategy that recognises this record."""
    for strategy in strategies:
        deltas = strategy(tx_data, wallet)
        if deltas:
            return deltas
    return []


def _timestamp_ms(tx_data: dict) -> int:
    seconds = parse_decimal(tx_data.get("timestamp") or tx_data.get("blockTime") or 0)
    if seconds is None:
        return 0
    return int(seconds * 1000)


def _signature(tx_data: dict) -> str | None:
    signature = tx_data.get("signature")
    if signature:
        return str(signature)
    transaction = tx_data.get("transaction")
    if isinstance(transaction, dict):
        signatures = transaction.get("signatures") or []
        if isinstance(signatures, list) and signatures:
            return str(signatures[0])
    return None


def swap_event_from(tx_data: Any, wallet: str) -> SwapEvent | None:
    """Build a SwapEvent, or None when the record yields no deltas."""
    if not isinstance(tx_data, dict):
        return None
    deltas = extract_deltas(tx_data, wallet)
    if not deltas:
        return None
    return SwapEvent(timestamp=_timestamp_ms(tx_data), signature=_signature(tx_data), deltas=deltas)


def extract_swap_events(transactions: Iterable[Any], wallet: str) -> list[SwapEvent]:
    """Extract swap events for a wallet, preserving input order."""
    events: list[SwapEvent] = []
    skipped = 0
    for tx_data in transactions:
        event = swap_event_from(tx_data, wallet)
        if event is None:
            skipped += 1
            continue
        events.append(event)

    logger.debug("Extracted %d swap events for %s (%d records without deltas)", len(events), wallet, skipped)
    return events
