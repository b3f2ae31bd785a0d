"""Domain types for swap deltas, FIFO lots and wallet PnL reports."""

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field


class Delta(BaseModel):
    """Signed balance change of one asset within one transaction."""

    model_config = ConfigDict(frozen=True)

    asset_id: str
    raw_amount: int  # smallest unit; negative = left the wallet
    decimals: int = Field(default=0, ge=0)

    @property
    def quantity(self) -> Decimal:
        """Human-unit quantity, exact: raw_amount / 10**decimals."""
        return Decimal(self.raw_amount).scaleb(-self.decimals)


class SwapEvent(BaseModel):
    """All deltas observed for the wallet within one transaction."""

    timestamp: int  # epoch milliseconds
    signature: str | None = None
    deltas: list[Delta]

    @property
    def inputs(self) -> list[Delta]:
        return [d for d in self.deltas if d.raw_amount < 0]

    @property
    def outputs(self) -> list[Delta]:
        return [d for d in self.deltas if d.raw_amount > 0]

    @property
    def asset_ids(self) -> list[str]:
        """Distinct assets in first-seen order."""
        return list(dict.fromkeys(d.asset_id for d in self.deltas))


class PricedLeg(BaseModel):
    asset_id: str
    quantity: Decimal  # signed, human units
    usd_price: Decimal = Field(ge=0)

    @property
    def usd_value(self) -> Decimal:
        return abs(self.quantity) * self.usd_price


class Lot(BaseModel):
    """A not-yet-sold acquisition tranche. Mutated in place by the ledger only."""

    quantity: Decimal
    cost_usd: Decimal


class OpenLot(BaseModel):
    asset_id: str
    quantity: Decimal
    cost_usd: Decimal


class ClosedLot(BaseModel):
    """One FIFO-matched slice of a sell against the oldest lot."""

    asset_id: str
    quantity: Decimal
    cost_usd: Decimal
    proceeds_usd: Decimal
    gain_usd: Decimal  # proceeds - cost


class UnrealizedPnL(BaseModel):
    total: Decimal = Decimal(0)
    by_asset: dict[str, Decimal] = {}


class Position(BaseModel):
    asset_id: str
    quantity: Decimal
    price_usd: Decimal
    value_usd: Decimal


class WalletReport(BaseModel):
    """Per-wallet summary: holdings value, realized and unrealized PnL."""

    wallet: str
    current_value_usd: Decimal = Decimal(0)
    realized_pnl_usd: Decimal = Decimal(0)
    unrealized_pnl_usd: Decimal = Decimal(0)
    positions: list[Position] = []
    missing_price_assets: list[str] = []
    unrealized_by_asset: dict[str, Decimal] = {}
    open_lots: list[OpenLot] = []
    closed_lots: list[ClosedLot] = []
    swap_count: int = 0
