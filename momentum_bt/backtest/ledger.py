from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import date
from enum import Enum

import numpy as np
import pandas as pd


class TradeType(str, Enum):
    BUY = "buy"
    HOLD = "hold"
    SELL = "sell"
    SELL_HALF = "sell_half"
    HOLD_BLOCKED = "hold_blocked"

    def __str__(self) -> str:
        return self.value


SELL_TYPES = (TradeType.SELL, TradeType.SELL_HALF)
HOLD_TYPES = (TradeType.HOLD, TradeType.HOLD_BLOCKED)


@dataclass(frozen=True)
class LedgerRow:
    """State of one strategy run after the trade on `date` is applied.

    Attributes:
        date: Trading day.
        close_price: Close on that day.
        trade_type: Decision taken on that day.
        cash_flow: Negative for purchases, positive for sales, zero otherwise.
        accumulated_shares: Shares held after the trade.
        avg_purchase_price: Cost basis of held shares (see the engine that
            built the ledger for how it is averaged).
        shares_traded: Shares bought or sold on that day.
    """

    date: date
    close_price: float
    trade_type: TradeType
    cash_flow: float
    accumulated_shares: int
    avg_purchase_price: float
    shares_traded: int = 0


class Ledger:
    """Ordered, immutable record of one strategy run (one row per date)."""

    __slots__ = ("_rows", "name")

    def __init__(self, rows: Iterable[LedgerRow], name: str = "") -> None:
        self._rows: tuple[LedgerRow, ...] = tuple(rows)
        self.name = name

    def __len__(self) -> int:
        return len(self._rows)

    def length(self) -> int:
        return len(self._rows)

    def __getitem__(self, i):
        return self._rows[i]

    def __iter__(self) -> Iterator[LedgerRow]:
        return iter(self._rows)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Ledger):
            return NotImplemented
        return self.name == other.name and self._rows == other._rows

    def __hash__(self) -> int:
        return hash((self.name, self._rows))

    def __repr__(self) -> str:
        return f"Ledger(name={self.name!r}, rows={len(self._rows)})"

    @property
    def rows(self) -> tuple[LedgerRow, ...]:
        return self._rows

    def trade_types(self) -> list[TradeType]:
        return [row.trade_type for row in self._rows]

    def count(self, trade_type: TradeType) -> int:
        return sum(1 for row in self._rows if row.trade_type is trade_type)

    def to_frame(self) -> pd.DataFrame:
        """Tabular form of the ledger, indexed by date.

        Returns DataFrame with columns:
        Close, TradeType, SharesTraded, CashFlow, CumCashFlow, CumShares, AvgPrice
        """
        idx = pd.DatetimeIndex(pd.to_datetime([row.date for row in self._rows]), name="Date")
        cash_flow = np.array([row.cash_flow for row in self._rows], dtype=float)
        return pd.DataFrame(
            {
                "Close": np.array([row.close_price for row in self._rows], dtype=float),
                "TradeType": [row.trade_type.value for row in self._rows],
                "SharesTraded": np.array([row.shares_traded for row in self._rows], dtype=int),
                "CashFlow": cash_flow,
                "CumCashFlow": np.cumsum(cash_flow),
                "CumShares": np.array([row.accumulated_shares for row in self._rows], dtype=int),
                "AvgPrice": np.array([row.avg_purchase_price for row in self._rows], dtype=float),
            },
            index=idx,
        )


def validate_ledger(ledger: Ledger, expected_rows: int) -> None:
    """Validate accounting invariants of a completed ledger.

    Raises:
        ValueError: If any invariant is violated.
    """
    if len(ledger) != expected_rows:
        raise ValueError(f"Ledger has {len(ledger)} rows, expected {expected_rows}")
    if ledger[0].trade_type is not TradeType.BUY:
        raise ValueError("First ledger row must be a buy")
    if ledger[-1].trade_type is not TradeType.SELL or ledger[-1].accumulated_shares != 0:
        raise ValueError("Last ledger row must liquidate the position")

    prev: LedgerRow | None = None
    for row in ledger:
        if row.accumulated_shares < 0:
            raise ValueError(f"Accumulated shares must never be negative ({row.date})")
        if row.trade_type is TradeType.BUY and row.cash_flow > 0:
            raise ValueError(f"Buy row with positive cash flow ({row.date})")
        if row.trade_type in SELL_TYPES and row.cash_flow < 0:
            raise ValueError(f"Sell row with negative cash flow ({row.date})")
        if row.trade_type in HOLD_TYPES and row.cash_flow != 0:
            raise ValueError(f"Hold row with non-zero cash flow ({row.date})")
        if prev is not None and row.trade_type is not TradeType.BUY:
            if row.avg_purchase_price != prev.avg_purchase_price:
                raise ValueError(f"Average price changed on a non-buy row ({row.date})")
        prev = row
