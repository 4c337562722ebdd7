from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from ..errors import DivisionByZeroError
from .ledger import Ledger, TradeType

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PerformanceSummary:
    """Profit/loss reduction of a completed ledger.

    Attributes:
        profit: Sum of all cash flows.
        invested: Total spent on buys, as a positive magnitude.
        roi: profit / invested in percent; NaN when nothing was invested.
        buys: Number of buy rows.
        sells: Number of full-liquidation rows.
        sell_halfs: Number of half-position sales.
        blocked_buys: Number of hold_blocked rows.
    """

    profit: float
    invested: float
    roi: float
    buys: int = 0
    sells: int = 0
    sell_halfs: int = 0
    blocked_buys: int = 0

    @property
    def roi_defined(self) -> bool:
        return not math.isnan(self.roi)

    def as_dict(self) -> dict[str, float]:
        return {
            "Profit": self.profit,
            "Invested": self.invested,
            "ROI": self.roi,
            "Buys": float(self.buys),
            "Sells": float(self.sells),
            "SellHalfs": float(self.sell_halfs),
            "BlockedBuys": float(self.blocked_buys),
        }


def roi_percent(profit: float, invested: float) -> float:
    """Return on investment in percent.

    Raises:
        DivisionByZeroError: If invested is zero.
    """
    if invested == 0:
        raise DivisionByZeroError("ROI is undefined with zero invested capital")
    return profit / invested * 100.0


def summarize(ledger: Ledger) -> PerformanceSummary:
    """Reduce a ledger to profit, invested capital and ROI.

    A ledger without buys cannot come out of the engines (the first row is a
    forced buy) but is still handled: ROI is reported as NaN.
    """
    profit = float(sum(row.cash_flow for row in ledger))
    invested = -float(sum(row.cash_flow for row in ledger if row.trade_type is TradeType.BUY))
    # Avoid reporting -0.0 when nothing was bought
    invested = abs(invested) if invested == 0 else invested

    try:
        roi = roi_percent(profit, invested)
    except DivisionByZeroError as exc:
        logger.warning("%s (ledger %r); reporting NaN", exc, ledger.name)
        roi = math.nan

    return PerformanceSummary(
        profit=profit,
        invested=invested,
        roi=roi,
        buys=ledger.count(TradeType.BUY),
        sells=ledger.count(TradeType.SELL),
        sell_halfs=ledger.count(TradeType.SELL_HALF),
        blocked_buys=ledger.count(TradeType.HOLD_BLOCKED),
    )
