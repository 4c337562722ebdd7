from __future__ import annotations

import logging
import numbers
from dataclasses import dataclass, replace

import pandas as pd

from ..data.series import PriceSeries
from ..errors import InputMismatchError, InsufficientDataError
from ..strategy.momentum import (
    MomentumSource,
    basic_step,
    generate_momentum_signals,
    profit_taking_step,
)
from .ledger import Ledger, LedgerRow, TradeType, validate_ledger
from .metrics import PerformanceSummary, summarize

logger = logging.getLogger(__name__)

BASIC = "basic"
PROFIT_TAKING = "profit_taking"


@dataclass(frozen=True)
class BacktestParams:
    share_lot_size: int = 100
    profit_threshold: float = 1.5  # Multiplier over average cost (e.g., 1.5 for +50%)
    momentum_source: MomentumSource = "ledger"  # 'ledger' reads basic labels, 'recompute' retests prices

    def __post_init__(self):
        """Validate strategy parameters."""
        _check_lot_size(self.share_lot_size)
        _check_threshold(self.profit_threshold)
        if self.momentum_source not in ("ledger", "recompute"):
            raise ValueError("momentum_source must be 'ledger' or 'recompute'")


def _check_lot_size(share_lot_size: int) -> None:
    if isinstance(share_lot_size, bool) or not isinstance(share_lot_size, numbers.Integral):
        raise ValueError("share_lot_size must be an integer")
    if share_lot_size <= 0:
        raise ValueError("share_lot_size must be positive")


def _check_threshold(profit_threshold: float) -> None:
    if not profit_threshold > 1.0:
        raise ValueError("profit_threshold must be greater than 1.0 (e.g., 1.5 for +50%)")


def _check_length(series: PriceSeries) -> int:
    n = series.length()
    if n < 2:
        raise InsufficientDataError(f"At least 2 price rows are required, got {n}")
    return n


def run_basic(series: PriceSeries, share_lot_size: int = 100) -> Ledger:
    """Run the momentum-following strategy.

    Buys one lot on the first day and on every day the close is below the
    previous close, holds otherwise, and liquidates everything on the last day.

    Args:
        series: Price series with at least 2 rows.
        share_lot_size: Shares bought per buy event.

    Returns:
        Fully populated Ledger, one row per date.
    """
    _check_lot_size(share_lot_size)
    n = _check_length(series)

    signals = generate_momentum_signals(series.to_series()).to_numpy()

    rows: list[LedgerRow] = []
    prev: LedgerRow | None = None
    for i in range(n):
        prev = basic_step(
            prev,
            series.date_at(i),
            series.price_at(i),
            buy_signal=bool(signals[i]),
            share_lot_size=share_lot_size,
            is_last=i == n - 1,
        )
        rows.append(prev)

    ledger = Ledger(rows, name=BASIC)
    validate_ledger(ledger, n)
    logger.debug("Basic run: %d rows, %d buys", n, ledger.count(TradeType.BUY))
    return ledger


def run_profit_taking(
    series: PriceSeries,
    basic_ledger: Ledger,
    share_lot_size: int = 100,
    profit_threshold: float = 1.5,
    momentum_source: MomentumSource = "ledger",
) -> Ledger:
    """Run the profit-taking overlay on top of a basic ledger.

    The first row is the basic ledger's forced buy with the cost basis set
    to the first close. After that each day is, in order: forced
    liquidation on the last day; sell half when the close exceeds
    `profit_threshold` times the average cost (or block the buy when fewer
    than two shares are held); buy a lot on a momentum signal; hold.

    Args:
        series: Price series with at least 2 rows.
        basic_ledger: Ledger from `run_basic` over the same series; its buy
            labels are the momentum signal when `momentum_source='ledger'`.
        share_lot_size: Shares bought per buy event.
        profit_threshold: Multiplier over average cost (> 1.0).
        momentum_source: 'ledger' to read basic labels, 'recompute' to test
            close < previous close directly.

    Returns:
        Fully populated Ledger, one row per date.
    """
    _check_lot_size(share_lot_size)
    _check_threshold(profit_threshold)
    n = _check_length(series)
    if len(basic_ledger) != n:
        raise InputMismatchError(f"Basic ledger has {len(basic_ledger)} rows but series has {n}")
    if basic_ledger[0].trade_type is not TradeType.BUY:
        raise InputMismatchError(f"Basic ledger must open with a buy, got {basic_ledger[0].trade_type}")

    if momentum_source == "ledger":
        buy_signals = [row.trade_type is TradeType.BUY for row in basic_ledger]
    elif momentum_source == "recompute":
        buy_signals = generate_momentum_signals(series.to_series()).tolist()
    else:
        raise ValueError("momentum_source must be 'ledger' or 'recompute'")

    prev = replace(
        basic_ledger[0],
        date=series.date_at(0),
        close_price=series.price_at(0),
        avg_purchase_price=series.price_at(0),
    )
    rows: list[LedgerRow] = [prev]
    for i in range(1, n):
        prev = profit_taking_step(
            prev,
            series.date_at(i),
            series.price_at(i),
            buy_signal=bool(buy_signals[i]),
            share_lot_size=share_lot_size,
            profit_threshold=profit_threshold,
            is_last=i == n - 1,
        )
        rows.append(prev)

    ledger = Ledger(rows, name=PROFIT_TAKING)
    validate_ledger(ledger, n)
    logger.debug(
        "Profit-taking run: %d rows, %d buys, %d half sells, %d blocked",
        n,
        ledger.count(TradeType.BUY),
        ledger.count(TradeType.SELL_HALF),
        ledger.count(TradeType.HOLD_BLOCKED),
    )
    return ledger


@dataclass(frozen=True)
class BacktestResult:
    params: BacktestParams
    basic: Ledger
    profit_taking: Ledger
    basic_summary: PerformanceSummary
    profit_taking_summary: PerformanceSummary

    def comparison(self) -> pd.DataFrame:
        """One row of summary metrics per strategy."""
        return pd.DataFrame(
            [self.basic_summary.as_dict(), self.profit_taking_summary.as_dict()],
            index=pd.Index([BASIC, PROFIT_TAKING], name="Strategy"),
        )

    def metrics(self) -> dict[str, dict[str, float]]:
        return {
            BASIC: self.basic_summary.as_dict(),
            PROFIT_TAKING: self.profit_taking_summary.as_dict(),
        }


def run_backtest(series: PriceSeries, params: BacktestParams | None = None) -> BacktestResult:
    """Run both strategies over `series` and summarize them.

    Args:
        series: Price series with at least 2 rows.
        params: Strategy parameters. Defaults to BacktestParams().

    Returns:
        BacktestResult with both ledgers and their summaries.
    """
    if params is None:
        params = BacktestParams()

    basic = run_basic(series, params.share_lot_size)
    profit_taking = run_profit_taking(
        series,
        basic,
        share_lot_size=params.share_lot_size,
        profit_threshold=params.profit_threshold,
        momentum_source=params.momentum_source,
    )
    return BacktestResult(
        params=params,
        basic=basic,
        profit_taking=profit_taking,
        basic_summary=summarize(basic),
        profit_taking_summary=summarize(profit_taking),
    )
