"""Hand-computed 6-day scenario for both strategies - no network dependency."""

import math
from datetime import date

import pandas as pd
import pytest

from momentum_bt.backtest.engine import BacktestParams, run_backtest, run_basic, run_profit_taking
from momentum_bt.backtest.ledger import TradeType
from momentum_bt.data.series import PriceSeries


def _series(values: list[float]) -> PriceSeries:
    idx = pd.date_range("2024-01-01", periods=len(values), freq="D")
    return PriceSeries.load(zip(idx, values))


def test_basic_ledger_minicase():
    """Prices [10, 9, 8, 12, 20, 5], lot=1.

    Day 1 forced buy (-10), days 2-3 close below previous close (-9, -8),
    days 4-5 hold, day 6 forced sale of 3 shares at 5 (+15).
    """
    ledger = run_basic(_series([10.0, 9.0, 8.0, 12.0, 20.0, 5.0]), share_lot_size=1)

    assert ledger.trade_types() == [
        TradeType.BUY,
        TradeType.BUY,
        TradeType.BUY,
        TradeType.HOLD,
        TradeType.HOLD,
        TradeType.SELL,
    ]
    assert [row.cash_flow for row in ledger] == [-10.0, -9.0, -8.0, 0.0, 0.0, 15.0]
    assert [row.accumulated_shares for row in ledger] == [1, 2, 3, 3, 3, 0]
    assert ledger[0].date == date(2024, 1, 1)
    assert ledger[-1].shares_traded == 3

    # Unweighted mean of buy prices: (10 + 9) / 2, then (10 + 9 + 8) / 3
    assert [row.avg_purchase_price for row in ledger] == pytest.approx([10.0, 9.5, 9.0, 9.0, 9.0, 9.0])


def test_profit_taking_ledger_minicase():
    """Same prices, lot=1, threshold=1.5.

    Day 2: 9 <= 1.5*10, basic buy -> buy, avg (10+9)/2 = 9.5
    Day 3: 8 <= 1.5*9.5, basic buy -> buy, avg (9.5*2+8)/3 = 9.0
    Day 4: 12 <= 13.5, basic hold -> hold
    Day 5: 20 > 13.5 with 3 shares -> sell_half, sell 1 share (+20)
    Day 6: forced sale of 2 shares at 5 (+10)
    """
    series = _series([10.0, 9.0, 8.0, 12.0, 20.0, 5.0])
    basic = run_basic(series, share_lot_size=1)
    ledger = run_profit_taking(series, basic, share_lot_size=1, profit_threshold=1.5)

    assert ledger.trade_types() == [
        TradeType.BUY,
        TradeType.BUY,
        TradeType.BUY,
        TradeType.HOLD,
        TradeType.SELL_HALF,
        TradeType.SELL,
    ]
    assert [row.cash_flow for row in ledger] == [-10.0, -9.0, -8.0, 0.0, 20.0, 10.0]
    assert [row.accumulated_shares for row in ledger] == [1, 2, 3, 3, 2, 0]
    assert [row.avg_purchase_price for row in ledger] == pytest.approx([10.0, 9.5, 9.0, 9.0, 9.0, 9.0])


def test_minicase_summaries():
    result = run_backtest(
        _series([10.0, 9.0, 8.0, 12.0, 20.0, 5.0]),
        BacktestParams(share_lot_size=1, profit_threshold=1.5),
    )

    assert result.basic_summary.profit == pytest.approx(-12.0)
    assert result.basic_summary.invested == pytest.approx(27.0)
    assert result.basic_summary.roi == pytest.approx(-12.0 / 27.0 * 100.0)

    assert result.profit_taking_summary.profit == pytest.approx(3.0)
    assert result.profit_taking_summary.invested == pytest.approx(27.0)
    assert result.profit_taking_summary.roi == pytest.approx(3.0 / 27.0 * 100.0)
    assert result.profit_taking_summary.sell_halfs == 1

    comparison = result.comparison()
    assert list(comparison.index) == ["basic", "profit_taking"]
    assert comparison.loc["profit_taking", "Profit"] == pytest.approx(3.0)
    assert not math.isnan(comparison.loc["basic", "ROI"])


def test_ledger_frame_columns():
    ledger = run_basic(_series([10.0, 9.0, 8.0, 12.0, 20.0, 5.0]), share_lot_size=1)
    frame = ledger.to_frame()

    assert list(frame.columns) == [
        "Close",
        "TradeType",
        "SharesTraded",
        "CashFlow",
        "CumCashFlow",
        "CumShares",
        "AvgPrice",
    ]
    assert frame.index.name == "Date"
    assert frame["TradeType"].iloc[0] == "buy"
    assert frame["CumCashFlow"].iloc[-1] == pytest.approx(-12.0)
    assert frame["CumShares"].iloc[-1] == 0


def test_basic_average_is_mean_of_buy_prices():
    """Lot=100, buys at 20, 16, 12, 8: mean 14 regardless of lot size."""
    ledger = run_basic(_series([20.0, 16.0, 12.0, 8.0, 30.0]), share_lot_size=100)

    assert ledger.count(TradeType.BUY) == 4
    assert [row.avg_purchase_price for row in ledger] == pytest.approx([20.0, 18.0, 16.0, 14.0, 14.0])
