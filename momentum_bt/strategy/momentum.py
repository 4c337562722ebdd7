from __future__ import annotations

from datetime import date
from typing import Literal

import pandas as pd

from ..backtest.ledger import LedgerRow, TradeType

MomentumSource = Literal["ledger", "recompute"]


def generate_momentum_signals(close: pd.Series) -> pd.Series:
    """Generate buy signals where the close is below the previous close.

    Args:
        close: Series of close prices indexed by date.

    Returns:
        Boolean Series indexed by date.
    """
    close = close.astype(float)
    signals = close < close.shift(1)
    signals.iloc[0] = False  # first day has no prior close
    return signals


def open_position(day: date, price: float, share_lot_size: int) -> LedgerRow:
    """Forced first-day purchase of one lot."""
    return LedgerRow(
        date=day,
        close_price=price,
        trade_type=TradeType.BUY,
        cash_flow=-share_lot_size * price,
        accumulated_shares=share_lot_size,
        avg_purchase_price=price,
        shares_traded=share_lot_size,
    )


def liquidate(prev: LedgerRow, day: date, price: float) -> LedgerRow:
    """Forced last-day sale of every held share; cost basis is carried."""
    return LedgerRow(
        date=day,
        close_price=price,
        trade_type=TradeType.SELL,
        cash_flow=prev.accumulated_shares * price,
        accumulated_shares=0,
        avg_purchase_price=prev.avg_purchase_price,
        shares_traded=prev.accumulated_shares,
    )


def carry(prev: LedgerRow, day: date, price: float, trade_type: TradeType) -> LedgerRow:
    """No trade: shares and cost basis carry forward."""
    return LedgerRow(
        date=day,
        close_price=price,
        trade_type=trade_type,
        cash_flow=0.0,
        accumulated_shares=prev.accumulated_shares,
        avg_purchase_price=prev.avg_purchase_price,
        shares_traded=0,
    )


def basic_step(
    prev: LedgerRow | None,
    day: date,
    price: float,
    buy_signal: bool,
    share_lot_size: int,
    is_last: bool,
) -> LedgerRow:
    """Momentum-following transition from the previous row to `day`.

    The cost basis here is the unweighted mean of buy prices since the
    position was opened. Lots are fixed and nothing is sold before the last
    day, so the number of earlier buys is held shares // lot size. The basic
    rule never reads it.
    """
    if prev is None:
        return open_position(day, price, share_lot_size)
    if is_last:
        return liquidate(prev, day, price)
    if buy_signal:
        return LedgerRow(
            date=day,
            close_price=price,
            trade_type=TradeType.BUY,
            cash_flow=-share_lot_size * price,
            accumulated_shares=prev.accumulated_shares + share_lot_size,
            avg_purchase_price=unweighted_average_price(
                prev.avg_purchase_price, prev.accumulated_shares // share_lot_size, price
            ),
            shares_traded=share_lot_size,
        )
    return carry(prev, day, price, TradeType.HOLD)


def unweighted_average_price(avg_price: float, buys: int, price: float) -> float:
    """Mean of `buys` earlier purchase prices (averaging `avg_price`) and `price`."""
    return (avg_price * buys + price) / (buys + 1)


def weighted_average_price(avg_price: float, shares: int, price: float, new_shares: int) -> float:
    """Volume-weighted cost basis after buying `new_shares` at `price`."""
    total = shares + new_shares
    return (avg_price * shares + price * new_shares) / total


def profit_taking_step(
    prev: LedgerRow,
    day: date,
    price: float,
    buy_signal: bool,
    share_lot_size: int,
    profit_threshold: float,
    is_last: bool,
) -> LedgerRow:
    """Profit-taking transition from the previous row to `day`.

    Checks run in a fixed order: forced liquidation, profit-take (sell half,
    or block the buy when fewer than two shares are held), momentum buy,
    hold.
    """
    if is_last:
        return liquidate(prev, day, price)

    held = prev.accumulated_shares
    if price > profit_threshold * prev.avg_purchase_price:
        if held >= 2:
            to_sell = held // 2
            return LedgerRow(
                date=day,
                close_price=price,
                trade_type=TradeType.SELL_HALF,
                cash_flow=to_sell * price,
                accumulated_shares=held - to_sell,
                avg_purchase_price=prev.avg_purchase_price,
                shares_traded=to_sell,
            )
        return carry(prev, day, price, TradeType.HOLD_BLOCKED)

    if buy_signal:
        return LedgerRow(
            date=day,
            close_price=price,
            trade_type=TradeType.BUY,
            cash_flow=-share_lot_size * price,
            accumulated_shares=held + share_lot_size,
            avg_purchase_price=weighted_average_price(prev.avg_purchase_price, held, price, share_lot_size),
            shares_traded=share_lot_size,
        )
    return carry(prev, day, price, TradeType.HOLD)
