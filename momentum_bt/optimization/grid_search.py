from __future__ import annotations

import itertools
import logging
from collections.abc import Iterable
from pathlib import Path

import pandas as pd

from ..backtest.engine import BacktestParams, run_backtest
from ..data.series import PriceSeries
from ..strategy.momentum import MomentumSource

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = [
    "profit_threshold",
    "share_lot_size",
    "momentum_source",
    "Basic_Profit",
    "Basic_Invested",
    "Basic_ROI",
    "PT_Profit",
    "PT_Invested",
    "PT_ROI",
    "PT_SellHalfs",
    "PT_BlockedBuys",
    "ROI_Edge",
]


def generate_param_space(
    thresholds: Iterable[float] = (1.2, 1.5, 2.0),
    lot_sizes: Iterable[int] = (100,),
    momentum_source: MomentumSource = "ledger",
) -> list[BacktestParams]:
    """Generate the full grid of strategy parameters.

    Args:
        thresholds: Profit-take multipliers to try (each > 1.0).
        lot_sizes: Share lot sizes to try (each a positive integer).
        momentum_source: Buy-signal source shared by every combination.

    Returns:
        List of BacktestParams in threshold-major order.
    """
    return [
        BacktestParams(
            share_lot_size=int(lot),
            profit_threshold=float(threshold),
            momentum_source=momentum_source,
        )
        for threshold, lot in itertools.product(thresholds, lot_sizes)
    ]


def evaluate_params(params: BacktestParams, series: PriceSeries) -> dict[str, float | int | str]:
    """Run one parameter set and flatten both summaries into a single row."""
    result = run_backtest(series, params)
    basic = result.basic_summary
    pt = result.profit_taking_summary
    return {
        "profit_threshold": params.profit_threshold,
        "share_lot_size": params.share_lot_size,
        "momentum_source": params.momentum_source,
        "Basic_Profit": basic.profit,
        "Basic_Invested": basic.invested,
        "Basic_ROI": basic.roi,
        "PT_Profit": pt.profit,
        "PT_Invested": pt.invested,
        "PT_ROI": pt.roi,
        "PT_SellHalfs": pt.sell_halfs,
        "PT_BlockedBuys": pt.blocked_buys,
        "ROI_Edge": pt.roi - basic.roi,
    }


def rank_results(results: pd.DataFrame) -> pd.DataFrame:
    """Sort sweep results, best profit-taking ROI first (ties: higher profit).

    Rows with undefined ROI sort last.
    """
    if results.empty:
        return results
    ranked = results.sort_values(
        by=["PT_ROI", "PT_Profit"],
        ascending=[False, False],
        na_position="last",
        kind="mergesort",
    )
    return ranked.reset_index(drop=True)


def run_search(
    series: PriceSeries,
    param_space: list[BacktestParams],
    output_path: Path | None = None,
) -> pd.DataFrame:
    """Run every parameter set over `series` and return the ranked table.

    Args:
        series: Price series shared by every run.
        param_space: Parameter sets to evaluate (e.g., from generate_param_space).
        output_path: Optional CSV file to save the ranked table to.

    Returns:
        Ranked DataFrame, one row per parameter set.
    """
    rows = []
    for i, params in enumerate(param_space):
        rows.append(evaluate_params(params, series))
        logger.debug("Evaluated %d/%d: %s", i + 1, len(param_space), params)

    ranked = rank_results(pd.DataFrame(rows, columns=SUMMARY_COLUMNS))

    if output_path is not None:
        _save_results(ranked, Path(output_path))

    return ranked


def _save_results(results: pd.DataFrame, output_path: Path) -> None:
    """Save results to a CSV file."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    results.to_csv(output_path, index=False)
    logger.info("Saved %d sweep results to %s", len(results), output_path)
