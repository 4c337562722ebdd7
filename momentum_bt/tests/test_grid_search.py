"""Threshold / lot-size sweep."""

import pandas as pd
import pytest

from momentum_bt.data.series import PriceSeries
from momentum_bt.optimization.grid_search import (
    evaluate_params,
    generate_param_space,
    rank_results,
    run_search,
)


def _series() -> PriceSeries:
    idx = pd.date_range("2024-01-01", periods=6, freq="D")
    return PriceSeries.load(zip(idx, [10.0, 9.0, 8.0, 12.0, 20.0, 5.0]))


def test_generate_param_space_is_full_grid():
    space = generate_param_space(thresholds=[1.2, 1.5], lot_sizes=[1, 10, 100])
    assert len(space) == 6
    assert {(p.profit_threshold, p.share_lot_size) for p in space} == {
        (t, lot) for t in (1.2, 1.5) for lot in (1, 10, 100)
    }


def test_generate_param_space_validates():
    with pytest.raises(ValueError):
        generate_param_space(thresholds=[0.9])
    with pytest.raises(ValueError):
        generate_param_space(lot_sizes=[0])


def test_evaluate_params_matches_minicase():
    (params,) = generate_param_space(thresholds=[1.5], lot_sizes=[1])
    row = evaluate_params(params, _series())

    assert row["Basic_Profit"] == pytest.approx(-12.0)
    assert row["PT_Profit"] == pytest.approx(3.0)
    assert row["PT_SellHalfs"] == 1
    assert row["ROI_Edge"] == pytest.approx((3.0 + 12.0) / 27.0 * 100.0)


def test_run_search_ranks_and_saves(tmp_path):
    out = tmp_path / "sweep" / "results.csv"
    space = generate_param_space(thresholds=[1.5, 3.0], lot_sizes=[1])

    ranked = run_search(_series(), space, output_path=out)

    assert len(ranked) == 2
    # 1.5 takes profit on day 5; 3.0 never triggers and matches the basic run
    assert ranked.loc[0, "profit_threshold"] == 1.5
    assert ranked.loc[1, "PT_Profit"] == pytest.approx(-12.0)
    assert out.exists()
    saved = pd.read_csv(out)
    assert saved["profit_threshold"].tolist() == [1.5, 3.0]


def test_rank_results_puts_nan_last():
    df = pd.DataFrame(
        {
            "PT_ROI": [float("nan"), 5.0, 5.0, 10.0],
            "PT_Profit": [0.0, 1.0, 2.0, 3.0],
            "tag": ["nan", "low", "high", "top"],
        }
    )
    ranked = rank_results(df)
    assert ranked["tag"].tolist() == ["top", "high", "low", "nan"]
