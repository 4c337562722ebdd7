"""CLI commands end-to-end on small CSV files."""

import json

import numpy as np
import pandas as pd
import pytest
from typer.testing import CliRunner

from momentum_bt.cli import app

runner = CliRunner()


def _json(output: str) -> dict:
    return json.loads(output[output.index("{"): output.rindex("}") + 1])


@pytest.fixture
def price_csv(tmp_path):
    path = tmp_path / "prices.csv"
    path.write_text(
        "Date,Close\n"
        "01/01/2024,10\n"
        "02/01/2024,9\n"
        "03/01/2024,8\n"
        "04/01/2024,12\n"
        "05/01/2024,20\n"
        "06/01/2024,5\n",
        encoding="utf-8",
    )
    return path


def test_run_prints_both_summaries(price_csv, tmp_path):
    export_dir = tmp_path / "out"
    result = runner.invoke(
        app,
        ["run", str(price_csv), "--lot-size", "1", "--threshold", "1.5", "--export-csv", str(export_dir)],
    )

    assert result.exit_code == 0, result.output
    metrics = _json(result.stdout)
    assert metrics["basic"]["Profit"] == pytest.approx(-12.0)
    assert metrics["profit_taking"]["Profit"] == pytest.approx(3.0)

    ledger = pd.read_csv(export_dir / "ledger_profit_taking.csv", encoding="utf-8-sig")
    assert ledger["TradeType"].tolist() == ["buy", "buy", "buy", "hold", "sell_half", "sell"]
    assert (export_dir / "ledger_basic.csv").exists()


def test_run_window(price_csv):
    result = runner.invoke(
        app,
        ["run", str(price_csv), "--lot-size", "1", "--start", "2024-01-02", "--end", "2024-01-04"],
    )

    assert result.exit_code == 0, result.output
    metrics = _json(result.stdout)
    # 9 buy, 8 buy, 12 sells 2 shares
    assert metrics["basic"]["Profit"] == pytest.approx(7.0)


def test_run_single_row_window_fails(price_csv):
    result = runner.invoke(
        app,
        ["run", str(price_csv), "--start", "2024-01-02", "--end", "2024-01-02"],
    )
    assert result.exit_code == 1


def test_run_missing_file_fails(tmp_path):
    result = runner.invoke(app, ["run", str(tmp_path / "missing.csv")])
    assert result.exit_code == 1


def test_run_rejects_bad_threshold(price_csv):
    result = runner.invoke(app, ["run", str(price_csv), "--threshold", "0.8"])
    assert result.exit_code != 0


def test_sweep_prints_table(price_csv):
    result = runner.invoke(app, ["sweep", str(price_csv), "--thresholds", "1.5,3.0", "--lot-sizes", "1"])

    assert result.exit_code == 0, result.output
    assert "PT_ROI" in result.stdout


def test_capm_command(tmp_path):
    rng = np.random.default_rng(5)
    n = 80
    bench_ret = rng.normal(0.0005, 0.01, size=n)
    asset_ret = 1.2 * bench_ret + rng.normal(0.0, 0.001, size=n)
    bench = 100.0 * np.cumprod(1.0 + np.concatenate([[0.0], bench_ret]))
    asset = 50.0 * np.cumprod(1.0 + np.concatenate([[0.0], asset_ret]))
    dates = pd.date_range("2023-01-02", periods=n + 1, freq="B").strftime("%d/%m/%Y")
    df = pd.DataFrame({"Date": dates, "asset": asset, "benchmark": bench, "risk_free": 0.0})
    path = tmp_path / "capm.csv"
    df.to_csv(path, index=False)

    result = runner.invoke(app, ["capm", str(path), "--benchmark-excess", "0.01"])

    assert result.exit_code == 0, result.output
    out = _json(result.stdout)
    assert out["capm"]["Beta"] == pytest.approx(1.2, abs=0.05)
    assert out["capm"]["Observations"] == n
    assert out["prediction"]["Lower"] < out["prediction"]["ExpectedExcess"] < out["prediction"]["Upper"]


@pytest.mark.parametrize("content", ["", 'Date,asset\n"01/01/2024,1\n'])
def test_capm_unreadable_csv_fails_cleanly(tmp_path, content):
    path = tmp_path / "bad.csv"
    path.write_text(content, encoding="utf-8")

    result = runner.invoke(app, ["capm", str(path)])

    assert result.exit_code == 1
    # typer.Exit surfaces as SystemExit; a pandas parse error would escape as itself
    assert isinstance(result.exception, SystemExit)
