from __future__ import annotations

import json
import logging
from datetime import date
from pathlib import Path

import pandas as pd
import typer

from .analysis.capm import build_returns_table, estimate_capm
from .backtest.engine import BacktestParams, run_backtest
from .config import get_settings, setup_logging
from .data.csv_loader import load_price_csv
from .errors import BacktestError, DataError
from .optimization.grid_search import generate_param_space, run_search


app = typer.Typer(help="momentum-bt CLI")
logger = logging.getLogger(__name__)


def _parse_iso(value: str | None, name: str) -> date | None:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise typer.BadParameter(f"{name} must be YYYY-MM-DD") from exc


def _fail(exc: Exception) -> None:
    typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _parse_list(value: str, cast: type) -> list:
    try:
        return [cast(v.strip()) for v in value.split(",") if v.strip()]
    except ValueError as exc:
        raise typer.BadParameter(f"Invalid list value: {value!r}") from exc


@app.command("run")
def run(
    csv_path: Path = typer.Argument(..., help="CSV file with Date and Close columns"),
    start: str | None = typer.Option(None, help="Start date YYYY-MM-DD (default: START_DATE)"),
    end: str | None = typer.Option(None, help="End date YYYY-MM-DD (default: END_DATE)"),
    lot_size: int | None = typer.Option(None, help="Shares per buy event (default: SHARE_LOT_SIZE)"),
    threshold: float | None = typer.Option(None, help="Profit-take multiplier over average cost (default: PROFIT_THRESHOLD)"),
    momentum_source: str | None = typer.Option(None, help="Buy signal source: ledger | recompute"),
    date_format: str | None = typer.Option(None, help="strptime format of the Date column"),
    date_column: str = typer.Option("Date", help="Name of the date column"),
    price_column: str = typer.Option("Close", help="Name of the price column"),
    export_csv: Path | None = typer.Option(None, help="Directory to export both ledgers as CSV"),
    debug: bool = typer.Option(False, help="Enable debug logging"),
) -> None:
    """Run the basic and profit-taking strategies and print their summaries."""
    settings = get_settings()
    setup_logging(settings, debug=debug)

    start_d = _parse_iso(start, "start") or settings.start_date
    end_d = _parse_iso(end, "end") or settings.end_date
    if start_d and end_d and end_d < start_d:
        raise typer.BadParameter("end must be >= start")

    try:
        params = BacktestParams(
            share_lot_size=lot_size if lot_size is not None else settings.share_lot_size,
            profit_threshold=threshold if threshold is not None else settings.profit_threshold,
            momentum_source=momentum_source or settings.momentum_source,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        series = load_price_csv(
            csv_path,
            start_d,
            end_d,
            date_column=date_column,
            price_column=price_column,
            date_format=date_format or settings.date_format,
        )
        result = run_backtest(series, params)
    except BacktestError as exc:
        _fail(exc)

    typer.echo(json.dumps(result.metrics(), indent=2, default=float))

    if export_csv:
        export_csv.mkdir(parents=True, exist_ok=True)
        for ledger in (result.basic, result.profit_taking):
            out = export_csv / f"ledger_{ledger.name}.csv"
            try:
                ledger.to_frame().to_csv(out, encoding="utf-8-sig")
                typer.secho(f"Saved {ledger.name} ledger to {out}", fg=typer.colors.GREEN)
            except OSError as exc:  # pragma: no cover - filesystem issues
                typer.secho(f"Failed to save CSV: {exc}", fg=typer.colors.RED)


@app.command("capm")
def capm(
    csv_path: Path = typer.Argument(..., help="CSV with Date, asset, benchmark, risk_free columns"),
    confidence: float = typer.Option(0.95, help="Confidence level for intervals"),
    benchmark_excess: float | None = typer.Option(None, help="Benchmark excess return to predict for"),
    periods_per_year: int = typer.Option(252, help="Periods per year for the risk-free rate"),
    date_format: str | None = typer.Option(None, help="strptime format of the Date column"),
    date_column: str = typer.Option("Date", help="Name of the date column"),
    debug: bool = typer.Option(False, help="Enable debug logging"),
) -> None:
    """Estimate a CAPM regression from asset/benchmark prices and a risk-free rate."""
    settings = get_settings()
    setup_logging(settings, debug=debug)

    if not csv_path.exists():
        _fail(FileNotFoundError(f"File not found: {csv_path}"))

    try:
        raw = pd.read_csv(csv_path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
        _fail(DataError(f"Could not parse {csv_path}: {exc}"))
    if date_column not in raw.columns:
        _fail(BacktestError(f"Missing column: {date_column}"))
    try:
        raw.index = pd.to_datetime(raw.pop(date_column), format=date_format or settings.date_format)
    except ValueError as exc:
        _fail(exc)

    try:
        for column in ("asset", "benchmark", "risk_free"):
            if column not in raw.columns:
                raise BacktestError(f"Missing column: {column}")
        returns = build_returns_table(
            raw["asset"], raw["benchmark"], raw["risk_free"], periods_per_year=periods_per_year
        )
        fit = estimate_capm(returns, confidence=confidence)
    except (BacktestError, ValueError) as exc:
        _fail(exc)

    output: dict[str, object] = {"capm": fit.as_dict()}
    if benchmark_excess is not None:
        pred = fit.predict(benchmark_excess)
        output["prediction"] = {
            "BenchmarkExcess": pred.benchmark_excess,
            "ExpectedExcess": pred.expected_excess,
            "Lower": pred.lower,
            "Upper": pred.upper,
            "Confidence": pred.confidence,
        }
    typer.echo(json.dumps(output, indent=2, default=float))


@app.command("sweep")
def sweep(
    csv_path: Path = typer.Argument(..., help="CSV file with Date and Close columns"),
    thresholds: str = typer.Option("1.2,1.5,2.0", help="Comma-separated profit-take multipliers"),
    lot_sizes: str = typer.Option("100", help="Comma-separated lot sizes"),
    start: str | None = typer.Option(None, help="Start date YYYY-MM-DD"),
    end: str | None = typer.Option(None, help="End date YYYY-MM-DD"),
    date_format: str | None = typer.Option(None, help="strptime format of the Date column"),
    output: Path | None = typer.Option(None, help="Save ranked results to this CSV file"),
    debug: bool = typer.Option(False, help="Enable debug logging"),
) -> None:
    """Run the strategies over a grid of thresholds and lot sizes."""
    settings = get_settings()
    setup_logging(settings, debug=debug)

    try:
        space = generate_param_space(
            thresholds=_parse_list(thresholds, float),
            lot_sizes=_parse_list(lot_sizes, int),
            momentum_source=settings.momentum_source,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        series = load_price_csv(
            csv_path,
            _parse_iso(start, "start") or settings.start_date,
            _parse_iso(end, "end") or settings.end_date,
            date_format=date_format or settings.date_format,
        )
        ranked = run_search(series, space, output_path=output)
    except BacktestError as exc:
        _fail(exc)

    typer.echo(ranked.to_string(index=False))


if __name__ == "__main__":  # pragma: no cover
    app()
