from __future__ import annotations

from datetime import date
from pathlib import Path

import pandas as pd

from ..errors import DataError
from .base import PriceFeed
from .series import DEFAULT_DATE_FORMAT, PriceSeries


class CsvPriceFeed(PriceFeed):
    """PriceFeed reading a (date, close) table from a CSV file.

    Values are read as text and parsed by `PriceSeries.load`, so dates keep
    their locale format (day/month/year by default) until parsing.
    """

    def __init__(
        self,
        date_column: str = "Date",
        price_column: str = "Close",
        date_format: str = DEFAULT_DATE_FORMAT,
    ) -> None:
        self.date_column = date_column
        self.price_column = price_column
        self.date_format = date_format

    def read_table(self, source: str | Path) -> pd.DataFrame:
        """Read the raw two-column table without parsing values."""
        path = Path(source)
        if not path.exists():
            raise DataError(f"Price file not found: {path}")
        try:
            df = pd.read_csv(path, dtype=str, skipinitialspace=True)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as exc:
            raise DataError(f"Could not read price file {path}: {exc}") from exc

        df.columns = [str(c).strip() for c in df.columns]
        missing = [c for c in (self.date_column, self.price_column) if c not in df.columns]
        if missing:
            raise DataError(f"Missing columns in {path.name}: {missing}; got columns={list(df.columns)}")
        return df[[self.date_column, self.price_column]]

    def get_daily(self, source: str | Path, start: date | None, end: date | None) -> PriceSeries:
        df = self.read_table(source)
        rows = zip(df[self.date_column].tolist(), df[self.price_column].tolist())
        return PriceSeries.load(rows, start, end, date_format=self.date_format)


def load_price_csv(
    path: str | Path,
    start_date: date | None = None,
    end_date: date | None = None,
    date_column: str = "Date",
    price_column: str = "Close",
    date_format: str = DEFAULT_DATE_FORMAT,
) -> PriceSeries:
    """Load a windowed PriceSeries from a CSV file.

    Args:
        path: CSV file with at least `date_column` and `price_column`.
        start_date: Inclusive window start.
        end_date: Inclusive window end.
        date_column: Name of the date column.
        price_column: Name of the close price column.
        date_format: strptime format of the date column.

    Returns:
        PriceSeries for the window.
    """
    feed = CsvPriceFeed(date_column=date_column, price_column=price_column, date_format=date_format)
    return feed.get_daily(path, start_date, end_date)
