from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from datetime import date, datetime
from typing import Any

import pandas as pd

from ..errors import DataError

logger = logging.getLogger(__name__)

DEFAULT_DATE_FORMAT = "%d/%m/%Y"


def _parse_date(value: Any, date_format: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if value is None or (isinstance(value, float) and math.isnan(value)):
        raise DataError("Missing date")
    try:
        return datetime.strptime(str(value).strip(), date_format).date()
    except ValueError as exc:
        raise DataError(f"Unparseable date {value!r} (expected format {date_format!r})") from exc


def _parse_price(value: Any, day: date) -> float:
    if value is None or isinstance(value, bool):
        raise DataError(f"Missing or non-numeric price on {day.isoformat()}")
    try:
        price = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError) as exc:
        raise DataError(f"Non-numeric price {value!r} on {day.isoformat()}") from exc
    if not math.isfinite(price):
        raise DataError(f"Missing or non-finite price on {day.isoformat()}")
    if price <= 0:
        raise DataError(f"Price must be positive, got {price} on {day.isoformat()}")
    return price


class PriceSeries:
    """Immutable, date-ascending sequence of daily close prices.

    Built through `PriceSeries.load`, which parses, sorts and windows raw
    (date, price) rows. Indices are 0-based.
    """

    __slots__ = ("_dates", "_prices")

    def __init__(self, dates: Iterable[date], prices: Iterable[float]) -> None:
        self._dates: tuple[date, ...] = tuple(dates)
        self._prices: tuple[float, ...] = tuple(float(p) for p in prices)
        if len(self._dates) != len(self._prices):
            raise DataError("dates and prices must have same length")
        for prev, cur in zip(self._dates, self._dates[1:]):
            if cur <= prev:
                raise DataError(f"Dates must be strictly increasing ({prev} -> {cur})")
        for day, price in zip(self._dates, self._prices):
            if not math.isfinite(price) or price <= 0:
                raise DataError(f"Price must be positive, got {price} on {day.isoformat()}")

    @classmethod
    def load(
        cls,
        rows: Iterable[tuple[Any, Any]],
        start_date: date | None = None,
        end_date: date | None = None,
        date_format: str = DEFAULT_DATE_FORMAT,
    ) -> PriceSeries:
        """Parse raw (date, price) rows into a windowed series.

        Args:
            rows: Iterable of (date, price) pairs. Dates may be date/datetime
                objects or strings in `date_format`; prices may be numbers or
                decimal strings.
            start_date: Inclusive window start (None = unbounded).
            end_date: Inclusive window end (None = unbounded).
            date_format: strptime format used for string dates.

        Returns:
            PriceSeries sorted by date and restricted to the window.

        Raises:
            DataError: On unparseable dates, bad prices, duplicate dates or an
                empty window.
        """
        if start_date is not None and end_date is not None and start_date > end_date:
            raise DataError(f"Start date ({start_date}) must be <= end date ({end_date})")

        parsed: dict[date, float] = {}
        for raw_date, raw_price in rows:
            day = _parse_date(raw_date, date_format)
            price = _parse_price(raw_price, day)
            if day in parsed:
                raise DataError(f"Duplicate date {day.isoformat()}")
            parsed[day] = price

        window = sorted(
            (day, price)
            for day, price in parsed.items()
            if (start_date is None or day >= start_date) and (end_date is None or day <= end_date)
        )
        if not window:
            raise DataError(f"No price data in window [{start_date}, {end_date}]")

        logger.info(
            "Loaded %d of %d price rows (%s to %s)",
            len(window),
            len(parsed),
            window[0][0].isoformat(),
            window[-1][0].isoformat(),
        )
        return cls([day for day, _ in window], [price for _, price in window])

    def length(self) -> int:
        return len(self._dates)

    def __len__(self) -> int:
        return len(self._dates)

    def at(self, i: int) -> tuple[date, float]:
        return self._dates[i], self._prices[i]

    def date_at(self, i: int) -> date:
        return self._dates[i]

    def price_at(self, i: int) -> float:
        return self._prices[i]

    @property
    def dates(self) -> tuple[date, ...]:
        return self._dates

    @property
    def prices(self) -> tuple[float, ...]:
        return self._prices

    def to_series(self) -> pd.Series:
        """Return close prices as a pandas Series indexed by date."""
        idx = pd.DatetimeIndex(pd.to_datetime(list(self._dates)), name="Date")
        return pd.Series(self._prices, index=idx, name="Close", dtype=float)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PriceSeries):
            return NotImplemented
        return self._dates == other._dates and self._prices == other._prices

    def __hash__(self) -> int:
        return hash((self._dates, self._prices))

    def __repr__(self) -> str:
        if not self._dates:
            return "PriceSeries([])"
        return f"PriceSeries(n={len(self)}, {self._dates[0].isoformat()}..{self._dates[-1].isoformat()})"
