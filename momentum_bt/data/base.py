from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path

from .series import PriceSeries


class PriceFeed(ABC):
    """Abstract base class for price data sources.

    Implementations return a fully materialized `PriceSeries` of daily
    closes restricted to the requested inclusive window.
    """

    @abstractmethod
    def get_daily(self, source: str | Path, start: date | None, end: date | None) -> PriceSeries:
        """Load daily closes.

        Args:
            source: Location of the data (file path, symbol, ...).
            start: Inclusive start date (None = unbounded).
            end: Inclusive end date (None = unbounded).

        Returns:
            PriceSeries for the window.
        """
