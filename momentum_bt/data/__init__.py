"""Data module for price series and file loaders."""

from .base import PriceFeed
from .csv_loader import CsvPriceFeed, load_price_csv
from .series import DEFAULT_DATE_FORMAT, PriceSeries

__all__ = ["DEFAULT_DATE_FORMAT", "CsvPriceFeed", "PriceFeed", "PriceSeries", "load_price_csv"]
