from __future__ import annotations


class BacktestError(ValueError):
    """Base class for input errors raised by the backtester."""


class DataError(BacktestError):
    """Malformed or missing price/date data."""


class InsufficientDataError(DataError):
    """Too few rows in the windowed series to run a simulation or fit."""


class InputMismatchError(BacktestError):
    """A hint ledger does not line up with the price series it is paired with."""


class DivisionByZeroError(BacktestError, ZeroDivisionError):
    """ROI requested with zero invested capital."""
