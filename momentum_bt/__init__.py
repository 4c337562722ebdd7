"""Momentum and profit-taking strategy backtester with a CAPM regression helper."""

__version__ = "0.1.0"
