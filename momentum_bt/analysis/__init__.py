"""Single-factor (CAPM) regression utilities."""

from .capm import CapmPrediction, CapmResult, build_returns_table, estimate_capm

__all__ = [
    "CapmPrediction",
    "CapmResult",
    "build_returns_table",
    "estimate_capm",
]
