from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from scipy import stats

from ..errors import DataError, InsufficientDataError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("asset", "benchmark", "risk_free")


@dataclass(frozen=True)
class CapmPrediction:
    benchmark_excess: float
    expected_excess: float
    lower: float
    upper: float
    confidence: float


@dataclass(frozen=True)
class CapmResult:
    """Single-factor regression of asset excess returns on benchmark excess returns.

    Attributes:
        alpha: Intercept (per-period abnormal return).
        beta: Slope (sensitivity to the benchmark).
        alpha_se: Standard error of alpha.
        beta_se: Standard error of beta.
        r_squared: Coefficient of determination.
        residual_std: Standard deviation of residuals (n - 2 dof).
        n_obs: Number of observations used.
        confidence: Level used for intervals.
    """

    alpha: float
    beta: float
    alpha_se: float
    beta_se: float
    r_squared: float
    residual_std: float
    n_obs: int
    confidence: float
    x_mean: float
    sxx: float

    @property
    def dof(self) -> int:
        return self.n_obs - 2

    def t_critical(self) -> float:
        return float(stats.t.ppf(0.5 + self.confidence / 2.0, self.dof))

    def alpha_t(self) -> float:
        return self.alpha / self.alpha_se if self.alpha_se > 0 else np.inf

    def beta_t(self) -> float:
        return self.beta / self.beta_se if self.beta_se > 0 else np.inf

    def beta_interval(self) -> tuple[float, float]:
        half = self.t_critical() * self.beta_se
        return self.beta - half, self.beta + half

    def predict(self, benchmark_excess: float) -> CapmPrediction:
        """Point estimate and prediction interval for one new observation.

        Args:
            benchmark_excess: Benchmark return minus risk-free rate.

        Returns:
            CapmPrediction with the expected asset excess return and bounds.
        """
        x0 = float(benchmark_excess)
        y_hat = self.alpha + self.beta * x0
        # Prediction (not confidence) interval: includes the residual variance of a new draw
        se_pred = self.residual_std * np.sqrt(1.0 + 1.0 / self.n_obs + (x0 - self.x_mean) ** 2 / self.sxx)
        half = self.t_critical() * se_pred
        return CapmPrediction(
            benchmark_excess=x0,
            expected_excess=float(y_hat),
            lower=float(y_hat - half),
            upper=float(y_hat + half),
            confidence=self.confidence,
        )

    def as_dict(self) -> dict[str, float]:
        beta_low, beta_high = self.beta_interval()
        return {
            "Alpha": self.alpha,
            "Beta": self.beta,
            "AlphaSE": self.alpha_se,
            "BetaSE": self.beta_se,
            "AlphaT": self.alpha_t(),
            "BetaT": self.beta_t(),
            "BetaLow": beta_low,
            "BetaHigh": beta_high,
            "RSquared": self.r_squared,
            "Observations": float(self.n_obs),
        }


def build_returns_table(
    asset: pd.Series,
    benchmark: pd.Series,
    risk_free: pd.Series,
    periods_per_year: int = 252,
) -> pd.DataFrame:
    """Align price/rate series into a per-period returns table.

    Args:
        asset: Asset prices indexed by date.
        benchmark: Benchmark prices indexed by date.
        risk_free: Annualized risk-free rate in percent (e.g., 4.5), indexed by date.
        periods_per_year: Periods used to de-annualize the risk-free rate.

    Returns:
        DataFrame with columns ['asset','benchmark','risk_free'] of simple
        per-period returns, first (undefined) period dropped.
    """
    prices = pd.concat(
        {
            "asset": asset.astype(float),
            "benchmark": benchmark.astype(float),
            "risk_free": risk_free.astype(float),
        },
        axis=1,
        join="inner",
    ).sort_index()
    if prices.empty:
        raise DataError("Asset, benchmark and risk-free series share no dates")

    table = pd.DataFrame(
        {
            "asset": prices["asset"].pct_change(),
            "benchmark": prices["benchmark"].pct_change(),
            "risk_free": prices["risk_free"] / 100.0 / float(periods_per_year),
        },
        index=prices.index,
    )
    return table.iloc[1:]


def estimate_capm(returns: pd.DataFrame, confidence: float = 0.95) -> CapmResult:
    """Fit r_asset - r_f = alpha + beta * (r_benchmark - r_f) by OLS.

    Args:
        returns: DataFrame with columns ['asset','benchmark','risk_free'] of
            per-period returns. Rows with missing values are dropped.
        confidence: Level for the beta and prediction intervals (0 < c < 1).

    Returns:
        CapmResult.
    """
    if not 0.0 < confidence < 1.0:
        raise ValueError("confidence must be between 0 and 1")
    missing = [c for c in REQUIRED_COLUMNS if c not in returns.columns]
    if missing:
        raise DataError(f"Missing columns in returns table: {missing}")

    clean = returns[list(REQUIRED_COLUMNS)].astype(float).replace([np.inf, -np.inf], np.nan).dropna()
    n = len(clean)
    if n < 3:
        raise InsufficientDataError(f"At least 3 complete return rows are required, got {n}")

    y = (clean["asset"] - clean["risk_free"]).to_numpy()
    x = (clean["benchmark"] - clean["risk_free"]).to_numpy()

    x_mean = float(x.mean())
    sxx = float(((x - x_mean) ** 2).sum())
    if np.ptp(x) == 0:
        raise DataError("Benchmark excess returns have no variance; beta is not identifiable")

    design = np.column_stack([np.ones(n), x])
    coef, _, _, _ = np.linalg.lstsq(design, y, rcond=None)
    alpha, beta = float(coef[0]), float(coef[1])

    residuals = y - design @ coef
    dof = n - 2
    sse = float(residuals @ residuals)
    sigma2 = sse / dof
    residual_std = float(np.sqrt(sigma2))

    beta_se = float(np.sqrt(sigma2 / sxx))
    alpha_se = float(np.sqrt(sigma2 * (1.0 / n + x_mean**2 / sxx)))

    sst = float(((y - y.mean()) ** 2).sum())
    r_squared = 1.0 - sse / sst if sst > 0 else 1.0

    logger.debug("CAPM fit on %d rows: alpha=%.6f beta=%.4f r2=%.4f", n, alpha, beta, r_squared)
    return CapmResult(
        alpha=alpha,
        beta=beta,
        alpha_se=alpha_se,
        beta_se=beta_se,
        r_squared=r_squared,
        residual_std=residual_std,
        n_obs=n,
        confidence=confidence,
        x_mean=x_mean,
        sxx=sxx,
    )
