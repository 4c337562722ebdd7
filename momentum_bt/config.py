from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from .backtest.engine import BacktestParams


class Settings(BaseSettings):
    """Application settings loaded from environment and optional .env file.

    Attributes:
        share_lot_size: Shares bought per buy event. Defaults to 100.
        profit_threshold: Multiplicative trigger over average cost (> 1.0). Defaults to 1.5.
        momentum_source: Where the profit-taking run reads its buy signal from:
            'ledger' (basic ledger labels) or 'recompute'. Defaults to 'ledger'.
        start_date: Inclusive window start (optional).
        end_date: Inclusive window end (optional).
        date_format: strptime format of dates in input files. Defaults to day/month/year.
        debug_mode: Whether to log at DEBUG regardless of log_level. Defaults to False.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Defaults to INFO.
    """

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    share_lot_size: int = Field(default=100, alias="SHARE_LOT_SIZE", gt=0)
    profit_threshold: float = Field(default=1.5, alias="PROFIT_THRESHOLD", gt=1.0)
    momentum_source: Literal["ledger", "recompute"] = Field(default="ledger", alias="MOMENTUM_SOURCE")
    start_date: date | None = Field(default=None, alias="START_DATE")
    end_date: date | None = Field(default=None, alias="END_DATE")
    date_format: str = Field(default="%d/%m/%Y", alias="DATE_FORMAT")
    debug_mode: bool = Field(default=False, alias="DEBUG_MODE")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    def to_params(self) -> BacktestParams:
        """Build strategy parameters from the configured defaults."""
        from .backtest.engine import BacktestParams

        return BacktestParams(
            share_lot_size=self.share_lot_size,
            profit_threshold=self.profit_threshold,
            momentum_source=self.momentum_source,
        )


def get_settings() -> Settings:
    """Return a settings instance.

    Returns:
        Settings: Settings populated from environment.
    """
    return Settings()  # type: ignore[call-arg]


def setup_logging(settings: Settings | None = None, debug: bool = False) -> None:
    """Setup logging configuration based on settings.

    Args:
        settings: Settings instance. If None, will load from get_settings().
        debug: Force DEBUG level (e.g. from a --debug CLI flag).
    """
    if settings is None:
        settings = get_settings()

    if debug or settings.debug_mode:
        level = logging.DEBUG
    else:
        level_str = settings.log_level.upper()
        level_map = {
            "DEBUG": logging.DEBUG,
            "INFO": logging.INFO,
            "WARNING": logging.WARNING,
            "ERROR": logging.ERROR,
            "CRITICAL": logging.CRITICAL,
        }
        level = level_map.get(level_str, logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
