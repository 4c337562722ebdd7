"""Parameter sweep over profit thresholds and lot sizes."""

from .grid_search import (
    evaluate_params,
    generate_param_space,
    rank_results,
    run_search,
)

__all__ = [
    "generate_param_space",
    "evaluate_params",
    "rank_results",
    "run_search",
]
