"""
Scan strategies module.

Each strategy inherits from ScanStrategy and decides which listing
queries to issue and when to stop.

Available strategies:
- exhaustive_scan: Cursor pagination through the whole listing
- keyword_chunks: name_contains queries built from the search term
- alphabet_sweep: name_contains queries for a-z and 0-9
- recent_first: Repeated reads of the default (recent-first) listing
"""

from typing import Dict, Type

from .base_strategy import (
    ScanStrategy,
    ScanState,
    extract_records,
    matches_term,
)
from .cursor_scan import ExhaustiveScanStrategy, RecentFirstStrategy
from .query_plan import (
    ALPHABET,
    AlphabetSweepStrategy,
    KeywordChunksStrategy,
    QueryPlanStrategy,
    build_keyword_chunks,
)

STRATEGIES: Dict[str, Type[ScanStrategy]] = {
    ExhaustiveScanStrategy.name: ExhaustiveScanStrategy,
    KeywordChunksStrategy.name: KeywordChunksStrategy,
    AlphabetSweepStrategy.name: AlphabetSweepStrategy,
    RecentFirstStrategy.name: RecentFirstStrategy,
}

DEFAULT_STRATEGY = ExhaustiveScanStrategy.name


def get_strategy(name: str) -> ScanStrategy:
    """
    Instantiate a strategy by name.

    Raises:
        KeyError: If the name is unknown
    """
    try:
        strategy_cls = STRATEGIES[name]
    except KeyError:
        raise KeyError(
            f"Unknown strategy '{name}'. Choose one of: {', '.join(STRATEGIES)}"
        ) from None
    return strategy_cls()


__all__ = [
    # Base classes
    "ScanStrategy",
    "ScanState",
    "QueryPlanStrategy",
    # Strategies
    "ExhaustiveScanStrategy",
    "KeywordChunksStrategy",
    "AlphabetSweepStrategy",
    "RecentFirstStrategy",
    # Registry
    "STRATEGIES",
    "DEFAULT_STRATEGY",
    "get_strategy",
    # Helpers
    "ALPHABET",
    "build_keyword_chunks",
    "extract_records",
    "matches_term",
]
