"""
Query Plan Scans - Strategies that iterate a precomputed list of filters.

Each planned value is sent as `name_contains`. Batches are independent,
so a failed batch is skipped and the sweep moves on.
"""

import string
from abc import abstractmethod
from typing import Any, Dict, List

from .base_strategy import ScanState, ScanStrategy

PLAN_PAGE_SIZE = 200
ALPHABET = string.ascii_lowercase + string.digits


def build_keyword_chunks(search_term: str) -> List[str]:
    """
    Split a search term into overlapping fragments.

    Every contiguous 3-character window, then the first and second half
    (split at len // 2). Duplicates and empty fragments are dropped,
    first occurrence kept.

    Example:
        >>> build_keyword_chunks("abcde")
        ['abc', 'bcd', 'cde', 'ab']
    """
    chunks = [search_term[i:i + 3] for i in range(len(search_term) - 2)]
    midpoint = len(search_term) // 2
    chunks.append(search_term[:midpoint])
    chunks.append(search_term[midpoint:])
    return list(dict.fromkeys(chunk for chunk in chunks if chunk))


class QueryPlanStrategy(ScanStrategy):
    """Base class for strategies driven by a fixed list of filter values"""

    query_param = "name_contains"
    page_size = PLAN_PAGE_SIZE

    def __init__(self):
        super().__init__()
        self.plan: List[str] = []

    @abstractmethod
    def build_plan(self, search_term: str) -> List[str]:
        pass

    def start(self, state: ScanState):
        self.plan = self.build_plan(state.search_term)
        self.logger.debug("query_plan_built", size=len(self.plan))

    def should_continue(self, state: ScanState) -> bool:
        return super().should_continue(state) and state.position < len(self.plan)

    def next_query(self, state: ScanState) -> Dict[str, Any]:
        return {self.query_param: self.plan[state.position], "limit": self.page_size}

    def advance(self, state: ScanState, data: Any, records: List[Dict[str, Any]]):
        state.position += 1


class KeywordChunksStrategy(QueryPlanStrategy):
    """Query with fragments of the search term"""

    name = "keyword_chunks"
    description = "Search using substrings of the search term"

    def build_plan(self, search_term: str) -> List[str]:
        return build_keyword_chunks(search_term)


class AlphabetSweepStrategy(QueryPlanStrategy):
    """Query once per letter a-z, then digit 0-9, regardless of the term"""

    name = "alphabet_sweep"
    description = "Search alphabetically through letters and numbers"

    def build_plan(self, search_term: str) -> List[str]:
        return list(ALPHABET)
