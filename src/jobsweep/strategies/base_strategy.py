"""
Base Strategy - Abstract base class for all scan strategies.

The job API has no substring search, so matches are found by sweeping
listings and filtering client-side. Each strategy decides which listing
queries to issue and when to stop; the batch loop itself lives in
ScanOrchestrator and is shared by every strategy.

Design Pattern: Strategy Pattern
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import structlog

JOB_DEFINITIONS_PATH = "job_definitions"


@dataclass
class ScanState:
    """
    Mutable loop state for one scan.

    Created fresh per invocation and owned by the orchestrator loop.
    """
    search_term: str
    max_batches: int
    batches_searched: int = 0
    total_scanned: int = 0
    failed_batches: int = 0
    position: int = 0
    cursor: Optional[str] = None
    finished: bool = False

    @property
    def budget_left(self) -> bool:
        return self.batches_searched < self.max_batches


def extract_records(data: Any) -> List[Dict[str, Any]]:
    """Pull the `items` array from a listing body; anything else is empty"""
    if not isinstance(data, Mapping):
        return []
    items = data.get("items")
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, Mapping)]


def matches_term(record: Mapping[str, Any], search_term: str) -> bool:
    """Case-insensitive substring match on name or description"""
    needle = search_term.casefold()
    name = str(record.get("name") or "").casefold()
    description = str(record.get("description") or "").casefold()
    return needle in name or needle in description


class ScanStrategy(ABC):
    """
    Abstract base class for scan strategies.

    Subclasses implement next_query() and advance(); should_continue()
    and on_error() have shared defaults that subclasses extend.

    Attributes:
        name: Strategy identifier used by callers
        description: One-line summary for help output
        fatal_errors: Whether a failed batch ends the scan (True for
            strategies whose batches depend on the previous one)
        path: Listing endpoint queried for every batch
    """

    name: str = "base"
    description: str = ""
    fatal_errors: bool = False
    path: str = JOB_DEFINITIONS_PATH

    def __init__(self):
        self.logger = structlog.get_logger(__name__, strategy=self.name)

    def start(self, state: ScanState):
        """Prepare per-scan data before the first batch"""
        pass

    def should_continue(self, state: ScanState) -> bool:
        """Whether another batch should be requested"""
        return not state.finished and state.budget_left

    @abstractmethod
    def next_query(self, state: ScanState) -> Dict[str, Any]:
        """Query parameters for the next batch"""
        pass

    @abstractmethod
    def advance(self, state: ScanState, data: Any, records: List[Dict[str, Any]]):
        """Update state after a successful batch"""
        pass

    def on_error(self, state: ScanState, error: Exception):
        """
        Update state after a failed batch.

        Fatal strategies stop; the others skip to the next query.
        """
        state.failed_batches += 1
        if self.fatal_errors:
            state.finished = True
        else:
            state.position += 1

    def matches(self, record: Mapping[str, Any], state: ScanState) -> bool:
        return matches_term(record, state.search_term)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name}, fatal_errors={self.fatal_errors})"
