"""
Cursor Scans - Strategies that walk the default listing order.

Both strategies here depend on the previous batch (its cursor, or the
assumption that the listing keeps moving), so a failed batch ends the scan.
"""

from typing import Any, Dict, List, Mapping

from .base_strategy import ScanState, ScanStrategy

EXHAUSTIVE_PAGE_SIZE = 100
RECENT_PAGE_SIZE = 100


class ExhaustiveScanStrategy(ScanStrategy):
    """
    Follow server cursors through the whole listing.

    Query: {limit: 100, cursor?}
    Stops when the response carries no next_cursor.
    """

    name = "exhaustive_scan"
    description = "Systematically scan through all job definitions using cursor pagination"
    fatal_errors = True

    def next_query(self, state: ScanState) -> Dict[str, Any]:
        query: Dict[str, Any] = {"limit": EXHAUSTIVE_PAGE_SIZE}
        if state.cursor:
            query["cursor"] = state.cursor
        return query

    def advance(self, state: ScanState, data: Any, records: List[Dict[str, Any]]):
        cursor = data.get("next_cursor") if isinstance(data, Mapping) else None
        state.cursor = cursor or None
        state.position += 1
        if not state.cursor:
            state.finished = True
            self.logger.debug("cursor_exhausted", batches=state.batches_searched)


class RecentFirstStrategy(ScanStrategy):
    """
    Repeatedly read the head of the default listing.

    Query: {limit: 100}, no cursor and no sort parameter. This relies on
    the API returning the most recently created definitions first; that
    ordering is an assumption about the upstream default, not a contract.
    Stops on an empty batch.
    """

    name = "recent_first"
    description = "Search starting from the most recent items (default listing order)"
    fatal_errors = True

    def next_query(self, state: ScanState) -> Dict[str, Any]:
        return {"limit": RECENT_PAGE_SIZE}

    def advance(self, state: ScanState, data: Any, records: List[Dict[str, Any]]):
        state.position += 1
        if not records:
            state.finished = True
