"""
Scan Orchestrator - Drives a strategy through batched listing requests.

The job API has no substring search. This module compensates client-side:
1. Issue the strategy's listing queries one batch at a time
2. Filter each batch with the strategy's match predicate
3. Deduplicate matches by id once all batches are done
4. Enrich the head of the result with detail fetches

Design Pattern: Strategy + Observer
"""

from typing import Any, Callable, Dict, List, Optional

import structlog

from ..client import ApiClient, ApiError, CancellationToken, UsageError
from ..enrichment import DEFAULT_ENRICH_LIMIT, enrich_records
from ..strategies import DEFAULT_STRATEGY, ScanState, extract_records, get_strategy
from .match_set import MatchSet
from .results import ProjectedMatch, ScanResult

MIN_BATCHES = 1
MAX_BATCHES = 50
DEFAULT_MAX_BATCHES = 10

Observer = Callable[[str, Dict[str, Any]], None]


class ScanOrchestrator:
    """
    Coordinates one search over the job definition listing.

    Responsibilities:
    1. Run the batch loop shared by every strategy
    2. Contain per-batch and per-detail failures
    3. Build the deduplicated, partially enriched ScanResult
    4. Report progress to subscribed observers

    Example:
        >>> orchestrator = ScanOrchestrator(client)
        >>> result = await orchestrator.search("orders", strategy="keyword_chunks")
        >>> print(result.progress)
    """

    def __init__(
        self,
        client: ApiClient,
        web_base_url: Optional[str] = None,
        enrich_limit: int = DEFAULT_ENRICH_LIMIT,
    ):
        """
        Initialize the orchestrator.

        Args:
            client: API client used for every request
            web_base_url: Base for deep links (defaults to the client base URL)
            enrich_limit: Number of leading matches to fetch details for
        """
        self.client = client
        self.web_base_url = web_base_url or client.base_url
        self.enrich_limit = enrich_limit

        self.logger = structlog.get_logger(__name__)
        self.observers: List[Observer] = []

    def subscribe(self, observer: Observer):
        """
        Subscribe to scan events.

        Events: scan_started, batch_completed, batch_failed, scan_complete.

        Args:
            observer: Callback receiving (event, data)
        """
        self.observers.append(observer)
        self.logger.debug("observer_subscribed", observer=getattr(observer, "__name__", repr(observer)))

    def _notify_observers(self, event: str, data: Dict[str, Any]):
        """Notify all observers of an event"""
        for observer in self.observers:
            try:
                observer(event, data)
            except Exception as e:
                self.logger.error(
                    "observer_error",
                    observer=getattr(observer, "__name__", repr(observer)),
                    error=str(e),
                )

    @staticmethod
    def validate(search_term: str, strategy: str, max_batches: int):
        """
        Check search arguments before any request is made.

        Raises:
            UsageError: On an empty term, unknown strategy or out-of-range budget
        """
        if not isinstance(search_term, str) or not search_term:
            raise UsageError("searchTerm must be a non-empty string")
        if isinstance(max_batches, bool) or not isinstance(max_batches, int):
            raise UsageError("maxBatches must be an integer")
        if not MIN_BATCHES <= max_batches <= MAX_BATCHES:
            raise UsageError(f"maxBatches must be between {MIN_BATCHES} and {MAX_BATCHES}")
        try:
            get_strategy(strategy)
        except KeyError as e:
            raise UsageError(e.args[0]) from None

    async def search(
        self,
        search_term: str,
        strategy: str = DEFAULT_STRATEGY,
        max_batches: int = DEFAULT_MAX_BATCHES,
        signal: Optional[CancellationToken] = None,
    ) -> ScanResult:
        """
        Run one search.

        Args:
            search_term: Text to look for in name or description
            strategy: Strategy name
            max_batches: Maximum number of completed batch requests
            signal: Cancellation token passed to every request

        Returns:
            ScanResult with deduplicated matches, the head enriched

        Raises:
            UsageError: For invalid arguments
        """
        self.validate(search_term, strategy, max_batches)

        scan_strategy = get_strategy(strategy)
        state = ScanState(search_term=search_term, max_batches=max_batches)
        match_set = MatchSet()

        self.logger.info(
            "scan_started",
            strategy=strategy,
            search_term=search_term,
            max_batches=max_batches,
        )
        self._notify_observers("scan_started", {"strategy": strategy, "max_batches": max_batches})

        scan_strategy.start(state)

        while scan_strategy.should_continue(state):
            if signal is not None and signal.cancelled:
                self.logger.warning("scan_cancelled", batches=state.batches_searched)
                break

            query = scan_strategy.next_query(state)

            try:
                response = await self.client.request(
                    scan_strategy.path,
                    query=query,
                    signal=signal,
                )
            except ApiError as e:
                self.logger.warning(
                    "batch_failed",
                    strategy=strategy,
                    query=query,
                    status=e.status,
                    error=str(e),
                    fatal=scan_strategy.fatal_errors,
                )
                self._notify_observers("batch_failed", {"query": query, "error": str(e)})
                scan_strategy.on_error(state, e)
                continue

            records = extract_records(response.data)
            matched = [record for record in records if scan_strategy.matches(record, state)]

            state.batches_searched += 1
            state.total_scanned += len(records)
            match_set.add_all(matched)

            self.logger.debug(
                "batch_completed",
                strategy=strategy,
                batch=state.batches_searched,
                records=len(records),
                matches=len(matched),
            )
            self._notify_observers(
                "batch_completed",
                {
                    "batch": state.batches_searched,
                    "max_batches": max_batches,
                    "records": len(records),
                    "matches": len(matched),
                    "total_scanned": state.total_scanned,
                },
            )

            scan_strategy.advance(state, response.data, records)

        unique = match_set.unique()
        matches = [ProjectedMatch.from_record(record, self.web_base_url) for record in unique]

        enriched = await enrich_records(self.client, unique, limit=self.enrich_limit, signal=signal)
        for match, (_, config) in zip(matches, enriched):
            match.config = config

        result = ScanResult(
            strategy=strategy,
            search_term=search_term,
            batches_searched=state.batches_searched,
            total_scanned=state.total_scanned,
            max_batches=max_batches,
            matches=matches,
            failed_batches=state.failed_batches,
        )

        self.logger.info(
            "scan_complete",
            strategy=strategy,
            batches=result.batches_searched,
            scanned=result.total_scanned,
            matches=len(result.matches),
            failed_batches=result.failed_batches,
            **match_set.get_statistics(),
        )
        self._notify_observers("scan_complete", result.to_dict())

        return result
