"""
Core module - Scan orchestration and the batch search operation.

This package contains the components that turn a search term into a
deduplicated, partially enriched result.
"""

from .orchestrator import ScanOrchestrator, MAX_BATCHES, MIN_BATCHES, DEFAULT_MAX_BATCHES
from .match_set import MatchSet, MatchStats, dedupe_by_id
from .results import ProjectedMatch, ScanResult, build_web_url
from .batch_search import BatchSearchRequest, BatchSearchResponse, batch_search, serialize_error
from .config import Settings
from .report import format_result_text


__all__ = [
    # Orchestration
    "ScanOrchestrator",
    "MAX_BATCHES",
    "MIN_BATCHES",
    "DEFAULT_MAX_BATCHES",
    # Matches
    "MatchSet",
    "MatchStats",
    "dedupe_by_id",
    # Results
    "ProjectedMatch",
    "ScanResult",
    "build_web_url",
    "format_result_text",
    # Batch search
    "BatchSearchRequest",
    "BatchSearchResponse",
    "batch_search",
    "serialize_error",
    # Configuration
    "Settings",
]
