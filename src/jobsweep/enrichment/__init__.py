"""
Enrichment module - Detail fetches and connector summaries.

- enrich_records: Concurrent detail fetches for the head of a result
- summarize_connectors: Rule-table reduction of connector settings
"""

from .connectors import CONNECTORS, ConnectorSpec, LayoutRule, summarize_connectors
from .details import DEFAULT_ENRICH_LIMIT, enrich_records, fetch_job_details


__all__ = [
    # Details
    "DEFAULT_ENRICH_LIMIT",
    "enrich_records",
    "fetch_job_details",
    # Connectors
    "CONNECTORS",
    "ConnectorSpec",
    "LayoutRule",
    "summarize_connectors",
]
