"""
Detail Fetching - Concurrent follow-up requests for the head of a result.

Each detail fetch is independent: one failing or timing out leaves the
others untouched and yields an empty config for that record only.
"""

import asyncio
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import quote

import structlog

from ..client import ApiClient, ApiError, CancellationToken
from ..strategies.base_strategy import JOB_DEFINITIONS_PATH
from .connectors import summarize_connectors

DEFAULT_ENRICH_LIMIT = 5

logger = structlog.get_logger(__name__)


async def fetch_job_details(
    client: ApiClient,
    job_id: Any,
    signal: Optional[CancellationToken] = None,
) -> Optional[Dict[str, Any]]:
    """
    Fetch one job definition detail record.

    Returns:
        The detail body, or None if the request failed or the body is
        not a JSON object
    """
    path = f"{JOB_DEFINITIONS_PATH}/{quote(str(job_id), safe='')}"
    try:
        response = await client.request(path, signal=signal)
    except ApiError as e:
        logger.warning(
            "detail_fetch_failed",
            job_id=job_id,
            status=e.status,
            error=str(e),
        )
        return None

    return response.data if isinstance(response.data, Mapping) else None


async def enrich_records(
    client: ApiClient,
    records: Sequence[Mapping[str, Any]],
    limit: int = DEFAULT_ENRICH_LIMIT,
    signal: Optional[CancellationToken] = None,
) -> List[Tuple[Mapping[str, Any], Optional[Dict[str, Dict[str, Any]]]]]:
    """
    Fetch details for the first `limit` records concurrently.

    Records without an id have no detail endpoint and are not fetched.

    Returns:
        (record, connector config) pairs in input order; config is empty
        when the detail fetch failed and None for records without an id
    """
    head = list(records[:limit])
    fetchable = [record for record in head if record.get("id") is not None]
    if not fetchable:
        return [(record, None) for record in head]

    results = await asyncio.gather(
        *(fetch_job_details(client, record.get("id"), signal=signal) for record in fetchable),
        return_exceptions=True,
    )
    fetched = iter(results)

    enriched = []
    for record in head:
        if record.get("id") is None:
            enriched.append((record, None))
            continue
        details = next(fetched)
        if isinstance(details, Exception):
            logger.error(
                "detail_enrichment_error",
                job_id=record.get("id"),
                error=str(details),
                error_type=type(details).__name__,
            )
            details = None
        enriched.append((record, summarize_connectors(details)))

    logger.debug(
        "enrichment_complete",
        requested=len(fetchable),
        with_config=sum(1 for _, config in enriched if config),
    )
    return enriched
