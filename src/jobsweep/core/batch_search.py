"""
Batch Search - The single operation exposed to a host process.

Validates the call arguments, runs a ScanOrchestrator and always returns
a well-formed response: the result payload on success, or
{ok: False, error: {...}} on any failure.

Usage:
    response = await batch_search(client, "orders", strategy="keyword_chunks")
    if response.is_error:
        print(response.text)
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Literal, Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..client import ApiClient, ApiError, CancellationToken, summarize_error
from ..client.utils import safe_json_dumps
from .orchestrator import DEFAULT_MAX_BATCHES, MAX_BATCHES, MIN_BATCHES, Observer, ScanOrchestrator
from .report import format_failure_text, format_result_text
from .results import ScanResult

StrategyName = Literal["exhaustive_scan", "keyword_chunks", "alphabet_sweep", "recent_first"]

logger = structlog.get_logger(__name__)


class BatchSearchRequest(BaseModel):
    """Arguments accepted by batch_search (camelCase aliases accepted)"""

    model_config = ConfigDict(populate_by_name=True)

    search_term: str = Field(alias="searchTerm", min_length=1)
    strategy: StrategyName = "exhaustive_scan"
    max_batches: int = Field(
        default=DEFAULT_MAX_BATCHES,
        alias="maxBatches",
        ge=MIN_BATCHES,
        le=MAX_BATCHES,
    )


@dataclass
class BatchSearchResponse:
    """Structured payload plus its text rendering"""
    payload: Dict[str, Any]
    text: str
    is_error: bool = False
    result: Optional[ScanResult] = None


def serialize_error(error: BaseException) -> Dict[str, Any]:
    """
    Build the failure payload for an exception.

    ApiErrors carry their request context and, when the server answered,
    the response status, headers and body.
    """
    if isinstance(error, ApiError):
        payload: Dict[str, Any] = {"ok": False, "error": error.to_dict()}
        if error.response is not None:
            payload.update(error.response.to_dict())
            payload["ok"] = False
        return payload

    if isinstance(error, ValidationError):
        return {
            "ok": False,
            "error": {
                "message": "Invalid batch search arguments",
                "details": [
                    {"loc": list(err["loc"]), "msg": err["msg"]}
                    for err in error.errors(include_url=False)
                ],
            },
        }

    return {"ok": False, "error": {"message": str(error) or type(error).__name__}}


async def batch_search(
    client: ApiClient,
    search_term: str,
    strategy: str = "exhaustive_scan",
    max_batches: int = DEFAULT_MAX_BATCHES,
    signal: Optional[CancellationToken] = None,
    observers: Iterable[Observer] = (),
    enrich_limit: Optional[int] = None,
) -> BatchSearchResponse:
    """
    Search job definitions for `search_term`.

    Args:
        client: API client
        search_term: Text to find in name or description
        strategy: exhaustive_scan, keyword_chunks, alphabet_sweep or recent_first
        max_batches: Batch budget (1-50)
        signal: Cancellation token passed through to every request
        observers: Progress callbacks subscribed to the orchestrator
        enrich_limit: Override for the number of enriched matches

    Returns:
        BatchSearchResponse; never raises for request or argument errors
    """
    try:
        params = BatchSearchRequest(
            search_term=search_term,
            strategy=strategy,
            max_batches=max_batches,
        )

        orchestrator = ScanOrchestrator(client)
        if enrich_limit is not None:
            orchestrator.enrich_limit = enrich_limit
        for observer in observers:
            orchestrator.subscribe(observer)

        result = await orchestrator.search(
            params.search_term,
            strategy=params.strategy,
            max_batches=params.max_batches,
            signal=signal,
        )
        return BatchSearchResponse(
            payload=result.to_dict(),
            text=format_result_text(result),
            result=result,
        )

    except Exception as e:
        logger.error(
            "batch_search_failed",
            search_term=search_term,
            strategy=strategy,
            error=str(e),
            error_type=type(e).__name__,
            exc_info=not isinstance(e, (ApiError, ValidationError)),
        )
        payload = serialize_error(e)
        formatted = summarize_error(e) if isinstance(e, ApiError) else safe_json_dumps(payload["error"])
        return BatchSearchResponse(
            payload=payload,
            text=format_failure_text(formatted),
            is_error=True,
        )
