"""
Client module - HTTP access to the job definition API.

This package contains the request layer:
- ApiClient: Authenticated requests, response classification, pagination
- CombinedSignal / TimeoutSignal: Composable request cancellation
- AiohttpTransport: Default network transport
"""

from .api_client import (
    ApiClient,
    ApiError,
    UsageError,
    RequestSpec,
    ResponseEnvelope,
    PaginationResult,
    summarize_error,
)
from .cancellation import (
    CancellationToken,
    CombinedSignal,
    TimeoutSignal,
    RequestAbortedError,
    RequestTimeoutError,
)
from .transport import AiohttpTransport, TransportResponse


__all__ = [
    # Client
    "ApiClient",
    "RequestSpec",
    "ResponseEnvelope",
    "PaginationResult",
    "summarize_error",
    # Exceptions
    "ApiError",
    "UsageError",
    "RequestAbortedError",
    "RequestTimeoutError",
    # Cancellation
    "CancellationToken",
    "CombinedSignal",
    "TimeoutSignal",
    # Transport
    "AiohttpTransport",
    "TransportResponse",
]
