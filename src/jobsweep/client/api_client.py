"""
API Client - Authenticated, time-bounded requests against the job API.

This module implements the request layer used by every scan strategy:
1. URL building scoped to the configured base endpoint
2. Layered header construction with auth injection
3. Timeout + caller cancellation composed into one signal
4. Response classification (JSON vs text) and error wrapping
5. A generic page follower for simple paginated listings

Example:
    >>> async with ApiClient(base_url="https://trocco.io/api/", api_key="...") as client:
    ...     response = await client.request("job_definitions", query={"limit": 100})
    ...     print(response.data["items"])
"""

import json
import posixpath
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union
from urllib.parse import parse_qsl, unquote, urlencode, urljoin, urlsplit, urlunsplit

import structlog

from .cancellation import CancellationToken, CombinedSignal, TimeoutSignal
from .transport import AiohttpTransport, TransportResponse
from .utils import get_by_path, safe_json_dumps, to_plain_headers

DEFAULT_TIMEOUT = 45.0
DEFAULT_USER_AGENT = "jobsweep/0.1.0"
DEFAULT_ACCEPT = "application/json, text/plain;q=0.9, */*;q=0.8"

QueryValue = Union[None, str, int, float, bool, Sequence[Union[str, int, float, bool]]]


class UsageError(ValueError):
    """Raised for invalid client configuration or request arguments"""
    pass


class ApiError(Exception):
    """
    Raised when a request fails.

    Covers non-2xx responses (response is set) as well as transport
    failures, timeouts and aborts (response is None, __cause__ holds the
    original exception).
    """

    def __init__(
        self,
        message: str,
        request: Optional[Dict[str, Any]] = None,
        response: Optional["ResponseEnvelope"] = None,
    ):
        super().__init__(message)
        self.message = message
        self.request = request or {}
        self.response = response

    @property
    def status(self) -> Optional[int]:
        return self.response.status if self.response else None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "request": self.request,
            "response": self.response.to_dict() if self.response else None,
        }


@dataclass(frozen=True)
class RequestSpec:
    """Arguments for a single ApiClient.request call"""
    path: str
    method: str = "GET"
    query: Optional[Mapping[str, QueryValue]] = None
    body: Any = None
    headers: Optional[Mapping[str, str]] = None
    timeout: Optional[float] = None
    signal: Optional[CancellationToken] = None
    response_type: str = "auto"  # 'auto', 'json', 'text'


@dataclass
class ResponseEnvelope:
    """Summary of a completed HTTP exchange"""
    ok: bool
    status: int
    status_text: str
    url: str
    method: str
    duration_ms: float
    headers: Dict[str, str] = field(default_factory=dict)
    data: Any = None
    text: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "status": self.status,
            "statusText": self.status_text,
            "url": self.url,
            "method": self.method,
            "durationMs": round(self.duration_ms, 2),
            "headers": self.headers,
            "data": self.data,
            "text": self.text,
        }


@dataclass
class PaginationResult:
    """Accumulated output of ApiClient.paginate"""
    items: List[Any] = field(default_factory=list)
    responses: List[ResponseEnvelope] = field(default_factory=list)


def should_parse_json(content_type: str, response_type: str) -> bool:
    """Decide whether a body should be parsed as JSON"""
    if response_type == "json":
        return True
    if response_type == "text":
        return False
    if not content_type:
        return False
    content_type = content_type.lower()
    return "application/json" in content_type or "+json" in content_type


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ApiClient:
    """
    HTTP client for the job definition API.

    Features:
    1. Requests stay on the configured base endpoint
    2. Auth header injected on every call
    3. Per-request timeout combined with caller cancellation
    4. One error type (ApiError) for every request failure

    Example:
        >>> client = ApiClient(base_url="https://trocco.io/api/", api_key="secret")
        >>> response = await client.request("job_definitions/42")
        >>> await client.close()
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[Callable[..., Any]] = None,
        auth_header: str = "Authorization",
        auth_scheme: str = "Token",
        extra_headers: Optional[Mapping[str, str]] = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        """
        Initialize the client.

        Args:
            base_url: Base endpoint every request is resolved against
            api_key: Credential sent in the auth header
            timeout: Default per-request timeout in seconds
            transport: Async callable performing the HTTP exchange
                (defaults to an aiohttp-backed transport)
            auth_header: Name of the auth header
            auth_scheme: Prefix placed before the key (empty for bare key)
            extra_headers: Static headers added to every request
            user_agent: Client identifier sent as User-Agent

        Raises:
            UsageError: If base_url or api_key is missing, or transport is
                not callable
        """
        if not base_url or not str(base_url).strip():
            raise UsageError("ApiClient requires a base_url")
        if not api_key or not str(api_key).strip():
            raise UsageError("ApiClient requires an API key")
        if transport is not None and not callable(transport):
            raise UsageError("ApiClient transport must be an async callable")

        base_url = str(base_url).strip()
        self.base_url = base_url if base_url.endswith("/") else f"{base_url}/"
        self.api_key = str(api_key).strip()
        self.timeout = timeout
        self.auth_header = (auth_header or "Authorization").strip()
        self.auth_scheme = (auth_scheme or "").strip()
        self.extra_headers = dict(extra_headers or {})
        self.user_agent = user_agent

        self.transport = transport if transport is not None else AiohttpTransport()

        self.logger = structlog.get_logger(__name__)

    # ------------------------------------------------------------------
    # Request building
    # ------------------------------------------------------------------

    def build_url(self, path: str, query: Optional[Mapping[str, QueryValue]] = None) -> str:
        """
        Resolve `path` against the base URL and append query parameters.

        Raises:
            UsageError: If path is empty, or resolves outside the base URL
        """
        if not path or not isinstance(path, str):
            raise UsageError("ApiClient request requires a path string")

        if urlsplit(path).scheme:
            resolved = path
        else:
            resolved = urljoin(self.base_url, path.lstrip("/"))
        url = self._scope_to_base(resolved)

        if not query:
            return url

        scheme, netloc, url_path, existing, fragment = urlsplit(url)
        pairs = parse_qsl(existing, keep_blank_values=True)

        for key, value in query.items():
            if value is None:
                continue
            if isinstance(value, (list, tuple)):
                pairs.extend((key, _stringify(item)) for item in value)
            else:
                pairs = [(k, v) for k, v in pairs if k != key]
                pairs.append((key, _stringify(value)))

        return urlunsplit((scheme, netloc, url_path, urlencode(pairs), fragment))

    def _scope_to_base(self, url: str) -> str:
        """
        Normalize dot segments and check the URL stays under the base URL.

        Scheme and host are compared case-insensitively; the path must sit
        at or below the base path once `.`/`..` (plain or percent-encoded)
        are resolved.

        Raises:
            UsageError: If the URL leaves the base origin or base path
        """
        base = urlsplit(self.base_url)
        scheme, netloc, url_path, query, fragment = urlsplit(url)

        if scheme.lower() != base.scheme.lower() or netloc.lower() != base.netloc.lower():
            raise UsageError("External URLs are not allowed. Pass a relative API path.")

        normalized = posixpath.normpath(url_path or "/")
        if url_path.endswith("/") and not normalized.endswith("/"):
            normalized += "/"

        decoded = posixpath.normpath(unquote(url_path) or "/")
        if not f"{decoded.rstrip('/')}/".startswith(base.path or "/"):
            raise UsageError(f"Path resolves outside the API base URL: {url_path}")

        return urlunsplit((base.scheme, base.netloc, normalized, query, fragment))

    def build_headers(self, headers: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """Layer base, auth, extra and per-call headers (later wins)"""
        auth_value = f"{self.auth_scheme} {self.api_key}".strip() if self.auth_scheme else self.api_key

        merged = {
            "Accept": DEFAULT_ACCEPT,
            "Content-Type": "application/json",
            self.auth_header: auth_value,
            "User-Agent": self.user_agent,
        }
        merged.update(self.extra_headers)
        merged.update(headers or {})
        return merged

    def _redact(self, headers: Dict[str, str]) -> Dict[str, str]:
        return {
            key: ("***" if key.lower() == self.auth_header.lower() else value)
            for key, value in headers.items()
        }

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    async def request(
        self,
        path: Union[str, RequestSpec],
        method: str = "GET",
        query: Optional[Mapping[str, QueryValue]] = None,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
        signal: Optional[CancellationToken] = None,
        response_type: str = "auto",
    ) -> ResponseEnvelope:
        """
        Issue one request.

        Args:
            path: Relative API path, or a RequestSpec carrying all arguments
            method: HTTP method
            query: Query parameters (None dropped, sequences repeated)
            body: Request body, ignored for GET/HEAD
            headers: Per-call headers
            timeout: Timeout in seconds (client default if None)
            signal: Caller cancellation token
            response_type: 'auto', 'json' or 'text'

        Returns:
            ResponseEnvelope for a 2xx response

        Raises:
            UsageError: For invalid arguments (before any network activity)
            ApiError: For non-2xx responses and transport failures
        """
        if isinstance(path, RequestSpec):
            spec = path
        else:
            spec = RequestSpec(
                path=path,
                method=method,
                query=query,
                body=body,
                headers=headers,
                timeout=timeout,
                signal=signal,
                response_type=response_type,
            )

        method = (spec.method or "GET").upper()
        url = self.build_url(spec.path, spec.query)
        request_headers = self.build_headers(spec.headers)
        effective_timeout = spec.timeout if spec.timeout is not None else self.timeout

        payload: Optional[Union[str, bytes]] = None
        if spec.body is not None and method not in ("GET", "HEAD"):
            if isinstance(spec.body, (str, bytes, bytearray)):
                payload = bytes(spec.body) if isinstance(spec.body, bytearray) else spec.body
            else:
                payload = json.dumps(spec.body)

        request_context = {
            "url": url,
            "method": method,
            "body": spec.body,
            "query": dict(spec.query) if spec.query else None,
            "headers": self._redact(request_headers),
            "timeout_ms": effective_timeout * 1000,
        }

        self.logger.debug("api_request", method=method, url=url)
        start = time.perf_counter()

        with TimeoutSignal(effective_timeout) as timeout_signal, \
                CombinedSignal(timeout_signal, spec.signal) as combined:
            try:
                raw: TransportResponse = await combined.run(
                    self.transport(method, url, headers=request_headers, body=payload)
                )
            except Exception as e:
                self.logger.warning(
                    "api_request_failed",
                    method=method,
                    url=url,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise ApiError(str(e) or type(e).__name__, request=request_context) from e

        duration_ms = (time.perf_counter() - start) * 1000
        envelope = self._build_envelope(raw, method, url, duration_ms, spec.response_type)

        if not envelope.ok:
            self.logger.warning(
                "api_error_response",
                method=method,
                url=url,
                status=envelope.status,
                duration_ms=round(duration_ms, 2),
            )
            raise ApiError(
                f"API responded with {envelope.status} {envelope.status_text}".strip(),
                request=request_context,
                response=envelope,
            )

        self.logger.debug(
            "api_response",
            method=method,
            url=url,
            status=envelope.status,
            duration_ms=round(duration_ms, 2),
        )
        return envelope

    def _build_envelope(
        self,
        raw: TransportResponse,
        method: str,
        url: str,
        duration_ms: float,
        response_type: str,
    ) -> ResponseEnvelope:
        text = raw.text or ""
        parsed = None

        if text and should_parse_json(raw.content_type, response_type):
            try:
                parsed = json.loads(text)
            except ValueError:
                parsed = None

        return ResponseEnvelope(
            ok=raw.ok,
            status=raw.status,
            status_text=raw.reason or "",
            url=raw.url or url,
            method=method,
            duration_ms=duration_ms,
            headers=to_plain_headers(raw.headers),
            data=parsed,
            text=None if parsed is not None else (text or None),
        )

    async def paginate(
        self,
        path: str,
        method: str = "GET",
        query: Optional[Mapping[str, QueryValue]] = None,
        body: Any = None,
        headers: Optional[Mapping[str, str]] = None,
        page_param: str = "page",
        page_size_param: Optional[str] = "per_page",
        start_page: int = 1,
        page_size: Optional[int] = None,
        max_pages: int = 50,
        data_path: Optional[str] = None,
        next_page_path: Optional[str] = None,
        stop_when_empty: bool = True,
        timeout: Optional[float] = None,
        signal: Optional[CancellationToken] = None,
    ) -> PaginationResult:
        """
        Follow pages and concatenate the extracted results.

        The page indicator is either an incrementing page number or, when
        `next_page_path` is set, the token read from the previous body.

        Stops when:
        1. The extracted page is empty (if stop_when_empty)
        2. The extracted page is shorter than page_size
        3. The next-page token is missing or false
        4. max_pages pages were fetched

        Returns:
            PaginationResult with all items and the raw responses in order
        """
        result = PaginationResult()
        current_page = start_page
        pages_fetched = 0
        next_page_value: Any = None

        while pages_fetched < max_pages:
            page_query = dict(query or {})
            page_query[page_param] = next_page_value if next_page_value is not None else current_page
            if page_size and page_size_param:
                page_query[page_size_param] = page_size

            response = await self.request(
                path,
                method=method,
                query=page_query,
                body=body,
                headers=headers,
                timeout=timeout,
                signal=signal,
            )
            result.responses.append(response)

            data = get_by_path(response.data, data_path) if data_path else response.data

            if isinstance(data, list):
                result.items.extend(data)
                if stop_when_empty and not data:
                    break
                if page_size and len(data) < page_size:
                    break
            elif data is not None:
                result.items.append(data)
                if stop_when_empty:
                    break
            elif stop_when_empty:
                break

            pages_fetched += 1

            if next_page_path:
                next_page_value = get_by_path(response.data, next_page_path)
                if next_page_value is None or next_page_value is False:
                    break
            else:
                current_page += 1

        self.logger.debug(
            "pagination_complete",
            path=path,
            pages=len(result.responses),
            items=len(result.items),
        )
        return result

    async def close(self):
        """Close the underlying transport if it supports closing"""
        close = getattr(self.transport, "close", None)
        if close is not None:
            await close()

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    def __repr__(self) -> str:
        return f"ApiClient(base_url={self.base_url}, timeout={self.timeout})"


def summarize_error(error: BaseException) -> str:
    """Render an exception as indented JSON for diagnostics"""
    if isinstance(error, ApiError):
        return safe_json_dumps(error.to_dict())
    return safe_json_dumps({"message": str(error), "type": type(error).__name__})
