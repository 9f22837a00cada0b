"""
Transport - The single seam between ApiClient and the network.

A transport is any async callable:

    await transport(method, url, headers=..., body=...) -> TransportResponse

The default implementation is backed by aiohttp. Tests pass their own
callable to ApiClient instead.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Union

import aiohttp
import structlog


@dataclass
class TransportResponse:
    """Raw HTTP response as seen by ApiClient"""
    status: int
    reason: str = ""
    url: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    @property
    def content_type(self) -> str:
        for key, value in self.headers.items():
            if key.lower() == "content-type":
                return value
        return ""


class AiohttpTransport:
    """
    aiohttp-backed transport.

    The ClientSession is created lazily on first use so the transport can
    be built outside a running event loop. Timeouts are disabled at the
    session level; ApiClient enforces them with its own signals.
    """

    def __init__(self, session: Optional[aiohttp.ClientSession] = None):
        self._session = session
        self._owns_session = session is None
        self.logger = structlog.get_logger(__name__)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=None),
            )
            self._owns_session = True
            self.logger.debug("http_session_created")
        return self._session

    async def __call__(
        self,
        method: str,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        body: Optional[Union[str, bytes]] = None,
    ) -> TransportResponse:
        session = await self._get_session()

        async with session.request(method, url, headers=headers, data=body) as response:
            text = await response.text(errors="replace")
            return TransportResponse(
                status=response.status,
                reason=response.reason or "",
                url=str(response.url),
                headers={key: value for key, value in response.headers.items()},
                text=text,
            )

    async def close(self):
        """Close the session if this transport created it"""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
            self.logger.debug("http_session_closed")
        self._session = None
