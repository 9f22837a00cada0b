"""
Shared fixtures: an in-memory transport standing in for the job API.

Handlers receive a call dict and return a TransportResponse, raise an
exception, or return an awaitable resolving to either.
"""

import inspect
import json
from typing import Any, Callable, Dict, List
from urllib.parse import parse_qs, urlsplit

import pytest

from jobsweep.client import ApiClient, TransportResponse

BASE_URL = "https://example.test/api/"


def json_response(data: Any, status: int = 200, reason: str = "OK") -> TransportResponse:
    return TransportResponse(
        status=status,
        reason=reason,
        headers={"Content-Type": "application/json; charset=utf-8"},
        text=json.dumps(data),
    )


def text_response(text: str, status: int = 200, content_type: str = "text/plain") -> TransportResponse:
    return TransportResponse(status=status, reason="OK", headers={"Content-Type": content_type}, text=text)


class FakeTransport:
    """Records every call and delegates the answer to a handler"""

    def __init__(self, handler: Callable[[Dict[str, Any]], Any]):
        self.handler = handler
        self.calls: List[Dict[str, Any]] = []
        self.closed = False

    async def __call__(self, method, url, headers=None, body=None):
        parts = urlsplit(url)
        call = {
            "method": method,
            "url": url,
            "path": parts.path,
            "query": {key: values if len(values) > 1 else values[0]
                      for key, values in parse_qs(parts.query, keep_blank_values=True).items()},
            "headers": headers or {},
            "body": body,
        }
        self.calls.append(call)

        result = self.handler(call)
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, BaseException):
            raise result
        if result.url == "":
            result.url = url
        return result

    async def close(self):
        self.closed = True

    def paths(self) -> List[str]:
        return [call["path"] for call in self.calls]


@pytest.fixture
def make_client():
    """Factory building an ApiClient around a FakeTransport"""

    def factory(handler, **options):
        transport = FakeTransport(handler)
        options.setdefault("timeout", 5.0)
        client = ApiClient(base_url=BASE_URL, api_key="secret-key", transport=transport, **options)
        return client, transport

    return factory


@pytest.fixture
def responses():
    """Access to the response builders from tests"""

    class Builders:
        json = staticmethod(json_response)
        text = staticmethod(text_response)

    return Builders


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: end-to-end scans over the in-memory transport")
