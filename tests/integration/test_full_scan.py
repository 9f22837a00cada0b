"""
Integration test for the full search pipeline over real HTTP.

Starts a local aiohttp server imitating the job definition API and runs
batch_search through the default AiohttpTransport:
1. Listing batches (cursor pagination)
2. Client-side matching and deduplication
3. Detail enrichment
4. Timeouts and error payloads
"""

import asyncio

import pytest
from aiohttp import web
from aiohttp import test_utils

from jobsweep.client import ApiClient, ApiError, CancellationToken
from jobsweep.core import batch_search

API_KEY = "integration-key"

PAGES = {
    None: {
        "items": [
            {"id": 1, "name": "Orders to Snowflake", "description": "nightly"},
            {"id": 2, "name": "Users sync", "description": "CRM"},
        ],
        "next_cursor": "page-2",
    },
    "page-2": {
        "items": [
            {"id": 3, "name": "Clickstream", "description": "raw orders events"},
            {"id": 1, "name": "Orders to Snowflake", "description": "nightly"},
        ],
        "next_cursor": None,
    },
}

DETAILS = {
    "1": {
        "input_option_type": "s3",
        "input_option": {"s3_input_option": {"bucket": "raw", "path_prefix": "orders/"}},
        "output_option_type": "snowflake",
        "output_option": {
            "snowflake_output_option": {
                "database": "DWH",
                "schema": "PUBLIC",
                "table": "ORDERS",
                "warehouse": "LOAD_WH",
            }
        },
    },
}


def build_app(requests_seen):
    async def listing(request):
        requests_seen.append(request)
        if request.headers.get("Authorization") != f"Token {API_KEY}":
            return web.json_response({"msg": "unauthorized"}, status=401)
        return web.json_response(PAGES[request.query.get("cursor")])

    async def detail(request):
        requests_seen.append(request)
        body = DETAILS.get(request.match_info["job_id"])
        if body is None:
            return web.json_response({"msg": "not found"}, status=404)
        return web.json_response(body)

    async def slow(request):
        await asyncio.sleep(5)
        return web.json_response({})

    async def plain(request):
        return web.Response(text="pong", content_type="text/plain")

    app = web.Application()
    app.router.add_get("/api/job_definitions", listing)
    app.router.add_get("/api/job_definitions/{job_id}", detail)
    app.router.add_get("/api/slow", slow)
    app.router.add_get("/api/ping", plain)
    return app


@pytest.mark.integration
@pytest.mark.asyncio
async def test_batch_search_over_http():
    """
    Test cursor scan, dedupe and enrichment end to end.
    """
    requests_seen = []
    server = test_utils.TestServer(build_app(requests_seen))
    await server.start_server()

    try:
        async with ApiClient(base_url=str(server.make_url("/api/")), api_key=API_KEY) as client:
            response = await batch_search(client, "orders", strategy="exhaustive_scan", max_batches=5)
    finally:
        await server.close()

    assert response.is_error is False
    payload = response.payload
    assert payload["batchesSearched"] == 2
    assert payload["totalScanned"] == 4
    assert [match["id"] for match in payload["matches"]] == [1, 3]

    first, second = payload["matches"]
    assert first["config"] == {
        "input_s3": {"bucket": "raw", "prefix": "orders/", "region": None},
        "output_snowflake": {"database": "DWH", "schema": "PUBLIC", "table": "ORDERS", "warehouse": "LOAD_WH"},
    }
    assert second["config"] == {}
    assert first["url"].endswith("/job_definitions/1")
    assert "/api/" not in first["url"]

    assert "Input: s3://raw/orders/" in response.text
    assert len(requests_seen) == 4


@pytest.mark.integration
@pytest.mark.asyncio
async def test_request_level_behaviour_over_http():
    """
    Test text bodies, HTTP errors, timeouts and cancellation with aiohttp.
    """
    server = test_utils.TestServer(build_app([]))
    await server.start_server()

    try:
        base_url = str(server.make_url("/api/"))

        async with ApiClient(base_url=base_url, api_key=API_KEY, timeout=0.2) as client:
            text = await client.request("ping")
            assert text.data is None
            assert text.text == "pong"
            assert text.status == 200

            with pytest.raises(ApiError) as missing:
                await client.request("job_definitions/404")
            assert missing.value.status == 404
            assert missing.value.response.data == {"msg": "not found"}

            with pytest.raises(ApiError) as timed_out:
                await client.request("slow")
            assert "timed out after 200 ms" in str(timed_out.value)
            assert timed_out.value.response is None

            token = CancellationToken()
            asyncio.get_running_loop().call_later(0.05, token.cancel, "caller gave up")
            with pytest.raises(ApiError) as aborted:
                await client.request("slow", signal=token, timeout=2)
            assert "caller gave up" in str(aborted.value)

        async with ApiClient(base_url=base_url, api_key="wrong-key") as client:
            response = await batch_search(client, "orders", strategy="recent_first")
            assert response.is_error is False
            assert response.payload["batchesSearched"] == 0
            assert response.payload["matches"] == []
    finally:
        await server.close()


if __name__ == "__main__":
    pytest.main([__file__, "-v", "-s"])
