"""Tests for httpx utility functions."""

import httpx
import pytest

from cryptol_client.shared._httpx_utils import DEFAULT_TIMEOUT, create_cryptol_http_client


class TestCreateCryptolHttpClient:
    """Test create_cryptol_http_client function."""

    def test_default_settings(self):
        client = create_cryptol_http_client()

        assert client.follow_redirects is True
        assert client.timeout.connect == DEFAULT_TIMEOUT
        assert client.timeout.read == DEFAULT_TIMEOUT
        assert client.headers["Connection"] == "keep-alive"
        assert "max-occupancy" not in client.headers

    def test_custom_parameters(self):
        headers = {"Authorization": "Bearer token", "X-Custom": "value"}
        timeout = httpx.Timeout(connect=5.0, read=10.0, write=15.0, pool=20.0)

        client = create_cryptol_http_client(headers=headers, timeout=timeout)

        assert client.headers["Authorization"] == "Bearer token"
        assert client.headers["X-Custom"] == "value"
        # Keep-alive is still requested alongside custom headers
        assert client.headers["Connection"] == "keep-alive"
        assert client.timeout.connect == 5.0
        assert client.timeout.read == 10.0
        assert client.timeout.write == 15.0
        assert client.timeout.pool == 20.0

    def test_follow_redirects_enforced(self):
        client = create_cryptol_http_client(follow_redirects=False)

        assert client.follow_redirects is True

    def test_max_occupancy_header(self):
        client = create_cryptol_http_client(max_occupancy=4)

        assert client.headers["Max-Occupancy"] == "4"

    @pytest.mark.anyio
    async def test_max_occupancy_sent_with_requests(self):
        seen: list[httpx.Headers] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.headers)
            return httpx.Response(200, json={})

        async with create_cryptol_http_client(max_occupancy=2, transport=httpx.MockTransport(handler)) as client:
            await client.post("http://cryptol.test/", json={})

        assert seen[0]["max-occupancy"] == "2"
        assert seen[0]["connection"] == "keep-alive"
