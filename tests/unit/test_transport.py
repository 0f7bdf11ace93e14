import base64
import json

import httpx
import pytest

from loghub.contracts.errors import DecodeError, TransportError
from loghub.search.transport import HttpSearchClient, address_from_cloud_id


def _client(handler, **kwargs):
    return HttpSearchClient("http://es:9200/", transport=httpx.MockTransport(handler), **kwargs)


@pytest.mark.asyncio
async def test_posts_body_to_index_search_endpoint():
    seen = []

    def handler(request):
        seen.append(request)
        return httpx.Response(200, json={"hits": {"total": {"value": 0}, "hits": []}})

    client = _client(handler)
    data = await client.search("logs-*", '{"query": {"match_all": {}}}', 51)
    await client.close()

    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/logs-*/_search"
    assert request.url.params["size"] == "51"
    assert json.loads(request.content) == {"query": {"match_all": {}}}
    assert request.headers["content-type"] == "application/json"
    assert data["hits"]["total"] == {"value": 0}


@pytest.mark.asyncio
async def test_basic_auth():
    seen = []

    def handler(request):
        seen.append(request.headers.get("authorization"))
        return httpx.Response(200, json={})

    client = _client(handler, username="elastic", password="secret")
    await client.search("logs", "{}", 1)
    await client.close()

    assert seen == ["Basic " + base64.b64encode(b"elastic:secret").decode()]


@pytest.mark.asyncio
async def test_api_key_header():
    seen = []

    def handler(request):
        seen.append(request.headers.get("authorization"))
        return httpx.Response(200, json={})

    client = _client(handler, api_key="abc123")
    await client.search("logs", "{}", 1)
    await client.close()

    assert seen == ["ApiKey abc123"]


@pytest.mark.asyncio
async def test_http_error_status_is_transport_error():
    client = _client(lambda request: httpx.Response(500, text="shard failure"))

    with pytest.raises(TransportError, match="HTTP 500"):
        await client.search("logs", "{}", 1)
    await client.close()


@pytest.mark.asyncio
async def test_connection_error_is_transport_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler)

    with pytest.raises(TransportError, match="connection refused"):
        await client.search("logs", "{}", 1)
    await client.close()


@pytest.mark.asyncio
@pytest.mark.parametrize("content", [b"<html>not json</html>", b"[1, 2]"])
async def test_undecodable_body_is_decode_error(content):
    client = _client(lambda request: httpx.Response(200, content=content))

    with pytest.raises(DecodeError):
        await client.search("logs", "{}", 1)
    await client.close()


def test_address_is_required():
    with pytest.raises(ValueError):
        HttpSearchClient("")


@pytest.mark.parametrize(
    ("decoded", "expected"),
    [
        (b"us-east-1.aws.found.io$cluster1$kibana1", "https://cluster1.us-east-1.aws.found.io"),
        (b"eu.example.com:9243$abc$", "https://abc.eu.example.com:9243"),
    ],
)
def test_cloud_id_decodes_to_address(decoded, expected):
    assert address_from_cloud_id("deployment:" + base64.b64encode(decoded).decode()) == expected


@pytest.mark.parametrize("cloud_id", ["deployment:%%%", "deployment:" + base64.b64encode(b"hostonly").decode()])
def test_malformed_cloud_id(cloud_id):
    with pytest.raises(ValueError, match="invalid cloud id"):
        address_from_cloud_id(cloud_id)


def test_explicit_address_wins_over_cloud_id():
    client = HttpSearchClient("http://local:9200", cloud_id="ignored:%%%")
    assert client._address == "http://local:9200"
