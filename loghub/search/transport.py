"""HTTP transport for Elasticsearch/OpenSearch-compatible stores.

Structured-store adapters only need an object with

    async def search(index: str, body: str, size: int) -> dict

This module provides the default one on top of httpx. Credentials arrive
already resolved; connection pooling is httpx's.
"""

import base64
import binascii
import json
import logging
from typing import Any, Protocol

import httpx

from loghub.contracts.errors import DecodeError, TransportError

logger = logging.getLogger(__name__)


class StoreClient(Protocol):
    async def search(self, index: str, body: str, size: int) -> dict[str, Any]: ...


def address_from_cloud_id(cloud_id: str) -> str:
    """Elastic Cloud ID (``name:base64(host$es_uuid$kibana_uuid)``) to an https address."""
    encoded = cloud_id.rpartition(":")[2]
    try:
        decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise ValueError(f"invalid cloud id {cloud_id!r}: {e}") from e
    parts = decoded.split("$")
    if len(parts) < 2 or not parts[0] or not parts[1]:
        raise ValueError(f"invalid cloud id {cloud_id!r}: expected host and cluster id")
    return f"https://{parts[1]}.{parts[0]}"


class HttpSearchClient:
    """``POST {address}/{index}/_search?size=N`` with a JSON body.

    An explicit ``address`` wins over ``cloud_id``.
    """

    def __init__(
        self,
        address: str = "",
        username: str = "",
        password: str = "",
        api_key: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        cloud_id: str = "",
    ):
        if not address and cloud_id:
            address = address_from_cloud_id(cloud_id)
        if not address:
            raise ValueError("address or cloud id is required")
        self._address = address.rstrip("/")
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"ApiKey {api_key}"
        auth = httpx.BasicAuth(username, password) if username else None
        self._client = httpx.AsyncClient(
            base_url=self._address,
            headers=headers,
            auth=auth,
            timeout=timeout,
            transport=transport,
        )

    async def search(self, index: str, body: str, size: int) -> dict[str, Any]:
        try:
            response = await self._client.post(
                f"/{index}/_search",
                params={"size": size},
                content=body.encode("utf-8"),
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"error searching {self._address}/{index}: HTTP {e.response.status_code} {e.response.text[:200]}"
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"error searching {self._address}/{index}: {e}") from e

        try:
            data = response.json()
        except json.JSONDecodeError as e:
            raise DecodeError(f"error parsing the response body from {self._address}: {e}") from e
        if not isinstance(data, dict):
            raise DecodeError(f"unexpected response body type {type(data).__name__} from {self._address}")
        return data

    async def close(self) -> None:
        await self._client.aclose()
