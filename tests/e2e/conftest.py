import os
from collections.abc import AsyncIterator

import pytest
import pytest_asyncio

from loghub.search.transport import HttpSearchClient


@pytest_asyncio.fixture
async def store_client() -> AsyncIterator[HttpSearchClient]:
    """Live Elasticsearch/OpenSearch client for e2e suites only."""
    address = os.getenv("LOGHUB_E2E_ES_ADDRESS", "")
    if not address:
        pytest.skip("LOGHUB_E2E_ES_ADDRESS is not set")
    client = HttpSearchClient(
        address,
        username=os.getenv("LOGHUB_E2E_ES_USERNAME", ""),
        password=os.getenv("LOGHUB_E2E_ES_PASSWORD", ""),
    )
    try:
        yield client
    finally:
        await client.close()
