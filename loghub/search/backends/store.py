"""Shared search flow for Elasticsearch-style structured log stores.

render template -> apply page cursor as search_after -> search(index, body,
size=limit+1) -> decode envelope -> paginate (over-fetch) -> normalize hits.
"""

import json
import logging
from abc import abstractmethod
from collections.abc import Sequence
from typing import Any

from loghub.contracts.errors import ConfigurationError, LogHubError, TemplateRenderError, TransportError
from loghub.contracts.logs_v1 import QueryParameters, SearchResults
from loghub.search.interface import SearchBackend
from loghub.search.normalize import HitNormalizer, hit_cursor, paginate
from loghub.search.routes import RoutingRule
from loghub.search.template import QueryTemplate
from loghub.search.transport import StoreClient

logger = logging.getLogger(__name__)


def with_search_after(body: str, page: str) -> str:
    """Set ``search_after`` in a rendered JSON body from a ``next_page`` cursor.

    Cursors are the stringified sort values of a hit; one that is not a JSON
    array (an id fallback) becomes a single-element array.
    """
    try:
        query = json.loads(body)
    except json.JSONDecodeError as e:
        raise TemplateRenderError(f"cannot apply page cursor, rendered query is not JSON: {e}") from e
    if not isinstance(query, dict):
        raise TemplateRenderError("cannot apply page cursor, rendered query is not a JSON object")

    try:
        cursor = json.loads(page)
    except json.JSONDecodeError:
        cursor = page
    query["search_after"] = cursor if isinstance(cursor, list) else [cursor]
    return json.dumps(query, ensure_ascii=False)


class StructuredStoreBackend(SearchBackend):
    def __init__(
        self,
        client: StoreClient | None,
        index: str,
        template: QueryTemplate,
        normalizer: HitNormalizer,
        routes: Sequence[RoutingRule] = (),
    ):
        super().__init__(routes)
        if client is None:
            raise ConfigurationError(f"{self.get_source_name()}: client is nil")
        if not index:
            raise ConfigurationError(f"{self.get_source_name()}: index is empty")
        self._client = client
        self._index = index
        self._template = template
        self._normalizer = normalizer

    @abstractmethod
    def _template_context(self, params: QueryParameters) -> dict[str, str]:
        """Values the query template is rendered against."""

    @abstractmethod
    def _decode(self, data: dict[str, Any]) -> tuple[list[Any], int]:
        """(raw hits in backend order, total) from a response body."""

    async def close(self) -> None:
        close = getattr(self._client, "close", None)
        if close is not None:
            await close()

    async def search(self, params: QueryParameters) -> SearchResults:
        params = params.with_defaults()
        body = self._template.render(self._template_context(params))
        if params.page:
            body = with_search_after(body, params.page)
        logger.debug("%s query on %s: %s", self.get_source_name(), self._index, body)

        try:
            data = await self._client.search(self._index, body, params.limit + 1)
        except LogHubError:
            raise
        except Exception as e:
            raise TransportError(f"error searching {self._index}: {e}") from e

        rows, total = self._decode(data)
        kept, next_page = paginate(rows, params.limit, hit_cursor)
        return SearchResults(
            total=total,
            results=self._normalizer.normalize_hits(kept),
            next_page=next_page,
        )
