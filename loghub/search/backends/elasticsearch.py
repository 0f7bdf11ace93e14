"""Elasticsearch backend: template rendered against query labels, raw-dict envelope."""

from collections.abc import Mapping, Sequence
from typing import Any

from loghub.contracts.logs_v1 import QueryParameters
from loghub.search.backends.store import StructuredStoreBackend
from loghub.search.normalize import HitNormalizer, total_from_hits
from loghub.search.routes import RoutingRule
from loghub.search.template import QueryTemplate, labels_context
from loghub.search.transport import StoreClient


class ElasticSearchBackend(StructuredStoreBackend):
    """Excluded fields are removed from labels; records are never dropped for them."""

    def __init__(
        self,
        client: StoreClient | None,
        index: str,
        query: str,
        message_field: str = "",
        timestamp_field: str = "",
        exclusions: Sequence[str] = (),
        routes: Sequence[RoutingRule] = (),
    ):
        super().__init__(
            client=client,
            index=index,
            template=QueryTemplate(query),
            normalizer=HitNormalizer(
                message_field=message_field,
                timestamp_field=timestamp_field,
                exclusions=exclusions,
                drop_duplicate_content=False,
            ),
            routes=routes,
        )

    def get_source_name(self) -> str:
        return "elasticsearch"

    def _template_context(self, params: QueryParameters) -> dict[str, str]:
        return labels_context(params)

    def _decode(self, data: dict[str, Any]) -> tuple[list[Any], int]:
        hits = data.get("hits")
        if not isinstance(hits, Mapping):
            return [], 0
        rows = hits.get("hits")
        if not isinstance(rows, list):
            return [], 0
        return rows, total_from_hits(hits)
