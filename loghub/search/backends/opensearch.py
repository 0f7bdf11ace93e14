"""OpenSearch backend: template rendered against the full query, typed envelope."""

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from loghub.contracts.errors import ConfigurationError, DecodeError
from loghub.contracts.logs_v1 import QueryParameters
from loghub.search.backends.store import StructuredStoreBackend
from loghub.search.normalize import HitNormalizer, total_from_hits
from loghub.search.routes import RoutingRule
from loghub.search.template import LABEL_PREFIX, PARAM_NAMES, QueryTemplate, params_context
from loghub.search.transport import StoreClient


class HitsInfo(BaseModel):
    total: int = 0
    max_score: float | None = None
    hits: list[dict[str, Any]] = Field(default_factory=list)

    @field_validator("total", mode="before")
    @classmethod
    def _coerce_total(cls, v: Any) -> int:
        return total_from_hits({"total": v})

    @field_validator("hits", mode="before")
    @classmethod
    def _coerce_hits(cls, v: Any) -> list[Any]:
        if not isinstance(v, list):
            return []
        return [h for h in v if isinstance(h, dict)]


class OpenSearchResponse(BaseModel):
    took: float = 0
    timed_out: bool = False
    hits: HitsInfo = Field(default_factory=HitsInfo)

    @field_validator("hits", mode="before")
    @classmethod
    def _coerce_section(cls, v: Any) -> Any:
        return v if isinstance(v, dict) else {}


class OpenSearchBackend(StructuredStoreBackend):
    """Records whose excluded fields repeat the message are dropped as duplicates."""

    def __init__(
        self,
        client: StoreClient | None,
        index: str,
        query: str,
        message_field: str,
        timestamp_field: str = "",
        exclusions: Sequence[str] = (),
        routes: Sequence[RoutingRule] = (),
    ):
        if not message_field:
            raise ConfigurationError("opensearch: fields.message is empty")
        template = QueryTemplate(query)
        template.require_known(PARAM_NAMES, prefixes=(LABEL_PREFIX,))
        super().__init__(
            client=client,
            index=index,
            template=template,
            normalizer=HitNormalizer(
                message_field=message_field,
                timestamp_field=timestamp_field,
                exclusions=exclusions,
                drop_duplicate_content=True,
            ),
            routes=routes,
        )

    def get_source_name(self) -> str:
        return "opensearch"

    def _template_context(self, params: QueryParameters) -> dict[str, str]:
        return params_context(params)

    def _decode(self, data: dict[str, Any]) -> tuple[list[Any], int]:
        try:
            response = OpenSearchResponse.model_validate(data)
        except ValidationError as e:
            raise DecodeError(f"error parsing the response body: {e}") from e
        return response.hits.hits, response.hits.total
