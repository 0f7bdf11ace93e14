"""Kubernetes backend: delegates to an injected pod-log client."""

from collections.abc import Sequence
from typing import Protocol

from loghub.contracts.errors import LogHubError, TransportError
from loghub.contracts.logs_v1 import QueryParameters, SearchResults
from loghub.search.interface import SearchBackend
from loghub.search.normalize import process_result
from loghub.search.routes import RoutingRule


class PodLogClient(Protocol):
    async def fetch_logs(self, params: QueryParameters, namespace: str) -> SearchResults: ...


class KubernetesSearchBackend(SearchBackend):
    def __init__(
        self,
        client: PodLogClient,
        namespace: str = "",
        routes: Sequence[RoutingRule] = (),
    ):
        super().__init__(routes)
        self._client = client
        self._namespace = namespace

    def get_source_name(self) -> str:
        return "kubernetes"

    async def search(self, params: QueryParameters) -> SearchResults:
        params = params.with_defaults()
        try:
            fetched = await self._client.fetch_logs(params, self._namespace)
        except LogHubError:
            raise
        except Exception as e:
            raise TransportError(f"error fetching logs for {params.type}/{params.id}: {e}") from e
        return fetched.model_copy(
            update={"results": [process_result(r) for r in fetched.results]}
        )
