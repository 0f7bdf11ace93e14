"""Build backend adapters from declarative specs.

Transport clients are injected: the pod-log client (or a factory keyed by
kubeconfig path) for Kubernetes, the file reader for file backends, and a store-client factory for Elasticsearch and
OpenSearch (httpx-based by default).
"""

import logging
from collections.abc import Callable

from loghub.contracts.errors import ConfigurationError
from loghub.core.config import config
from loghub.search.backends import (
    ElasticSearchBackend,
    FileGroup,
    FileSearchBackend,
    KubernetesSearchBackend,
    OpenSearchBackend,
)
from loghub.search.backends.files import FileReader
from loghub.search.backends.kubernetes import PodLogClient
from loghub.search.config import BackendSpec
from loghub.search.interface import SearchBackend
from loghub.search.transport import HttpSearchClient, StoreClient

logger = logging.getLogger(__name__)

StoreClientFactory = Callable[..., StoreClient]
PodLogClientFactory = Callable[[str], PodLogClient]


class BackendFactory:
    def __init__(
        self,
        pod_log_client: PodLogClient | None = None,
        pod_log_client_factory: PodLogClientFactory | None = None,
        file_reader: FileReader | None = None,
        store_client_factory: StoreClientFactory | None = None,
        http_timeout: float | None = None,
    ) -> None:
        self._pod_log_client = pod_log_client
        self._pod_log_client_factory = pod_log_client_factory
        self._file_reader = file_reader
        self._store_client_factory = store_client_factory or HttpSearchClient
        self._http_timeout = http_timeout if http_timeout is not None else config.http_timeout

    def build(self, spec: BackendSpec) -> SearchBackend:
        """Raises ConfigurationError when the spec cannot produce a working adapter."""
        if spec.elasticsearch is not None:
            es = spec.elasticsearch
            return ElasticSearchBackend(
                client=self._store_client(es.address, es.username, es.password, es.api_key, es.cloud_id),
                index=es.index,
                query=es.query,
                message_field=es.fields.message,
                timestamp_field=es.fields.timestamp,
                exclusions=es.fields.exclusions,
                routes=es.routes,
            )

        if spec.opensearch is not None:
            os_ = spec.opensearch
            return OpenSearchBackend(
                client=self._store_client(os_.address, os_.username, os_.password, ""),
                index=os_.index,
                query=os_.query,
                message_field=os_.fields.message,
                timestamp_field=os_.fields.timestamp,
                exclusions=os_.fields.exclusions,
                routes=os_.routes,
            )

        if spec.kubernetes is not None:
            return KubernetesSearchBackend(
                client=self._pod_log_client_for(spec.kubernetes.kubeconfig),
                namespace=spec.kubernetes.namespace,
                routes=spec.kubernetes.routes,
            )

        if spec.file is not None:
            groups = [FileGroup(paths=list(f.paths), labels=dict(f.labels), routes=list(f.routes)) for f in spec.file]
            if not any(g.paths for g in groups):
                raise ConfigurationError("file: no paths configured")
            return FileSearchBackend(groups, reader=self._file_reader)

        raise ConfigurationError("backend has no kind")

    def _pod_log_client_for(self, kubeconfig: str) -> PodLogClient:
        """A client per kubeconfig when a factory is set, else the shared client."""
        if self._pod_log_client_factory is not None:
            return self._pod_log_client_factory(kubeconfig)
        if kubeconfig:
            raise ConfigurationError(f"kubernetes: kubeconfig {kubeconfig} needs a pod log client factory")
        if self._pod_log_client is None:
            raise ConfigurationError("kubernetes: no pod log client configured")
        return self._pod_log_client

    def _store_client(
        self, address: str, username: str, password: str, api_key: str, cloud_id: str = ""
    ) -> StoreClient:
        if not address and not cloud_id:
            raise ConfigurationError("address is empty")
        try:
            return self._store_client_factory(
                address,
                cloud_id=cloud_id,
                username=username,
                password=password,
                api_key=api_key,
                timeout=self._http_timeout,
            )
        except ValueError as e:
            raise ConfigurationError(f"error creating the search client: {e}") from e
