from loghub.search.backends.elasticsearch import ElasticSearchBackend
from loghub.search.backends.files import FileGroup, FileSearchBackend, TailFileReader
from loghub.search.backends.kubernetes import KubernetesSearchBackend
from loghub.search.backends.opensearch import OpenSearchBackend

__all__ = [
    "ElasticSearchBackend",
    "FileGroup",
    "FileSearchBackend",
    "KubernetesSearchBackend",
    "OpenSearchBackend",
    "TailFileReader",
]
