"""Log search contracts."""

from loghub.contracts.errors import (
    AllBackendsFailedError,
    ConfigurationError,
    DecodeError,
    LogHubError,
    TemplateRenderError,
    TransportError,
)
from loghub.contracts.logs_v1 import (
    BackendFailure,
    QueryParameters,
    ResolvedRange,
    Result,
    SearchResults,
)

__all__ = [
    "AllBackendsFailedError",
    "BackendFailure",
    "ConfigurationError",
    "DecodeError",
    "LogHubError",
    "QueryParameters",
    "ResolvedRange",
    "Result",
    "SearchResults",
    "TemplateRenderError",
    "TransportError",
]
