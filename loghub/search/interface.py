"""Standard interface for log search backends used by the router.

All backends (orchestrator-native, file, structured log stores) implement
SearchBackend and return SearchResults.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from loghub.contracts.logs_v1 import QueryParameters, SearchResults
from loghub.search.routes import RoutingRule, match_route


class SearchBackend(ABC):
    """Base class for all search backends."""

    def __init__(self, routes: Sequence[RoutingRule] = ()):
        self.routes: tuple[RoutingRule, ...] = tuple(routes)

    @abstractmethod
    async def search(self, params: QueryParameters) -> SearchResults:
        """Execute search and return normalized results.

        Raises a LogHubError subclass on failure; never returns partial garbage.
        """

    @abstractmethod
    def get_source_name(self) -> str:
        """Backend kind identifier, e.g. 'elasticsearch'."""

    def match_route(self, params: QueryParameters) -> tuple[bool, bool]:
        """(matched, additive) for the first of this backend's routes that matches."""
        return match_route(self.routes, params)

    async def close(self) -> None:
        """Release transport resources. Default: nothing to release."""
