"""Query router: selects backends for a query, dispatches, merges.

Candidates are searched concurrently. Results are concatenated in candidate
order (all of backend A before backend B), totals are summed and the last
non-empty cursor wins; cursors stay backend-specific. A failing backend is
reported in ``SearchResults.errors``; only when every candidate fails does
``route`` raise.
"""

import asyncio

from loghub.contracts.errors import AllBackendsFailedError, LogHubError
from loghub.contracts.logs_v1 import BackendFailure, QueryParameters, SearchResults
from loghub.core.logger import logger as hub_logger
from loghub.search.registry import BackendRegistration, BackendRegistry


class QueryRouter:
    """No timeout is applied here; wrap ``route`` in ``asyncio.timeout`` to bound it."""

    def __init__(self, registry: BackendRegistry) -> None:
        self._registry = registry

    async def route(self, params: QueryParameters) -> SearchResults:
        params = params.with_defaults()
        # Resolve the time window once so every backend sees the same instants.
        params.resolved()

        candidates = self._registry.candidates(params)
        started = hub_logger.search_started(str(params), [c.name for c in candidates])
        if not candidates:
            hub_logger.search_done(started, total=0, returned=0, failed=0)
            return SearchResults()

        outcomes = await asyncio.gather(
            *(self._search_one(candidate, params) for candidate in candidates)
        )

        merged = SearchResults()
        for outcome in outcomes:
            if isinstance(outcome, BackendFailure):
                merged.errors.append(outcome)
            else:
                merged.append(outcome)

        hub_logger.search_done(
            started,
            total=merged.total,
            returned=len(merged.results),
            failed=len(merged.errors),
        )
        if len(merged.errors) == len(candidates):
            raise AllBackendsFailedError(merged.errors)
        return merged

    async def _search_one(
        self, candidate: BackendRegistration, params: QueryParameters
    ) -> SearchResults | BackendFailure:
        try:
            return await candidate.backend.search(params)
        except Exception as e:
            kind = e.kind if isinstance(e, LogHubError) else "error"
            hub_logger.backend_failed(candidate.name, kind, str(e))
            return BackendFailure(source=candidate.name, kind=kind, message=str(e))
