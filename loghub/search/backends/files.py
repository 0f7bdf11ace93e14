"""File backend: plain-text log files, one record per line.

Each file group has its own routes and static labels. The free-form query is
applied as a substring post-filter; lines carrying a leading timestamp outside
the requested window are dropped.
"""

import asyncio
import logging
from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from loghub.contracts.errors import TransportError
from loghub.contracts.logs_v1 import QueryParameters, ResolvedRange, Result, SearchResults
from loghub.search.interface import SearchBackend
from loghub.search.normalize import process_result
from loghub.search.routes import RoutingRule, match_route
from loghub.utils.timeparse import parse_rfc3339

logger = logging.getLogger(__name__)


class FileReader(Protocol):
    async def read(self, path: str, max_lines: int) -> list[tuple[int, str]]:
        """Last ``max_lines`` lines of ``path`` as (line number, text), oldest first."""
        ...


class TailFileReader:
    async def read(self, path: str, max_lines: int) -> list[tuple[int, str]]:
        return await asyncio.to_thread(self._tail, path, max_lines)

    @staticmethod
    def _tail(path: str, max_lines: int) -> list[tuple[int, str]]:
        lines: deque[tuple[int, str]] = deque(maxlen=max_lines if max_lines > 0 else None)
        with open(path, encoding="utf-8", errors="replace") as fh:
            for lineno, line in enumerate(fh, start=1):
                text = line.rstrip("\r\n")
                if text.strip():
                    lines.append((lineno, text))
        return list(lines)


@dataclass
class FileGroup:
    paths: list[str]
    labels: dict[str, str] = field(default_factory=dict)
    routes: list[RoutingRule] = field(default_factory=list)


def _in_range(result: Result, window: ResolvedRange) -> bool:
    ts = parse_rfc3339(result.time)
    if ts is None:
        return True
    if window.start is not None and ts < window.start:
        return False
    if window.end is not None and ts > window.end:
        return False
    return True


class FileSearchBackend(SearchBackend):
    def __init__(self, groups: Sequence[FileGroup], reader: FileReader | None = None):
        super().__init__()
        self._groups = list(groups)
        self._reader = reader or TailFileReader()

    def get_source_name(self) -> str:
        return "file"

    def match_route(self, params: QueryParameters) -> tuple[bool, bool]:
        for group in self._groups:
            matched, additive = match_route(group.routes, params)
            if matched:
                return True, additive
        return False, False

    async def _search_path(self, path: str, group: FileGroup, params: QueryParameters) -> list[Result]:
        try:
            lines = await self._reader.read(path, params.limit_per_item)
        except OSError as e:
            raise TransportError(f"error reading {path}: {e}") from e

        window = params.resolved()
        results = []
        # newest first
        for lineno, text in reversed(lines):
            if params.query and params.query not in text:
                continue
            result = process_result(
                Result(
                    id=f"{Path(path).name}:{lineno}",
                    message=text,
                    labels={**group.labels, "path": path},
                )
            )
            if _in_range(result, window):
                results.append(result)
        return results

    async def search(self, params: QueryParameters) -> SearchResults:
        params = params.with_defaults()
        matched: list[Result] = []
        for group in self._groups:
            if not match_route(group.routes, params)[0]:
                continue
            for path in group.paths:
                matched.extend(await self._search_path(path, group, params))

        logger.debug("file search matched %s lines for %s", len(matched), params)
        return SearchResults(total=len(matched), results=matched[: params.limit])
