"""Backend registry: the active set of backend registrations.

Shared between query dispatch (readers) and reconciliation (writer), so every
access goes through one lock. Registrations are immutable; a config change
replaces an entry, it never edits one. Identity is the content hash of the
registration's spec, so two registrations built from equal configuration are
the same entity for reconciliation purposes.
"""

import logging
import threading
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Protocol

from loghub.contracts.logs_v1 import QueryParameters
from loghub.core.logger import logger as hub_logger
from loghub.search.config import BackendSpec
from loghub.search.interface import SearchBackend

logger = logging.getLogger(__name__)


class HasContentHash(Protocol):
    @property
    def content_hash(self) -> str: ...


@dataclass(frozen=True)
class BackendRegistration:
    spec: BackendSpec
    backend: SearchBackend
    content_hash: str = field(init=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "content_hash", self.spec.content_hash)

    @property
    def name(self) -> str:
        return f"{self.backend.get_source_name()}#{self.content_hash[:8]}"

    def match_route(self, params: QueryParameters) -> tuple[bool, bool]:
        return self.backend.match_route(params)


class BackendRegistry:
    """Ordered, lock-guarded list of BackendRegistrations.

    Construct one per process (or per test); call ``aclose()`` on shutdown to
    release backend transport clients.
    """

    def __init__(self, registrations: Iterable[BackendRegistration] = ()) -> None:
        self._lock = threading.RLock()
        self._entries: list[BackendRegistration] = list(registrations)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __iter__(self) -> Iterator[BackendRegistration]:
        return iter(self.snapshot())

    def snapshot(self) -> list[BackendRegistration]:
        with self._lock:
            return list(self._entries)

    def hashes(self) -> set[str]:
        with self._lock:
            return {r.content_hash for r in self._entries}

    def register(self, registration: BackendRegistration) -> None:
        """Append. Duplicate hashes are legal (redundant, not deduplicated)."""
        with self._lock:
            self._entries.append(registration)
            size = len(self._entries)
        hub_logger.registry_changed("added", registration.name, registration.content_hash, size)

    def deregister(self, desired: Iterable[HasContentHash]) -> list[BackendRegistration]:
        """Remove every entry whose hash is absent from ``desired``."""
        keep = {d.content_hash for d in desired}
        return self._remove_where(lambda r: r.content_hash not in keep)

    def remove(self, deleted: Iterable[HasContentHash]) -> list[BackendRegistration]:
        """Remove every entry whose hash appears in ``deleted``."""
        drop = {d.content_hash for d in deleted}
        return self._remove_where(lambda r: r.content_hash in drop)

    def _remove_where(self, predicate) -> list[BackendRegistration]:
        with self._lock:
            removed = [r for r in self._entries if predicate(r)]
            self._entries = [r for r in self._entries if not predicate(r)]
            size = len(self._entries)
        for r in removed:
            hub_logger.registry_changed("removed", r.name, r.content_hash, size)
        return removed

    def candidates(self, params: QueryParameters) -> list[BackendRegistration]:
        """Backends that should answer ``params``, in registration order.

        A matching additive route adds its backend and evaluation continues;
        the first matching non-additive route adds its backend and ends it.
        Stopping there is a deliberate routing policy pending product
        confirmation.
        """
        selected = []
        for registration in self.snapshot():
            matched, additive = registration.match_route(params)
            if not matched:
                continue
            selected.append(registration)
            if not additive:
                break
        logger.debug("candidates for %s: %s", params, [r.name for r in selected])
        return selected

    def clear(self) -> list[BackendRegistration]:
        return self._remove_where(lambda r: True)

    async def aclose(self) -> None:
        for registration in self.clear():
            await registration.backend.close()
