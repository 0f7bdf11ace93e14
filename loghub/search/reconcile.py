"""Reconciliation entry point: converge the registry toward declarative state.

The watcher that observes external resources calls ``apply`` with the full
desired list of backend specs and ``remove`` with the specs of a resource
being deleted. Identity is the spec content hash throughout.
"""

import logging
from collections.abc import Iterable, Sequence

from loghub.contracts.errors import ConfigurationError
from loghub.search.config import BackendSpec
from loghub.search.factory import BackendFactory
from loghub.search.registry import BackendRegistration, BackendRegistry

logger = logging.getLogger(__name__)


def build_registrations(
    specs: Iterable[BackendSpec], factory: BackendFactory
) -> tuple[list[BackendRegistration], list[ConfigurationError]]:
    """Build adapters; a spec that fails to build is skipped, not fatal."""
    registrations: list[BackendRegistration] = []
    errors: list[ConfigurationError] = []
    for spec in specs:
        try:
            registrations.append(BackendRegistration(spec=spec, backend=factory.build(spec)))
        except ConfigurationError as e:
            logger.error("error adding %s backend (%s): %s", spec.kind, spec.content_hash[:8], e)
            errors.append(e)
    return registrations, errors


class Reconciler:
    def __init__(self, registry: BackendRegistry, factory: BackendFactory) -> None:
        self._registry = registry
        self._factory = factory

    def apply(self, desired: Sequence[BackendSpec]) -> list[ConfigurationError]:
        """Drop entries not in ``desired``, then add desired specs not yet present.

        Existing entries whose spec is still desired are kept as-is, so a spec
        that currently fails to build does not evict a working registration.
        """
        removed = self._registry.deregister(desired)
        present = self._registry.hashes()
        missing: list[BackendSpec] = []
        for spec in desired:
            if spec.content_hash not in present:
                missing.append(spec)
                present.add(spec.content_hash)

        registrations, errors = build_registrations(missing, self._factory)
        for registration in registrations:
            self._registry.register(registration)
        logger.info(
            "Reconciled backends: %s removed, %s added, %s failed, %s active",
            len(removed),
            len(registrations),
            len(errors),
            len(self._registry),
        )
        return errors

    def remove(self, deleted: Sequence[BackendSpec]) -> int:
        """Removal-only path for a deleted configuration resource."""
        removed = self._registry.remove(deleted)
        logger.info("Deleted config: %s backend(s) removed", len(removed))
        return len(removed)
