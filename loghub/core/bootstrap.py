"""Registry, reconciler and router wiring at startup."""

from dataclasses import dataclass, field
from pathlib import Path

from loghub.contracts.errors import ConfigurationError
from loghub.core.config import config
from loghub.core.logger import logger
from loghub.search.config import load_config
from loghub.search.factory import BackendFactory
from loghub.search.reconcile import Reconciler
from loghub.search.registry import BackendRegistry
from loghub.search.router import QueryRouter


@dataclass
class LogHub:
    registry: BackendRegistry
    reconciler: Reconciler
    router: QueryRouter
    errors: list[ConfigurationError] = field(default_factory=list)

    async def close(self) -> None:
        await self.registry.aclose()
        logger.close()


def create_hub(
    config_file: str | Path | None = None,
    factory: BackendFactory | None = None,
) -> LogHub:
    """Load the backends document and register every backend that builds.

    Invalid entries and adapters that fail to build are collected in
    ``errors``; they do not stop the others from loading.
    """
    registry = BackendRegistry()
    reconciler = Reconciler(registry, factory or BackendFactory())
    hub = LogHub(registry=registry, reconciler=reconciler, router=QueryRouter(registry))

    path = Path(config_file) if config_file else config.backends_file
    if not path.exists():
        logger.console.warning(f"No backends config at {path}; starting with an empty registry")
        return hub

    loaded = load_config(path)
    hub.errors.extend(loaded.errors)
    hub.errors.extend(reconciler.apply(loaded.backends))
    logger.console.info(f"Backends ready: {len(registry)} active, {len(hub.errors)} skipped")
    return hub
