"""Typed failures raised by backend adapters, the registry builder and the router."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from loghub.contracts.logs_v1 import BackendFailure


class LogHubError(Exception):
    """Base class for every failure this package raises on purpose."""

    kind = "error"


class ConfigurationError(LogHubError):
    """Malformed template, missing required field, bad regex. Fatal to one adapter only."""

    kind = "configuration"


class TemplateRenderError(LogHubError):
    """A pre-parsed query template could not be rendered for a request."""

    kind = "template"


class TransportError(LogHubError):
    """Network or protocol failure while talking to a backend."""

    kind = "transport"


class DecodeError(TransportError):
    """Backend answered with a body that does not match the expected shape."""

    kind = "decode"


class AllBackendsFailedError(LogHubError):
    """Every candidate backend for a query failed."""

    kind = "all_failed"

    def __init__(self, failures: list[BackendFailure]):
        self.failures = failures
        sources = ", ".join(f"{f.source}: {f.message}" for f in failures)
        super().__init__(f"all {len(failures)} backend(s) failed ({sources})")
