"""Log search: routing, backend registry, result normalization."""

from loghub.search.interface import SearchBackend
from loghub.search.reconcile import Reconciler
from loghub.search.registry import BackendRegistration, BackendRegistry
from loghub.search.router import QueryRouter
from loghub.search.routes import RoutingRule, match_route

__all__ = [
    "BackendRegistration",
    "BackendRegistry",
    "QueryRouter",
    "Reconciler",
    "RoutingRule",
    "SearchBackend",
    "match_route",
]
