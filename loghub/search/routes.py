"""Routing rules: declarative predicates deciding which backends answer a query.

A rule matches when every field it sets agrees with the query:
  - ``type``: exact match
  - ``idPrefix``: the query id starts with it
  - ``labels``: for each key, the query carries the key and its value is one of
    the comma-separated values configured for that key

An empty rule matches every query. Rules are evaluated in configured order and
the first match decides whether the backend is additive.
"""

from collections.abc import Sequence

from pydantic import BaseModel, ConfigDict, Field

from loghub.contracts.logs_v1 import QueryParameters


class RoutingRule(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    type: str = Field(default="", description="Exact query type; empty matches any")
    id_prefix: str = Field(default="", alias="idPrefix", description="Query id prefix; empty matches any")
    labels: dict[str, str] = Field(
        default_factory=dict,
        description="Label key -> comma-separated allowed values (AND across keys, OR within)",
    )
    additive: bool = Field(
        default=False,
        description="A match adds this backend without stopping evaluation of later backends",
    )

    def match(self, params: QueryParameters) -> bool:
        if self.type and self.type != params.type:
            return False
        if self.id_prefix and not params.id.startswith(self.id_prefix):
            return False
        for key, allowed in self.labels.items():
            value = params.labels.get(key)
            if value is None:
                return False
            if value not in _split_values(allowed):
                return False
        return True


def _split_values(allowed: str) -> list[str]:
    return [v.strip() for v in allowed.split(",")]


def match_route(rules: Sequence[RoutingRule], params: QueryParameters) -> tuple[bool, bool]:
    """Return (matched, additive) for the first rule that matches, else (False, False)."""
    for rule in rules:
        if rule.match(params):
            return True, rule.additive
    return False, False
