from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from loghub.contracts.logs_v1 import QueryParameters
from loghub.search.routes import RoutingRule, match_route

_text = st.text(alphabet="abcdef-/0123", max_size=8)

queries = st.builds(
    QueryParameters,
    type=_text,
    id=_text,
    labels=st.dictionaries(_text, _text, max_size=3),
)

rules = st.builds(
    RoutingRule,
    type=st.one_of(st.just(""), _text),
    id_prefix=st.one_of(st.just(""), _text),
    labels=st.dictionaries(_text, _text, max_size=2),
    additive=st.booleans(),
)


@pytest.mark.property
@given(params=queries)
def test_empty_rule_matches_every_query(params):
    assert RoutingRule().match(params) is True
    assert match_route([RoutingRule()], params) == (True, False)


@pytest.mark.property
@given(rule_set=st.lists(rules, max_size=4), params=queries)
def test_match_route_is_deterministic(rule_set, params):
    assert match_route(rule_set, params) == match_route(rule_set, params)


@pytest.mark.property
@given(rule_set=st.lists(rules, max_size=4), params=queries)
def test_match_route_reports_first_matching_rule(rule_set, params):
    matched, additive = match_route(rule_set, params)
    first = next((r for r in rule_set if r.match(params)), None)
    if first is None:
        assert (matched, additive) == (False, False)
    else:
        assert matched is True
        assert additive == first.additive


class TestLabelRules:
    rule = RoutingRule(labels={"env": "prod,staging"})

    def test_value_in_list_matches(self):
        assert self.rule.match(QueryParameters(labels={"env": "staging"}))

    def test_value_outside_list_does_not_match(self):
        assert not self.rule.match(QueryParameters(labels={"env": "dev"}))

    def test_missing_key_does_not_match(self):
        assert not self.rule.match(QueryParameters(labels={"team": "core"}))

    def test_keys_are_anded(self):
        rule = RoutingRule(labels={"env": "prod", "region": "eu,us"})
        assert rule.match(QueryParameters(labels={"env": "prod", "region": "us"}))
        assert not rule.match(QueryParameters(labels={"env": "prod"}))

    def test_extra_query_labels_are_ignored(self):
        assert self.rule.match(QueryParameters(labels={"env": "prod", "team": "core"}))


class TestTypeAndIdPrefix:
    def test_type_is_exact(self):
        rule = RoutingRule(type="KubernetesPod")
        assert rule.match(QueryParameters(type="KubernetesPod"))
        assert not rule.match(QueryParameters(type="KubernetesNode"))

    def test_id_prefix(self):
        rule = RoutingRule(id_prefix="prod/")
        assert rule.match(QueryParameters(id="prod/api-1"))
        assert not rule.match(QueryParameters(id="staging/api-1"))

    def test_yaml_aliases(self):
        rule = RoutingRule.model_validate({"idPrefix": "prod/", "additive": True})
        assert rule.id_prefix == "prod/"
        assert rule.additive is True


def test_first_match_wins_for_additive_flag():
    rule_set = [
        RoutingRule(type="VM", additive=True),
        RoutingRule(labels={"env": "prod"}, additive=False),
        RoutingRule(additive=True),
    ]

    assert match_route(rule_set, QueryParameters(type="VM", labels={"env": "prod"})) == (True, True)
    assert match_route(rule_set, QueryParameters(labels={"env": "prod"})) == (True, False)
    assert match_route(rule_set, QueryParameters(type="Pod")) == (True, True)


def test_no_rules_never_match():
    assert match_route([], QueryParameters()) == (False, False)
