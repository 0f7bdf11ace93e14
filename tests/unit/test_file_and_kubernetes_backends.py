from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from loghub.contracts.errors import TransportError
from loghub.contracts.logs_v1 import QueryParameters, Result, SearchResults
from loghub.search.backends import FileGroup, FileSearchBackend, KubernetesSearchBackend
from loghub.search.routes import RoutingRule


@pytest.fixture
def app_log(tmp_path):
    path = tmp_path / "app.log"
    path.write_text(
        "2024-01-01T00:00:00Z boot\n"
        "2024-01-01T00:00:01Z ready\n"
        "\n"
        "2024-01-01T00:00:02Z error: disk full\n"
        "plain line without time\n",
        encoding="utf-8",
    )
    return path


class TestFileSearchBackend:
    @pytest.mark.asyncio
    async def test_lines_newest_first_with_labels(self, app_log):
        backend = FileSearchBackend(
            [FileGroup(paths=[str(app_log)], labels={"app": "demo"}, routes=[RoutingRule()])]
        )

        results = await backend.search(QueryParameters(start="2023-12-31T00:00:00Z"))

        assert [r.message for r in results.results] == [
            "plain line without time",
            "error: disk full",
            "ready",
            "boot",
        ]
        newest_stamped = results.results[1]
        assert newest_stamped.time == "2024-01-01T00:00:02Z"
        assert newest_stamped.id == "app.log:4"
        assert newest_stamped.labels == {"app": "demo", "path": str(app_log)}
        assert results.total == 4

    @pytest.mark.asyncio
    async def test_query_is_a_substring_post_filter(self, app_log):
        backend = FileSearchBackend([FileGroup(paths=[str(app_log)], routes=[RoutingRule()])])

        results = await backend.search(
            QueryParameters(query="disk", start="2023-12-31T00:00:00Z")
        )

        assert [r.message for r in results.results] == ["error: disk full"]

    @pytest.mark.asyncio
    async def test_time_window_filters_stamped_lines(self, app_log):
        backend = FileSearchBackend([FileGroup(paths=[str(app_log)], routes=[RoutingRule()])])

        results = await backend.search(
            QueryParameters(start="2024-01-01T00:00:01Z", end="2024-01-01T00:00:01Z")
        )

        assert [r.message for r in results.results] == ["plain line without time", "ready"]

    @pytest.mark.asyncio
    async def test_limits(self, app_log):
        backend = FileSearchBackend([FileGroup(paths=[str(app_log)], routes=[RoutingRule()])])

        per_item = await backend.search(
            QueryParameters(limit_per_item=2, start="2023-12-31T00:00:00Z")
        )
        overall = await backend.search(QueryParameters(limit=1, start="2023-12-31T00:00:00Z"))

        assert [r.message for r in per_item.results] == ["plain line without time", "error: disk full"]
        assert len(overall.results) == 1
        assert overall.total == 4

    @pytest.mark.asyncio
    async def test_only_matching_groups_are_read(self, app_log, tmp_path):
        other = tmp_path / "other.log"
        other.write_text("other line\n", encoding="utf-8")
        backend = FileSearchBackend(
            [
                FileGroup(paths=[str(app_log)], routes=[RoutingRule(type="App")]),
                FileGroup(paths=[str(other)], routes=[RoutingRule(type="Other", additive=True)]),
            ]
        )

        assert backend.match_route(QueryParameters(type="Other")) == (True, True)
        results = await backend.search(QueryParameters(type="Other"))
        assert [r.message for r in results.results] == ["other line"]

    @pytest.mark.asyncio
    async def test_unreadable_file_is_transport_error(self, tmp_path):
        backend = FileSearchBackend(
            [FileGroup(paths=[str(tmp_path / "missing.log")], routes=[RoutingRule()])]
        )

        with pytest.raises(TransportError, match="missing.log"):
            await backend.search(QueryParameters())

    @pytest.mark.asyncio
    async def test_custom_reader(self):
        reader = SimpleNamespace(read=AsyncMock(return_value=[(1, "from reader")]))
        backend = FileSearchBackend([FileGroup(paths=["/virtual.log"], routes=[RoutingRule()])], reader=reader)

        results = await backend.search(QueryParameters(limit_per_item=9))

        reader.read.assert_awaited_once_with("/virtual.log", 9)
        assert results.results[0].message == "from reader"


class TestKubernetesSearchBackend:
    @pytest.mark.asyncio
    async def test_delegates_with_namespace_and_extracts_timestamps(self):
        fetched = SearchResults(
            total=2,
            results=[
                Result(id="api-1", message="2024-01-01T00:00:00Z started", labels={"pod": "api-1"}),
                Result(id="api-1", message="no stamp"),
            ],
        )
        client = SimpleNamespace(fetch_logs=AsyncMock(return_value=fetched))
        backend = KubernetesSearchBackend(client, namespace="prod", routes=[RoutingRule(type="KubernetesPod")])

        results = await backend.search(QueryParameters(type="KubernetesPod", id="prod/api-1"))

        params, namespace = client.fetch_logs.await_args.args
        assert namespace == "prod"
        assert params.limit == 50
        assert results.total == 2
        assert results.results[0].time == "2024-01-01T00:00:00Z"
        assert results.results[0].message == "started"
        assert results.results[1] == Result(id="api-1", message="no stamp")

    @pytest.mark.asyncio
    async def test_client_failure_is_transport_error(self):
        client = SimpleNamespace(fetch_logs=AsyncMock(side_effect=RuntimeError("api down")))
        backend = KubernetesSearchBackend(client)

        with pytest.raises(TransportError, match="api down"):
            await backend.search(QueryParameters(type="KubernetesPod", id="x"))
