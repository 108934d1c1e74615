"""End-to-end tests for repofeed/run.py with fake collaborators."""

from unittest.mock import MagicMock

import pytest

from repofeed.config import ConfigMissing
from repofeed.marketing import MarketingGenerator
from repofeed.run import run_pipeline
from repofeed.sources.base import SourceExhausted
from repofeed.sources.resolver import TrendingResolver

from conftest import FakeStore, StaticSource, make_repos


class NoReadme:
    def __init__(self):
        self.seen = []

    def enrich_all(self, candidates):
        self.seen = [c.name for c in candidates]
        return candidates


@pytest.fixture
def fetcher():
    return NoReadme()


@pytest.fixture
def generator():
    return MarketingGenerator(api_key="", delay=0)


class TestRunPipeline:
    def test_dedup_then_cap(self, fast_config, fetcher, generator):
        repos = make_repos(25)
        stored = {f"owner/repo{i}" for i in (0, 5, 10, 15, 20)} | {f"old/repo{i}" for i in range(5)}
        store = FakeStore(names=stored)
        resolver = TrendingResolver([StaticSource("s", repos)])

        summary = run_pipeline(fast_config, resolver=resolver, store=store,
                               fetcher=fetcher, generator=generator)

        expected = [r.name for r in repos if r.name not in stored][:10]
        assert summary.fetched == 25
        assert summary.duplicates == 5
        assert summary.new == 20
        assert summary.selected == 10
        assert fetcher.seen == expected
        written = [p["名称"]["title"][0]["text"]["content"] for p in store.pages]
        assert written == expected
        assert (summary.succeeded, summary.failed, summary.skipped) == (10, 0, 0)
        assert summary.generated_fallback == 10
        assert summary.persisted

    def test_fallback_source(self, fast_config, fetcher, generator):
        first = StaticSource("first", error=RuntimeError("503"))
        second = StaticSource("second", make_repos(8))
        third = StaticSource("third", make_repos(3))

        summary = run_pipeline(fast_config, resolver=TrendingResolver([first, second, third]),
                               store=FakeStore(), fetcher=fetcher, generator=generator)

        assert summary.fetched == 8
        assert third.calls == 0
        assert summary.events == {"SourceFailed": 1}

    def test_source_exhausted_propagates(self, fast_config, fetcher, generator):
        resolver = TrendingResolver([StaticSource("a", error=RuntimeError("x"))])
        with pytest.raises(SourceExhausted):
            run_pipeline(fast_config, resolver=resolver, store=FakeStore(),
                         fetcher=fetcher, generator=generator)

    def test_all_duplicates_stops_early(self, fast_config, fetcher, generator):
        repos = make_repos(3)
        store = FakeStore(names={r.name for r in repos})

        summary = run_pipeline(fast_config, resolver=TrendingResolver([StaticSource("s", repos)]),
                               store=store, fetcher=fetcher, generator=generator)

        assert summary.new == 0
        assert fetcher.seen == []
        assert store.pages == []

    def test_dedup_failure_processes_all(self, fast_config, fetcher, generator):
        repos = make_repos(4)
        store = FakeStore(names={"owner/repo0"}, fail_query=True)

        summary = run_pipeline(fast_config, resolver=TrendingResolver([StaticSource("s", repos)]),
                               store=store, fetcher=fetcher, generator=generator)

        assert summary.duplicates == 0
        assert summary.succeeded == 4
        assert summary.events == {"DedupQueryFailed": 1}
        assert "DedupQueryFailed x1" in summary.summary()

    def test_no_store_configured_skips(self, fast_config, fetcher, generator):
        summary = run_pipeline(fast_config, resolver=TrendingResolver([StaticSource("s", make_repos(12))]),
                               fetcher=fetcher, generator=generator)

        assert summary.selected == 10
        assert summary.stages["dedup"] == "skipped"
        assert summary.stages["persist"] == "skipped"
        assert not summary.persisted

    def test_partial_store_config_fails_at_persist(self, fast_config, fetcher, generator):
        fast_config.notion_api_key = "secret"
        gen = MagicMock(wraps=generator)

        with pytest.raises(ConfigMissing, match="NOTION_DATABASE_ID"):
            run_pipeline(fast_config, resolver=TrendingResolver([StaticSource("s", make_repos(2))]),
                         fetcher=fetcher, generator=gen)
        # earlier stages still ran
        assert fetcher.seen == ["owner/repo0", "owner/repo1"]
        gen.generate_all.assert_called_once()

    def test_dry_run_does_not_write(self, fast_config, fetcher, generator):
        store = FakeStore()
        summary = run_pipeline(fast_config, resolver=TrendingResolver([StaticSource("s", make_repos(2))]),
                               store=store, fetcher=fetcher, generator=generator, persist=False)
        assert store.pages == []
        assert summary.stages["persist"] == "skipped"
        assert summary.stages["dedup"] == "done"
