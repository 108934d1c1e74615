"""Tests for repofeed/dedup.py."""

from datetime import date
from unittest.mock import MagicMock, patch

import requests

from repofeed.dedup import filter_new, load_existing_names
from repofeed.log import event_counts, reset_events
from repofeed.store import NotionStore

from conftest import FakeStore, make_repos


class TestFilterNew:
    def test_removes_stored_names(self):
        repos = make_repos(6)
        store = FakeStore(names={"owner/repo1", "owner/repo4", "someone/else"})

        result = filter_new(repos, store)

        assert [r.name for r in result] == ["owner/repo0", "owner/repo2", "owner/repo3", "owner/repo5"]

    def test_set_difference_preserves_order(self):
        repos = make_repos(25)
        stored = {f"owner/repo{i}" for i in (3, 7, 11, 19, 24)} | {f"old/repo{i}" for i in range(5)}
        store = FakeStore(names=stored)

        result = filter_new(repos, store)

        assert len(stored) == 10
        assert len(result) == 20
        expected = [r for r in repos if r.name not in stored]
        assert result == expected

    def test_query_failure_passes_everything_through(self):
        repos = make_repos(4)
        result = filter_new(repos, FakeStore(names={"owner/repo0"}, fail_query=True))
        assert result == repos
        assert result is not repos

    def test_network_failure_passes_everything_through(self):
        class BrokenStore:
            def existing_names(self, since):
                raise requests.ConnectionError("no route to host")

        repos = make_repos(3)
        assert filter_new(repos, BrokenStore()) == repos

    def test_window(self):
        store = FakeStore()
        filter_new(make_repos(1), store, window_days=30, today=date(2026, 10, 19))
        assert store.queried_since == date(2026, 9, 19)

    def test_empty_store_keeps_all(self):
        repos = make_repos(3)
        assert filter_new(repos, FakeStore()) == repos


class TestLoadExistingNames:
    def test_returns_none_on_failure(self):
        assert load_existing_names(FakeStore(fail_query=True)) is None

    def test_returns_names(self):
        assert load_existing_names(FakeStore(names={"a/b"})) == {"a/b"}


class TestWithNotionStore:
    @patch("repofeed.retry.time.sleep")
    def test_unauthorized_passes_through_without_retry(self, mock_sleep):
        store = NotionStore("secret", "db")
        store.session = MagicMock()
        store.session.post.return_value.status_code = 401
        store.session.post.return_value.json.return_value = {"message": "unauthorized"}
        repos = make_repos(3)
        reset_events()

        assert filter_new(repos, store) == repos
        assert store.session.post.call_count == 1
        assert event_counts() == {"DedupQueryFailed": 1}
