"""Shared test fixtures."""

import pytest

from repofeed.config import PipelineConfig
from repofeed.marketing import MarketingContent
from repofeed.sources.base import RepoCandidate, RepoSource


@pytest.fixture
def sample_repo():
    """A discovered repository with README, before marketing copy."""
    return RepoCandidate(
        name="octo/widget",
        source="github_search",
        description="A tiny widget toolkit",
        language="Python",
        stars=1234,
        forks=56,
        open_issues=7,
        readme="# widget\nBuild widgets fast.",
        has_readme=True,
    )


@pytest.fixture
def sample_marketing():
    return MarketingContent(
        one_liner="小巧的组件工具箱",
        value="帮助开发者快速构建组件。",
        audience="Python 开发者",
        tags="开发工具,Python,组件",
        xiaohongshu="🔥 超好用的组件库！",
        wechat="【推荐】widget 组件工具箱。",
        generated_by="claude",
    )


@pytest.fixture
def complete_repo(sample_repo, sample_marketing):
    sample_repo.marketing = sample_marketing
    return sample_repo


@pytest.fixture
def fast_config():
    """Config with every delay disabled and no credentials."""
    return PipelineConfig(
        fetch_count=100,
        process_count=10,
        readme_delay=0,
        generation_delay=0,
        write_delay=0,
    )


def make_repos(count, prefix="owner/repo"):
    return [RepoCandidate(name=f"{prefix}{i}", source="test", stars=1000 - i) for i in range(count)]


class StaticSource(RepoSource):
    """Source returning a fixed list, recording how often it was called."""

    def __init__(self, name, repos=None, error=None):
        self.name = name
        self.repos = repos or []
        self.error = error
        self.calls = 0

    def fetch_repos(self, limit=10, language=None, period=None):
        self.calls += 1
        if self.error:
            raise self.error
        return list(self.repos)


class FakeStore:
    """In-memory stand-in for NotionStore."""

    def __init__(self, names=(), fail_query=False, fail_names=()):
        self.names = set(names)
        self.fail_query = fail_query
        self.fail_names = set(fail_names)
        self.pages = []
        self.queried_since = None

    def existing_names(self, since):
        self.queried_since = since
        if self.fail_query:
            from repofeed.store import StoreError
            raise StoreError(503, "service unavailable")
        return set(self.names)

    def create_page(self, properties):
        name = properties["名称"]["title"][0]["text"]["content"]
        if name in self.fail_names:
            from repofeed.store import StoreError
            raise StoreError(400, "validation_error")
        self.pages.append(properties)
        return f"page-{len(self.pages)}"
