"""Trending repository discovery with ordered source fallback."""

from .base import RepoCandidate, RepoSource, SourceExhausted
from .github_search import GitHubSearchSource
from .github_trending import GitHubTrendingSource
from .ossinsight import OSSInsightSource
from .resolver import TrendingResolver

SOURCE_TYPES = {
    OSSInsightSource.name: OSSInsightSource,
    GitHubSearchSource.name: GitHubSearchSource,
    GitHubTrendingSource.name: GitHubTrendingSource,
}

__all__ = [
    "RepoCandidate", "RepoSource", "SourceExhausted", "TrendingResolver",
    "OSSInsightSource", "GitHubSearchSource", "GitHubTrendingSource", "SOURCE_TYPES",
]
