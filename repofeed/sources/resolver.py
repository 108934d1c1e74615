"""TrendingResolver — ordered fallback across discovery sources."""

from ..log import event, log
from .base import RepoCandidate, RepoSource, SourceExhausted


def build_sources(config) -> list[RepoSource]:
    """Instantiate the sources named in config.sources, in that order."""
    from . import SOURCE_TYPES

    per_source = {
        "ossinsight": {"timeout": config.source_timeout},
        "github_search": {"timeout": config.source_timeout, "token": config.github_token},
        "github_trending": {"timeout": config.source_timeout},
    }
    return [SOURCE_TYPES[name](per_source.get(name, {})) for name in config.sources]


class TrendingResolver:
    """Tries each source in priority order; the first non-empty answer wins."""

    def __init__(self, sources: list[RepoSource]):
        self.sources = list(sources)

    @classmethod
    def from_config(cls, config) -> "TrendingResolver":
        return cls(build_sources(config))

    def resolve(self, limit: int = 10, language: str | None = None,
                period: str | None = None) -> list[RepoCandidate]:
        errors = {}
        for src in self.sources:
            if not src.is_available:
                errors[src.name] = "unavailable"
                continue
            try:
                repos = src.fetch_repos(limit, language=language, period=period)
            except Exception as e:
                event("SourceFailed", "%s: %s", src.name, e)
                errors[src.name] = str(e) or type(e).__name__
                continue
            if not repos:
                log(f"{src.name}: returned no repositories")
                errors[src.name] = "empty result"
                continue

            result = self._unique(repos)[:limit]
            log(f"{src.name}: found {len(result)} repositories")
            return result

        raise SourceExhausted(errors)

    @staticmethod
    def _unique(repos: list[RepoCandidate]) -> list[RepoCandidate]:
        seen = set()
        unique = []
        for repo in repos:
            if repo.name and repo.name not in seen:
                seen.add(repo.name)
                unique.append(repo)
        return unique
