"""GitHub Search API source — recently pushed, highly starred repositories."""

from datetime import date, timedelta

import requests

from .base import PERIOD_DAYS, USER_AGENT, RepoCandidate, RepoSource, to_int

ENDPOINT = "https://api.github.com/search/repositories"


class GitHubSearchSource(RepoSource):
    name = "github_search"

    def __init__(self, config: dict = None):
        config = config or {}
        self.token = config.get("token", "")
        self.timeout = config.get("timeout", 10)
        self.min_stars = config.get("min_stars", 500)

    def fetch_repos(self, limit=10, language=None, period=None) -> list[RepoCandidate]:
        # Unauthenticated requests are limited to 60/hour
        days = PERIOD_DAYS.get(period, 7)
        since = (date.today() - timedelta(days=days)).isoformat()
        query = f"pushed:>={since} stars:>{self.min_stars}"
        if language and language.lower() != "all":
            query += f" language:{language}"

        headers = {"Accept": "application/vnd.github.v3+json", "User-Agent": USER_AGENT}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        r = requests.get(
            ENDPOINT,
            params={"q": query, "sort": "stars", "order": "desc", "per_page": min(limit, 100)},
            headers=headers,
            timeout=self.timeout,
        )
        r.raise_for_status()

        repos = []
        for item in r.json().get("items", [])[:limit]:
            owner = item.get("owner") or {}
            repos.append(RepoCandidate(
                name=item["full_name"],
                source=self.name,
                description=(item.get("description") or "").strip(),
                language=item.get("language") or "",
                stars=to_int(item.get("stargazers_count")),
                forks=to_int(item.get("forks_count")),
                open_issues=to_int(item.get("open_issues_count")),
                url=item.get("html_url", ""),
                author=owner.get("login", ""),
                author_avatar=owner.get("avatar_url", ""),
                created_at=item.get("created_at", ""),
                updated_at=item.get("updated_at", ""),
                default_branch=item.get("default_branch") or "main",
            ))
        return repos
