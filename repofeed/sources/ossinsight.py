"""OSS Insight trending-repos API source."""

import requests

from .base import USER_AGENT, RepoCandidate, RepoSource, to_int

ENDPOINT = "https://api.ossinsight.io/q/trending-repos"


class OSSInsightSource(RepoSource):
    name = "ossinsight"

    def __init__(self, config: dict = None):
        config = config or {}
        self.timeout = config.get("timeout", 10)

    def fetch_repos(self, limit=10, language=None, period=None) -> list[RepoCandidate]:
        params = {
            "language": language or "All",
            "period": period or "past_24_hours",
        }
        headers = {"Accept": "application/json", "User-Agent": USER_AGENT}
        r = requests.get(ENDPOINT, params=params, headers=headers, timeout=self.timeout)
        r.raise_for_status()

        rows = self._rows(r.json())
        repos = []
        for row in rows:
            name = (row.get("repo_name") or "").strip()
            if not name:
                continue
            repos.append(RepoCandidate(
                name=name,
                source=self.name,
                description=(row.get("description") or "").strip(),
                language=row.get("primary_language") or row.get("language") or "",
                stars=to_int(row.get("stars")),
                forks=to_int(row.get("forks")),
                score=float(row.get("total_score") or 0),
                metadata={"pull_requests": to_int(row.get("pull_requests"))},
            ))
            if len(repos) >= limit:
                break
        return repos

    @staticmethod
    def _rows(payload) -> list[dict]:
        """The endpoint has answered both {"data": [...]} and {"data": {"rows": [...]}}."""
        data = payload.get("data") if isinstance(payload, dict) else None
        if isinstance(data, dict):
            data = data.get("rows")
        if not isinstance(data, list):
            raise ValueError("unexpected OSS Insight payload shape")
        return data
