"""README lookup via the GitHub contents API."""

import base64
import time

import requests

from .log import event, get_logger, log
from .sources.base import USER_AGENT, RepoCandidate

CONTENTS_URL = "https://api.github.com/repos/{owner}/{repo}/contents/{path}"
README_NAMES = ["README.md", "Readme.md", "readme.md", "README", "README.txt"]


class ReadmeFetcher:
    """Attaches README text to candidates, one lookup at a time."""

    def __init__(self, token: str = "", timeout: float = 10.0,
                 max_chars: int = 8000, delay: float = 0.5):
        self.token = token
        self.timeout = timeout
        self.max_chars = max_chars
        self.delay = delay

    @classmethod
    def from_config(cls, config) -> "ReadmeFetcher":
        return cls(
            token=config.github_token,
            timeout=config.readme_timeout,
            max_chars=config.readme_max_chars,
            delay=config.readme_delay,
        )

    def _headers(self) -> dict:
        headers = {"Accept": "application/vnd.github.v3.raw", "User-Agent": USER_AGENT}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    def _fetch_file(self, owner: str, repo: str, branch: str, filename: str) -> str:
        """Return the file's text, or "" when it does not exist."""
        url = CONTENTS_URL.format(owner=owner, repo=repo, path=filename)
        r = requests.get(url, headers=self._headers(), params={"ref": branch}, timeout=self.timeout)
        if r.status_code == 404:
            return ""
        r.raise_for_status()

        # Raw accept header normally gives the text; some proxies still send JSON
        if "application/json" in r.headers.get("Content-Type", ""):
            payload = r.json()
            if isinstance(payload, dict) and payload.get("content"):
                return base64.b64decode(payload["content"]).decode("utf-8", errors="replace")
            return ""
        return r.text

    def fetch_readme(self, owner: str, repo: str, branch: str = "main") -> str:
        """First non-empty README among the conventional names, or ""."""
        for filename in README_NAMES:
            try:
                text = self._fetch_file(owner, repo, branch, filename)
            except requests.RequestException as e:
                get_logger().debug("README lookup %s/%s/%s failed: %s", owner, repo, filename, e)
                continue
            if text.strip():
                return text
        event("EnrichmentMiss", "no README found: %s/%s", owner, repo)
        return ""

    def enrich(self, candidate: RepoCandidate) -> RepoCandidate:
        owner, repo = candidate.owner_and_repo()
        readme = self.fetch_readme(owner, repo, candidate.default_branch or "main")
        candidate.readme = readme[: self.max_chars]
        candidate.has_readme = bool(readme)
        if readme:
            log(f"  README: {len(readme)} chars")
        return candidate

    def enrich_all(self, candidates: list[RepoCandidate]) -> list[RepoCandidate]:
        log(f"Fetching README for {len(candidates)} repositories...")
        for i, candidate in enumerate(candidates):
            if i:
                time.sleep(self.delay)
            log(f"[{i + 1}/{len(candidates)}] {candidate.name}")
            self.enrich(candidate)
        return candidates
