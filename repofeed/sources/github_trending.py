"""Scrape of the github.com/trending page, used as the last resort."""

import re
from html.parser import HTMLParser

import requests

from .base import USER_AGENT, RepoCandidate, RepoSource, to_int

TRENDING_URL = "https://github.com/trending"
SINCE = {"past_24_hours": "daily", "past_week": "weekly", "past_month": "monthly"}


class _TrendingParser(HTMLParser):
    """Collects one dict per <article class="Box-row">."""

    def __init__(self):
        super().__init__()
        self.rows = []
        self._row = None
        self._in_h2 = False
        self._field = None  # (field name, closing tag)
        self._text = []

    def handle_starttag(self, tag, attrs):
        d = dict(attrs)
        cls = d.get("class") or ""
        if tag == "article" and "Box-row" in cls:
            self._row = {}
            return
        if self._row is None or self._field:
            return

        href = d.get("href") or ""
        if tag == "h2":
            self._in_h2 = True
        elif tag == "a" and self._in_h2 and "name" not in self._row:
            self._row["name"] = href.strip("/")
        elif tag == "p" and "description" not in self._row:
            self._start("description", tag)
        elif tag == "span" and d.get("itemprop") == "programmingLanguage":
            self._start("language", tag)
        elif tag == "a" and href.endswith("/stargazers"):
            self._start("stars", tag)
        elif tag == "a" and href.endswith("/forks"):
            self._start("forks", tag)
        elif tag == "span" and "float-sm-right" in cls:
            self._start("stars_today", tag)

    def handle_endtag(self, tag):
        if self._field and tag == self._field[1]:
            self._row[self._field[0]] = " ".join("".join(self._text).split())
            self._field = None
        elif tag == "h2":
            self._in_h2 = False
        elif tag == "article" and self._row is not None:
            if self._row.get("name"):
                self.rows.append(self._row)
            self._row = None

    def handle_data(self, data):
        if self._field:
            self._text.append(data)

    def _start(self, name, tag):
        self._field = (name, tag)
        self._text = []


def _count(text: str) -> int:
    m = re.search(r"[\d,]+", text or "")
    return to_int(m.group(0).replace(",", "")) if m else 0


def parse_trending_html(html: str) -> list[dict]:
    parser = _TrendingParser()
    parser.feed(html)
    return parser.rows


class GitHubTrendingSource(RepoSource):
    name = "github_trending"

    def __init__(self, config: dict = None):
        config = config or {}
        self.timeout = config.get("timeout", 10)

    def fetch_repos(self, limit=10, language=None, period=None) -> list[RepoCandidate]:
        url = TRENDING_URL
        if language and language.lower() != "all":
            url += "/" + language.lower().replace(" ", "-")
        r = requests.get(
            url,
            params={"since": SINCE.get(period, "daily")},
            headers={"User-Agent": USER_AGENT, "Accept": "text/html"},
            timeout=self.timeout,
        )
        r.raise_for_status()

        repos = []
        for row in parse_trending_html(r.text)[:limit]:
            name = "/".join(p.strip() for p in row["name"].split("/"))
            repos.append(RepoCandidate(
                name=name,
                source=self.name,
                description=row.get("description", ""),
                language=row.get("language", ""),
                stars=_count(row.get("stars")),
                forks=_count(row.get("forks")),
                metadata={"stars_today": _count(row.get("stars_today"))},
            ))
        return repos
