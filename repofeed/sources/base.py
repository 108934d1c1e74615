"""RepoCandidate dataclass + RepoSource ABC."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..marketing import MarketingContent

USER_AGENT = "repofeed/1.0 (+trending-to-notion)"

# period name -> days, shared by the sources that need a window
PERIOD_DAYS = {"past_24_hours": 1, "past_week": 7, "past_month": 30}


class SourceExhausted(RuntimeError):
    """Every discovery source failed or returned nothing."""

    def __init__(self, errors: dict):
        self.errors = errors
        detail = "; ".join(f"{name}: {err}" for name, err in errors.items()) or "no sources configured"
        super().__init__(f"All discovery sources failed ({detail})")


@dataclass
class RepoCandidate:
    """A discovered repository. README and marketing fields are filled in later."""
    name: str  # "owner/repo", the dedup key
    source: str  # e.g. "ossinsight", "github_search"
    description: str = ""
    language: str = ""
    stars: int = 0
    forks: int = 0
    open_issues: int = 0
    url: str = ""
    author: str = ""
    author_avatar: str = ""
    created_at: str = ""
    updated_at: str = ""
    default_branch: str = "main"
    score: float = 0.0
    readme: str = ""
    has_readme: bool = False
    marketing: "MarketingContent | None" = None
    metadata: dict = field(default_factory=dict)

    def __post_init__(self):
        self.description = (self.description or "").strip()
        if not self.url and self.name:
            self.url = f"https://github.com/{self.name}"
        if not self.author and "/" in self.name:
            self.author = self.name.split("/", 1)[0]

    def owner_and_repo(self) -> tuple[str, str]:
        owner, _, repo = self.name.partition("/")
        return owner, repo


class RepoSource(ABC):
    """One interchangeable discovery strategy."""

    name: str = "unknown"

    @abstractmethod
    def fetch_repos(self, limit: int = 10, language: str | None = None,
                    period: str | None = None) -> list[RepoCandidate]:
        """Fetch trending repositories, most popular first.

        Raises on network failure or malformed payloads; an empty list is
        a valid (unsuccessful) answer.
        """
        ...

    @property
    def is_available(self) -> bool:
        """Check if this source is configured and usable."""
        return True


def to_int(value) -> int:
    """Lenient int parsing for API fields that arrive as strings or null."""
    try:
        return int(float(value or 0))
    except (TypeError, ValueError):
        return 0
