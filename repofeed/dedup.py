"""Drop candidates already recorded in the store."""

from datetime import date, timedelta

import requests

from .log import event, log
from .sources.base import RepoCandidate
from .store import StoreError


def load_existing_names(store, window_days: int = 30, today: date | None = None) -> set[str] | None:
    """Names stored within the trailing window, or None if the query failed."""
    since = (today or date.today()) - timedelta(days=window_days)
    try:
        return store.existing_names(since)
    except (StoreError, requests.RequestException) as e:
        event("DedupQueryFailed", "could not query existing entries: %s", e)
        return None


def drop_existing(candidates: list[RepoCandidate], existing: set[str]) -> list[RepoCandidate]:
    return [c for c in candidates if c.name not in existing]


def filter_new(candidates: list[RepoCandidate], store, window_days: int = 30,
               today: date | None = None) -> list[RepoCandidate]:
    """Candidates whose name is not stored yet, in input order."""
    existing = load_existing_names(store, window_days, today)
    if existing is None:
        # Best effort: pass everything through rather than block the run
        log("Deduplication skipped — treating every repository as new")
        return list(candidates)

    fresh = drop_existing(candidates, existing)
    log(f"{len(existing)} entries in the last {window_days} days; "
        f"{len(candidates) - len(fresh)} duplicates removed, {len(fresh)} new")
    return fresh
