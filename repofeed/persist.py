"""Validate enriched candidates and write the complete ones to Notion."""

import logging
import time
from dataclasses import dataclass, field
from datetime import date

from .log import event, log
from .sources.base import RepoCandidate
from .store import (
    PROP_AUDIENCE, PROP_DATE, PROP_NAME, PROP_ONE_LINER, PROP_TAGS, PROP_URL,
    PROP_VALUE, PROP_WECHAT, PROP_XIAOHONGSHU, rich_text, title_text,
)

# attribute -> column name reported when it is missing
REQUIRED_FIELDS = {
    "name": PROP_NAME,
    "one_liner": PROP_ONE_LINER,
    "value": PROP_VALUE,
    "audience": PROP_AUDIENCE,
    "url": PROP_URL,
    "tags": PROP_TAGS,
    "xiaohongshu": PROP_XIAOHONGSHU,
    "wechat": PROP_WECHAT,
}


@dataclass
class WriteReport:
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    skipped_details: list = field(default_factory=list)  # [(name, [missing columns])]


def _field_value(repo: RepoCandidate, attr: str):
    if attr in ("name", "url"):
        return getattr(repo, attr)
    return getattr(repo.marketing, attr, None) if repo.marketing else None


def validate_record(repo: RepoCandidate) -> list[str]:
    """Column names of required fields that are absent or blank."""
    missing = []
    for attr, column in REQUIRED_FIELDS.items():
        value = _field_value(repo, attr)
        if not value or (isinstance(value, str) and not value.strip()):
            missing.append(column)
    return missing


def split_tags(tags: str) -> list[str]:
    # Models sometimes answer with the full-width comma
    parts = tags.replace("，", ",").split(",")
    seen = []
    for part in parts:
        tag = part.strip()[:100]
        if tag and tag not in seen:
            seen.append(tag)
    return seen


def build_properties(repo: RepoCandidate, today: date) -> dict:
    m = repo.marketing
    return {
        PROP_NAME: title_text(repo.name),
        PROP_DATE: {"date": {"start": today.isoformat()}},
        PROP_ONE_LINER: rich_text(m.one_liner),
        PROP_VALUE: rich_text(m.value),
        PROP_AUDIENCE: rich_text(m.audience),
        PROP_URL: {"url": repo.url},
        # Notion rejects commas inside select option names
        PROP_TAGS: {"multi_select": [{"name": t} for t in split_tags(m.tags)]},
        PROP_XIAOHONGSHU: rich_text(m.xiaohongshu),
        PROP_WECHAT: rich_text(m.wechat),
    }


def save_records(candidates: list[RepoCandidate], store, delay: float = 0.3,
                 today: date | None = None) -> WriteReport:
    """Write every complete record; incomplete ones are skipped, failures counted."""
    today = today or date.today()
    report = WriteReport()

    valid = []
    for index, repo in enumerate(candidates, 1):
        missing = validate_record(repo)
        if missing:
            report.skipped += 1
            report.skipped_details.append((repo.name or "未知", missing))
            event("ValidationIncomplete", "[%d] %s is missing %s, skipped",
                  index, repo.name or "未知", ", ".join(missing))
        else:
            valid.append(repo)

    log(f"Validation: {len(candidates)} total, {len(valid)} complete, {report.skipped} incomplete")
    if not valid:
        log("No complete records to save.")
        return report

    for i, repo in enumerate(valid):
        if i:
            time.sleep(delay)
        try:
            store.create_page(build_properties(repo, today))
        except Exception as e:
            report.failed += 1
            event("WriteFailed", "could not save %s: %s", repo.name, e, level=logging.ERROR)
            continue
        report.succeeded += 1
        log(f"[{report.succeeded}/{len(valid)}] Saved: {repo.name}")

    return report
