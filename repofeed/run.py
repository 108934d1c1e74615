"""One end-to-end run: discover → dedup → README → marketing copy → Notion."""

from .config import ConfigMissing, PipelineConfig
from .dedup import filter_new
from .log import event_counts, get_logger, log, reset_events
from .marketing import MarketingGenerator
from .persist import save_records
from .readme import ReadmeFetcher
from .sources import TrendingResolver
from .store import NotionStore
from .summary import RunSummary


def _listing(candidates) -> None:
    log("Trending repositories:")
    for i, repo in enumerate(candidates, 1):
        m = repo.marketing
        log(f"{i:2d}. {repo.name}")
        log(f"    {m.one_liner}")
        log(f"    ★ {repo.stars} | forks {repo.forks} | {repo.language or '-'}")
        log(f"    tags: {m.tags}")
        log(f"    {repo.url}")


def run_pipeline(config: PipelineConfig, resolver=None, store=None, fetcher=None,
                 generator=None, persist: bool = True) -> RunSummary:
    """Execute a single run with the given configuration.

    Collaborators default to the real implementations built from `config`.
    Raises SourceExhausted when discovery fails, and ConfigMissing when the
    Notion settings are only half present and persistence is requested.
    The returned summary carries the events logged during the run.
    """
    summary = RunSummary()
    reset_events()
    try:
        _execute(summary, config, resolver, store, fetcher, generator, persist)
    finally:
        summary.events = event_counts()
    return summary


def _execute(summary: RunSummary, config: PipelineConfig, resolver, store, fetcher,
             generator, persist: bool):
    resolver = resolver or TrendingResolver.from_config(config)
    if store is None and config.store_configured:
        store = NotionStore.from_config(config)

    # 1. Discover
    candidates = resolver.resolve(config.fetch_count, language=config.language, period=config.period)
    summary.fetched = len(candidates)
    summary.source = candidates[0].source if candidates else ""
    summary.complete_stage("discover")

    # 2. Deduplicate against the store
    if store is not None:
        fresh = filter_new(candidates, store, window_days=config.dedup_window_days)
        summary.complete_stage("dedup")
    else:
        log("Notion not configured — skipping deduplication")
        fresh = list(candidates)
        summary.skip_stage("dedup")
    summary.duplicates = len(candidates) - len(fresh)
    summary.new = len(fresh)

    if not fresh:
        log("Every trending repository is already recorded — nothing to do")
        return

    # 3. Cap
    selected = fresh[: config.process_count]
    if len(fresh) < config.process_count:
        log(f"Only {len(fresh)} new repositories — processing all of them")
    else:
        log(f"Processing the first {len(selected)} new repositories")
    summary.selected = len(selected)

    # 4. README + marketing copy
    fetcher = fetcher or ReadmeFetcher.from_config(config)
    fetcher.enrich_all(selected)
    summary.readme_found = sum(1 for c in selected if c.has_readme)
    summary.complete_stage("readme")

    generator = generator or MarketingGenerator.from_config(config)
    generator.generate_all(selected)
    summary.generated_ai = sum(1 for c in selected if c.marketing.generated_by == "claude")
    summary.generated_fallback = summary.selected - summary.generated_ai
    summary.complete_stage("marketing")
    _listing(selected)

    # 5. Persist
    if not persist:
        log("Dry run — not saving to Notion")
        summary.skip_stage("persist")
        return
    if store is None:
        if config.store_partially_configured:
            summary.fail_stage("persist")
            missing = "NOTION_DATABASE_ID" if config.notion_api_key else "NOTION_API_KEY"
            raise ConfigMissing(f"{missing} is not set — cannot save to Notion")
        log("Notion not configured — skipping save")
        summary.skip_stage("persist")
        return

    log(f"Saving {len(selected)} repositories to Notion...")
    report = save_records(selected, store, delay=config.write_delay)
    summary.succeeded = report.succeeded
    summary.failed = report.failed
    summary.skipped = report.skipped
    summary.skipped_details = report.skipped_details
    summary.complete_stage("persist")
    if report.failed:
        get_logger().warning("%d of %d writes failed", report.failed, len(selected) - report.skipped)
