"""CLI entry point — python -m repofeed."""

import argparse
import logging
import sys

from .config import PERIODS, ConfigMissing, load_pipeline_config, run_setup
from .log import event, log_summary, set_verbose


def cmd_run(args):
    from .run import run_pipeline
    from .sources import SourceExhausted

    config = load_pipeline_config(
        fetch_count=args.fetch_count,
        process_count=args.process_count,
        language=args.language,
        period=args.period,
    )
    try:
        summary = run_pipeline(config, persist=not args.dry_run)
    except SourceExhausted as e:
        event("SourceExhausted", "run failed: %s", e, level=logging.ERROR)
        sys.exit(1)
    except ConfigMissing as e:
        event("ConfigMissing", "run failed: %s", e, level=logging.ERROR)
        sys.exit(1)
    log_summary(summary)


def cmd_trending(args):
    from .sources import SourceExhausted, TrendingResolver

    config = load_pipeline_config(language=args.language, period=args.period)
    resolver = TrendingResolver.from_config(config)
    try:
        repos = resolver.resolve(args.limit, language=config.language, period=config.period)
    except SourceExhausted as e:
        print(f"  {e}")
        sys.exit(1)

    print(f"\n  Trending repositories ({len(repos)} from {repos[0].source}):\n")
    for i, repo in enumerate(repos, 1):
        lang = f" [{repo.language}]" if repo.language else ""
        print(f"  {i:2d}. {repo.name}{lang} ★ {repo.stars}")
        if repo.description:
            print(f"      {repo.description[:100]}")


def cmd_init_db(args):
    from .store import StoreError, create_database

    config = load_pipeline_config()
    try:
        database_id = create_database(config.notion_api_key, args.parent_page, title=args.title)
    except (ConfigMissing, StoreError) as e:
        print(f"  {e}")
        sys.exit(1)
    print(f"\n  Database id: {database_id}")
    print("  Save it as NOTION_DATABASE_ID (python -m repofeed setup).")


def main():
    parser = argparse.ArgumentParser(
        description="repofeed — trending GitHub repositories to Notion, with AI marketing copy",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="cmd")

    # run
    p_run = sub.add_parser("run", help="Full pipeline: discover -> dedup -> enrich -> save")
    p_run.add_argument("--fetch-count", type=int, default=None, help="Repositories to discover")
    p_run.add_argument("--process-count", type=int, default=None, help="Max new repositories to process")
    p_run.add_argument("--language", default=None, help="Language filter (default: All)")
    p_run.add_argument("--period", default=None, choices=PERIODS)
    p_run.add_argument("--dry-run", action="store_true", help="Skip saving to Notion")

    # trending
    p_trend = sub.add_parser("trending", help="Show trending repositories only")
    p_trend.add_argument("--limit", type=int, default=15, help="Max repositories to show")
    p_trend.add_argument("--language", default=None)
    p_trend.add_argument("--period", default=None, choices=PERIODS)

    # setup
    sub.add_parser("setup", help="Interactive credential setup")

    # init-db
    p_db = sub.add_parser("init-db", help="Create the Notion database")
    p_db.add_argument("--parent-page", required=True, help="Notion page id to create it under")
    p_db.add_argument("--title", default="GitHub 热门仓库")

    args = parser.parse_args()

    if args.verbose:
        set_verbose(True)

    if not args.cmd:
        parser.print_help()
        return

    if args.cmd == "run":
        cmd_run(args)
    elif args.cmd == "trending":
        cmd_trending(args)
    elif args.cmd == "setup":
        run_setup()
    elif args.cmd == "init-db":
        cmd_init_db(args)


if __name__ == "__main__":
    main()
