"""Run logging: console + daily file, tagged pipeline events, the run report.

An event is a named degradation inside a run (a source failing, dedup
being skipped, template copy replacing Claude, a write failing). Events
are logged with their name as a tag, e.g.

    [DedupQueryFailed] could not query existing entries: Notion API 503

and tallied, so the end-of-run report can say how often each happened.
"""

import logging
import sys
from collections import Counter
from datetime import datetime

from .config import LOGS_DIR

LOGGER_NAME = "repofeed"

EVENTS = (
    "SourceFailed",
    "SourceExhausted",
    "DedupQueryFailed",
    "EnrichmentMiss",
    "GenerationDegraded",
    "ValidationIncomplete",
    "WriteFailed",
    "ConfigMissing",
)


class EventFormatter(logging.Formatter):
    """Exposes `%(tag)s`: "[EventName] " for event records, "" otherwise."""

    def format(self, record: logging.LogRecord) -> str:
        name = getattr(record, "event", None)
        record.tag = f"[{name}] " if name else ""
        return super().format(record)


class EventTally(logging.Handler):
    """Counts event records by name; writes nothing."""

    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.counts = Counter()

    def emit(self, record: logging.LogRecord):
        name = getattr(record, "event", None)
        if name:
            self.counts[name] += 1


_logger = None
_tally = EventTally()


def get_logger() -> logging.Logger:
    """The repofeed logger: INFO to stdout, DEBUG to ~/.repofeed/logs, event tally."""
    global _logger
    if _logger is not None:
        return _logger

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    if not any(isinstance(h, EventTally) for h in logger.handlers):
        console = logging.StreamHandler(sys.stdout)
        console.setLevel(logging.INFO)
        console.setFormatter(EventFormatter("  %(tag)s%(message)s"))
        logger.addHandler(console)

        LOGS_DIR.mkdir(parents=True, exist_ok=True)
        log_file = LOGS_DIR / f"{LOGGER_NAME}_{datetime.now():%Y%m%d}.log"
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(
            EventFormatter("%(asctime)s %(levelname)-8s %(tag)s%(message)s", datefmt="%H:%M:%S")
        )
        logger.addHandler(file_handler)
        logger.addHandler(_tally)

    _logger = logger
    return _logger


def set_verbose(verbose: bool = True):
    """Switch the console handler between DEBUG and INFO."""
    for handler in get_logger().handlers:
        if type(handler) is logging.StreamHandler:
            handler.setLevel(logging.DEBUG if verbose else logging.INFO)


def log(msg: str):
    """INFO-level shortcut."""
    get_logger().info(msg)


def event(name: str, msg: str, *args, level: int = logging.WARNING):
    """Log a tagged pipeline event and count it."""
    if name not in EVENTS:
        raise ValueError(f"Unknown event: {name}")
    get_logger().log(level, msg, *args, extra={"event": name})


def event_counts() -> dict:
    return dict(_tally.counts)


def reset_events():
    _tally.counts.clear()


def log_summary(summary):
    """Write the end-of-run report (a RunSummary) to console and log file."""
    logger = get_logger()
    rule = "=" * 60
    logger.info(rule)
    for line in summary.summary().splitlines():
        logger.info(line)
    logger.info(rule)
