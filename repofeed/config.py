"""Key resolution, paths, pipeline options, and setup wizard."""

import json
import os
import sys
from dataclasses import dataclass, field, fields
from pathlib import Path

# ─────────────────────────────────────────────────────
# Home directory: config and logs live here
# ─────────────────────────────────────────────────────
HOME_DIR = Path.home() / ".repofeed"
LOGS_DIR = HOME_DIR / "logs"
CONFIG_FILE = HOME_DIR / "config.json"

DEFAULT_SOURCES = ("ossinsight", "github_search", "github_trending")
PERIODS = ("past_24_hours", "past_week", "past_month")


class ConfigMissing(RuntimeError):
    """A credential or identifier required by an integration is not set."""


# ─────────────────────────────────────────────────────
# Utilities
# ─────────────────────────────────────────────────────
def write_secret_file(path: Path, content: str):
    """Write a file with 0600 permissions (owner read/write only).

    The mode is passed to os.open() so the file never exists world-readable.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd = os.open(str(path), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    with os.fdopen(fd, "w") as f:
        f.write(content)


# ─────────────────────────────────────────────────────
# API key resolution: env, then config.json
# ─────────────────────────────────────────────────────
def _get_key(name: str) -> str:
    """Resolve a credential: environment variable first, then config.json."""
    val = os.environ.get(name)
    if val:
        return val
    if CONFIG_FILE.exists():
        try:
            cfg = json.loads(CONFIG_FILE.read_text())
            val = cfg.get(name)
            if val:
                return val
        except (OSError, ValueError):
            pass
    return ""


def load_config() -> dict:
    """Load the full config.json, including the "pipeline" options section."""
    if CONFIG_FILE.exists():
        try:
            return json.loads(CONFIG_FILE.read_text())
        except (OSError, ValueError):
            pass
    return {}


def save_config(config: dict):
    """Save config.json with restricted permissions."""
    HOME_DIR.mkdir(parents=True, exist_ok=True)
    write_secret_file(CONFIG_FILE, json.dumps(config, indent=2, ensure_ascii=False))


# ─────────────────────────────────────────────────────
# Pipeline options
# ─────────────────────────────────────────────────────
@dataclass
class PipelineConfig:
    """Every tunable of a run. Components receive values from here only."""

    # Discovery
    fetch_count: int = 100
    process_count: int = 20
    language: str = "All"
    period: str = "past_24_hours"
    sources: tuple = DEFAULT_SOURCES
    source_timeout: float = 10.0

    # Deduplication
    dedup_window_days: int = 30

    # README enrichment
    readme_timeout: float = 10.0
    readme_max_chars: int = 8000
    readme_delay: float = 0.5

    # Marketing generation
    model: str = "claude-sonnet-4-6"
    generation_timeout: float = 300.0
    generation_delay: float = 1.0
    prompt_readme_chars: int = 4000

    # Persistence
    write_delay: float = 0.3
    store_timeout: float = 30.0

    # Credentials
    anthropic_api_key: str = field(default="", repr=False)
    anthropic_base_url: str = ""
    github_token: str = field(default="", repr=False)
    notion_api_key: str = field(default="", repr=False)
    notion_database_id: str = ""

    @property
    def generation_enabled(self) -> bool:
        return bool(self.anthropic_api_key)

    @property
    def store_configured(self) -> bool:
        """Both Notion settings present."""
        return bool(self.notion_api_key and self.notion_database_id)

    @property
    def store_partially_configured(self) -> bool:
        return bool(self.notion_api_key) != bool(self.notion_database_id)


_KEY_FIELDS = {
    "anthropic_api_key": "ANTHROPIC_API_KEY",
    "anthropic_base_url": "ANTHROPIC_BASE_URL",
    "github_token": "GITHUB_TOKEN",
    "notion_api_key": "NOTION_API_KEY",
    "notion_database_id": "NOTION_DATABASE_ID",
}


def load_pipeline_config(**overrides) -> PipelineConfig:
    """Build a PipelineConfig: defaults < config.json "pipeline" < keys < overrides.

    Overrides whose value is None are ignored, so CLI flags can be passed
    straight through.
    """
    from .log import get_logger

    known = {f.name for f in fields(PipelineConfig)}
    values = {}

    section = load_config().get("pipeline", {})
    for name, value in section.items():
        if name in known:
            values[name] = value
        else:
            get_logger().warning("Ignoring unknown pipeline option %r in %s", name, CONFIG_FILE)

    for attr, env_name in _KEY_FIELDS.items():
        val = _get_key(env_name)
        if val:
            values[attr] = val

    for name, value in overrides.items():
        if value is None:
            continue
        if name not in known:
            raise TypeError(f"Unknown pipeline option: {name}")
        values[name] = value

    if "sources" in values:
        values["sources"] = _check_sources(values["sources"])
    return PipelineConfig(**values)


def _check_sources(names) -> tuple:
    from .log import get_logger
    from .sources import SOURCE_TYPES

    valid = []
    for name in names:
        if name in SOURCE_TYPES:
            valid.append(name)
        else:
            get_logger().warning("Unknown discovery source %r — ignored", name)
    return tuple(valid)


# ─────────────────────────────────────────────────────
# Interactive setup
# ─────────────────────────────────────────────────────
def run_setup():
    """Interactive setup — saves credentials to config.json."""
    print("\n" + "=" * 60)
    print("  repofeed — Setup")
    print("=" * 60)
    print("\nKeys are saved to ~/.repofeed/config.json")
    print("Environment variables with the same names take precedence.\n")

    config = load_config()

    print("1. Notion integration token (required to store results)")
    print("   Create one at: https://www.notion.so/my-integrations")
    key = input("   NOTION_API_KEY: ").strip()
    if key:
        config["NOTION_API_KEY"] = key

    print("\n2. Notion database id (share the database with the integration)")
    print("   No database yet? Run: python -m repofeed init-db --parent-page <page id>")
    key = input("   NOTION_DATABASE_ID (press Enter to skip): ").strip()
    if key:
        config["NOTION_DATABASE_ID"] = key

    print("\n3. Anthropic API key (optional — template copy is used without it)")
    print("   Get yours at: https://console.anthropic.com/settings/keys")
    key = input("   ANTHROPIC_API_KEY (press Enter to skip): ").strip()
    if key:
        config["ANTHROPIC_API_KEY"] = key

    print("\n4. GitHub token (optional — raises the API rate limit)")
    key = input("   GITHUB_TOKEN (press Enter to skip): ").strip()
    if key:
        config["GITHUB_TOKEN"] = key

    save_config(config)
    print(f"\n  Config saved to {CONFIG_FILE}")
    print("\n  Setup complete! Run: python -m repofeed run\n")
    sys.exit(0)
